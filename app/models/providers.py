"""Provider and weekly availability tables using SQLAlchemy Core."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    SmallInteger,
    String,
    Table,
    Text,
    Time,
    Uuid,
)

from app.models.base import metadata

providers = Table(
    "providers",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Credentials
    Column("email", Text, nullable=False, unique=True, index=True),
    Column("hashed_password", Text, nullable=False),
    # Profile
    Column("first_name", Text, nullable=False),
    Column("last_name", Text, nullable=False),
    Column("phone", String(20), nullable=False),
    Column("specialty", String(50), nullable=False, index=True),
    Column("license_number", String(100), nullable=False, unique=True),
    # Capacity
    Column("max_daily_appointments", Integer, nullable=False, default=8),
    # Account state
    Column("is_active", Boolean, nullable=False, default=True, index=True),
    # Audit
    Column("created_at", DateTime, nullable=False, default=datetime.now),
    Column("updated_at", DateTime, nullable=False, default=datetime.now),
    Column("deleted_at", DateTime, nullable=True),
    CheckConstraint(
        "max_daily_appointments BETWEEN 1 AND 20",
        name="providers_max_daily_appointments_check",
    ),
    Index("ix_providers_specialty_is_active", "specialty", "is_active"),
)

# One row per weekly window; several windows may share a day
provider_availability = Table(
    "provider_availability",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    Column(
        "provider_id",
        Uuid,
        ForeignKey("providers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    ),
    Column("day_of_week", SmallInteger, nullable=False),  # 0=Sunday, 6=Saturday
    Column("start_time", Time, nullable=False),
    Column("end_time", Time, nullable=False),
    Column("is_active", Boolean, nullable=False, default=True),
    Column("position", SmallInteger, nullable=False, default=0),
    CheckConstraint("day_of_week BETWEEN 0 AND 6", name="provider_availability_day_check"),
)
