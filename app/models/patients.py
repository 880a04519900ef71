"""Patient table model using SQLAlchemy Core."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    String,
    Table,
    Text,
    Uuid,
)

from app.models.base import metadata

patients = Table(
    "patients",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Credentials
    Column("email", Text, nullable=False, unique=True, index=True),
    Column("hashed_password", Text, nullable=False),
    # Profile
    Column("first_name", Text, nullable=False),
    Column("last_name", Text, nullable=False),
    Column("phone", String(20), nullable=False),
    Column("date_of_birth", Date, nullable=True),
    Column("address", Text, nullable=True),
    # Emergency contact
    Column("emergency_contact_name", Text, nullable=True),
    Column("emergency_contact_phone", String(20), nullable=True),
    Column("emergency_contact_relationship", String(50), nullable=True),
    # Insurance
    Column("insurance_provider", Text, nullable=True),
    Column("insurance_policy_number", String(100), nullable=True),
    # Account state
    Column("is_active", Boolean, nullable=False, default=True, index=True),
    # Audit
    Column("created_at", DateTime, nullable=False, default=datetime.now),
    Column("updated_at", DateTime, nullable=False, default=datetime.now),
    Column("deleted_at", DateTime, nullable=True),
)
