"""Appointments table model using SQLAlchemy Core."""

from datetime import datetime
from uuid import uuid4

from sqlalchemy import (
    JSON,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Index,
    SmallInteger,
    Table,
    Text,
    Uuid,
)

from app.models.base import metadata

# Appointments table
appointments = Table(
    "appointments",
    metadata,
    Column("id", Uuid, primary_key=True, default=uuid4),
    # Ownership / references
    Column("patient_id", Uuid, ForeignKey("patients.id"), nullable=False, index=True),
    Column("provider_id", Uuid, ForeignKey("providers.id"), nullable=False, index=True),
    # Slot; duration is end_time - start_time
    Column("start_time", DateTime, nullable=False, index=True),
    Column("end_time", DateTime, nullable=False),
    # Status management
    Column("status", Text, nullable=False, default="scheduled", index=True),
    Column("reason", Text, nullable=False),
    # Visit outcome
    Column("notes", Text, nullable=True),
    Column("prescription", Text, nullable=True),
    Column("rating", SmallInteger, nullable=True),
    Column("patient_feedback", Text, nullable=True),
    # Snapshot of the patient at booking time (denormalized for history)
    Column("patient_snapshot", JSON, nullable=False),
    # Audit fields
    Column("created_at", DateTime, nullable=False, default=datetime.now),
    Column("updated_at", DateTime, nullable=False, default=datetime.now),
    Column("cancelled_at", DateTime, nullable=True),
    # Soft delete (healthcare compliance)
    Column("deleted_at", DateTime, nullable=True),
    # Constraints
    CheckConstraint(
        "status IN ('scheduled', 'confirmed', 'completed', 'cancelled', 'no_show')",
        name="appointments_status_check",
    ),
    CheckConstraint(
        "rating IS NULL OR rating BETWEEN 1 AND 5",
        name="appointments_rating_check",
    ),
    CheckConstraint("end_time > start_time", name="appointments_time_order_check"),
    Index("ix_appointments_provider_id_start_time", "provider_id", "start_time"),
    Index("ix_appointments_patient_id_start_time", "patient_id", "start_time"),
)
