"""Data access for patients."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import and_, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.patients import patients


class PatientRepository:
    """Patient queries; soft-deleted patients are invisible."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def find_by_id(self, patient_id: UUID) -> dict | None:
        """Get a patient by ID."""
        stmt = select(patients).where(
            and_(patients.c.id == patient_id, patients.c.deleted_at.is_(None))
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        return dict(row) if row else None

    async def find_by_email(self, email: str) -> dict | None:
        """Get a patient by email (case-insensitive)."""
        stmt = select(patients).where(
            and_(patients.c.email == email.lower(), patients.c.deleted_at.is_(None))
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        return dict(row) if row else None

    async def find_all(self, skip: int = 0, limit: int = 10) -> list[dict]:
        """List patients sorted by name."""
        stmt = (
            select(patients)
            .where(patients.c.deleted_at.is_(None))
            .order_by(patients.c.last_name, patients.c.first_name)
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def count(self) -> int:
        """Count patients."""
        stmt = select(func.count()).select_from(patients).where(patients.c.deleted_at.is_(None))
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def create(self, values: dict[str, Any]) -> dict:
        """Insert a patient and return the stored row."""
        values = {**values, "email": values["email"].lower()}
        result = await self.db.execute(patients.insert().values(**values).returning(patients))
        return dict(result.mappings().one())

    async def update(self, patient_id: UUID, values: dict[str, Any]) -> dict | None:
        """Apply a partial update; None when no visible row matched."""
        stmt = (
            update(patients)
            .where(and_(patients.c.id == patient_id, patients.c.deleted_at.is_(None)))
            .values(**values, updated_at=datetime.now())
            .returning(patients)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        return dict(row) if row else None

    async def soft_delete(self, patient_id: UUID) -> bool:
        """Mark a patient deleted and inactive."""
        now = datetime.now()
        stmt = (
            update(patients)
            .where(and_(patients.c.id == patient_id, patients.c.deleted_at.is_(None)))
            .values(deleted_at=now, is_active=False, updated_at=now)
        )
        result = await self.db.execute(stmt)
        return result.rowcount > 0
