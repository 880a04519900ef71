"""Data access for providers and their weekly availability."""

from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import and_, delete, func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.providers import provider_availability, providers


class ProviderRepository:
    """Provider queries; soft-deleted providers are invisible."""

    def __init__(self, db: AsyncSession):
        """Initialize repository with database session."""
        self.db = db

    async def _first(self, *conditions: Any, lock: bool = False) -> dict | None:
        stmt = select(providers).where(and_(providers.c.deleted_at.is_(None), *conditions))
        if lock:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        return dict(row) if row else None

    async def find_by_id(self, provider_id: UUID, lock: bool = False) -> dict | None:
        """
        Get a provider by ID.

        Args:
            provider_id: Provider ID
            lock: Row-lock the provider until the current transaction ends

        Returns:
            Provider row or None
        """
        return await self._first(providers.c.id == provider_id, lock=lock)

    async def find_by_email(self, email: str) -> dict | None:
        """Get a provider by email (case-insensitive)."""
        return await self._first(providers.c.email == email.lower())

    async def find_by_license_number(self, license_number: str) -> dict | None:
        """Get a provider by license number."""
        return await self._first(providers.c.license_number == license_number)

    def _directory_conditions(self, specialty: str | None) -> list[Any]:
        conditions = [providers.c.deleted_at.is_(None), providers.c.is_active.is_(True)]
        if specialty:
            conditions.append(providers.c.specialty == specialty)
        return conditions

    async def find_all(
        self,
        skip: int = 0,
        limit: int = 10,
        specialty: str | None = None,
    ) -> list[dict]:
        """List active providers sorted by name."""
        stmt = (
            select(providers)
            .where(and_(*self._directory_conditions(specialty)))
            .order_by(providers.c.last_name, providers.c.first_name)
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def find_by_specialty(self, specialty: str) -> list[dict]:
        """All active providers practising ``specialty``."""
        stmt = (
            select(providers)
            .where(and_(*self._directory_conditions(specialty)))
            .order_by(providers.c.last_name, providers.c.first_name)
        )
        result = await self.db.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def count(self, specialty: str | None = None) -> int:
        """Count active providers."""
        stmt = (
            select(func.count())
            .select_from(providers)
            .where(and_(*self._directory_conditions(specialty)))
        )
        result = await self.db.execute(stmt)
        return result.scalar() or 0

    async def create(self, values: dict[str, Any]) -> dict:
        """Insert a provider and return the stored row."""
        values = {**values, "email": values["email"].lower()}
        result = await self.db.execute(providers.insert().values(**values).returning(providers))
        return dict(result.mappings().one())

    async def update(self, provider_id: UUID, values: dict[str, Any]) -> dict | None:
        """Apply a partial update; None when no visible row matched."""
        stmt = (
            update(providers)
            .where(and_(providers.c.id == provider_id, providers.c.deleted_at.is_(None)))
            .values(**values, updated_at=datetime.now())
            .returning(providers)
        )
        result = await self.db.execute(stmt)
        row = result.mappings().first()
        return dict(row) if row else None

    async def soft_delete(self, provider_id: UUID) -> bool:
        """Mark a provider deleted and inactive."""
        now = datetime.now()
        stmt = (
            update(providers)
            .where(and_(providers.c.id == provider_id, providers.c.deleted_at.is_(None)))
            .values(deleted_at=now, is_active=False, updated_at=now)
        )
        result = await self.db.execute(stmt)
        return result.rowcount > 0

    async def get_availability(self, provider_id: UUID) -> list[dict]:
        """A provider's weekly windows in declared order."""
        stmt = (
            select(provider_availability)
            .where(provider_availability.c.provider_id == provider_id)
            .order_by(provider_availability.c.position)
        )
        result = await self.db.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def replace_availability(
        self,
        provider_id: UUID,
        windows: list[dict[str, Any]],
    ) -> list[dict]:
        """Replace all of a provider's windows with ``windows``."""
        await self.db.execute(
            delete(provider_availability).where(provider_availability.c.provider_id == provider_id)
        )
        if windows:
            await self.db.execute(
                provider_availability.insert(),
                [
                    {**window, "provider_id": provider_id, "position": position}
                    for position, window in enumerate(windows)
                ],
            )
        return await self.get_availability(provider_id)
