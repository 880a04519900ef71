"""Provider directory and availability management."""

from uuid import UUID

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import NotFoundException
from app.core.redis_client import PROVIDER_LIST_PATTERN, CacheManager
from app.repositories.provider_repository import ProviderRepository
from app.schemas.providers import (
    AvailabilityUpdate,
    AvailabilityWindowSchema,
    ProviderListResponse,
    ProviderResponse,
)

logger = structlog.get_logger()


class ProviderService:
    """
    Service for the provider directory.

    Directory pages are cached in Redis. Booking never reads this cache;
    the scheduling engine always loads providers from the database.
    """

    def __init__(
        self,
        db: AsyncSession,
        cache_manager: CacheManager | None = None,
        list_cache_ttl: int = 300,
    ):
        """Initialize service with database session and optional cache manager."""
        self.db = db
        self.cache = cache_manager
        self.list_cache_ttl = list_cache_ttl
        self.providers = ProviderRepository(db)

    @staticmethod
    def _get_list_cache_key(page: int, limit: int, specialty: str | None) -> str:
        """Generate cache key for a directory page."""
        return f"provider:list:{page}:{limit}:{specialty or 'all'}"

    async def _to_response(self, provider: dict) -> ProviderResponse:
        availability = await self.providers.get_availability(provider["id"])
        return ProviderResponse.model_validate({**provider, "availability": availability})

    async def list_providers(
        self,
        page: int = 1,
        limit: int = 10,
        specialty: str | None = None,
    ) -> ProviderListResponse:
        """
        List active providers with their weekly availability.

        Args:
            page: Page number
            limit: Items per page
            specialty: Optional specialty filter

        Returns:
            Paginated providers
        """
        cache_key = self._get_list_cache_key(page, limit, specialty)
        if self.cache:
            cached = self.cache.get_json(cache_key)
            if cached:
                return ProviderListResponse.model_validate(cached)

        rows = await self.providers.find_all(
            skip=(page - 1) * limit, limit=limit, specialty=specialty
        )
        total = await self.providers.count(specialty=specialty)
        response = ProviderListResponse(
            total=total,
            page=page,
            limit=limit,
            providers=[await self._to_response(row) for row in rows],
        )

        if self.cache:
            self.cache.set_json(cache_key, response.model_dump(mode="json"), ttl=self.list_cache_ttl)

        return response

    async def get_availability(self, provider_id: UUID) -> list[AvailabilityWindowSchema]:
        """A provider's weekly windows."""
        provider = await self.providers.find_by_id(provider_id)
        if not provider:
            raise NotFoundException("Provider not found")

        rows = await self.providers.get_availability(provider_id)
        return [AvailabilityWindowSchema.model_validate(row) for row in rows]

    async def update_availability(
        self,
        provider_id: UUID,
        data: AvailabilityUpdate,
    ) -> list[AvailabilityWindowSchema]:
        """
        Replace a provider's weekly windows.

        Raises:
            NotFoundException: If provider not found
        """
        provider = await self.providers.find_by_id(provider_id)
        if not provider:
            raise NotFoundException("Provider not found")

        rows = await self.providers.replace_availability(
            provider_id,
            [window.model_dump() for window in data.availability],
        )
        await self.db.commit()

        if self.cache:
            self.cache.delete_pattern(PROVIDER_LIST_PATTERN)

        logger.info(
            "provider_availability_updated",
            provider_id=str(provider_id),
            windows=len(rows),
        )
        return [AvailabilityWindowSchema.model_validate(row) for row in rows]
