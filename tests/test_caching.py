"""Tests for Redis caching of the provider directory."""

from unittest.mock import MagicMock

import pytest
import redis

from app.core.redis_client import CacheManager, check_redis_connection
from app.schemas.providers import AvailabilityUpdate
from app.services.provider_service import ProviderService


def test_cache_manager_get_json():
    """Test CacheManager get_json method."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    # Test cache miss
    mock_redis.get.return_value = None
    assert cache_manager.get_json("provider:list:1:10:all") is None

    # Test cache hit
    mock_redis.reset_mock()
    mock_redis.get.return_value = '{"total": 1, "page": 1}'
    assert cache_manager.get_json("provider:list:1:10:all") == {"total": 1, "page": 1}
    mock_redis.get.assert_called_once_with("provider:list:1:10:all")

    # Unreadable entries count as misses
    mock_redis.get.return_value = "{not json"
    assert cache_manager.get_json("provider:list:1:10:all") is None


def test_cache_manager_set_json():
    """TTL writes go through SETEX, others through SET."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.set_json("key", {"a": 1}) is True
    mock_redis.set.assert_called_once_with("key", '{"a": 1}')

    assert cache_manager.set_json("key", {"a": 1}, ttl=300) is True
    mock_redis.setex.assert_called_once_with("key", 300, '{"a": 1}')


def test_cache_manager_delete_pattern():
    """Matching keys are deleted in one call."""
    mock_redis = MagicMock()
    cache_manager = CacheManager(redis_client=mock_redis)

    mock_redis.scan_iter.return_value = iter(["provider:list:1:10:all", "provider:list:2:10:all"])
    mock_redis.delete.return_value = 2
    assert cache_manager.delete_pattern("provider:list:*") == 2
    mock_redis.delete.assert_called_once_with("provider:list:1:10:all", "provider:list:2:10:all")
    mock_redis.scan_iter.assert_called_once_with(match="provider:list:*")

    mock_redis.reset_mock()
    mock_redis.scan_iter.return_value = iter([])
    assert cache_manager.delete_pattern("provider:list:*") == 0
    mock_redis.delete.assert_not_called()


def test_cache_manager_fails_open():
    """Redis errors degrade to misses instead of raising."""
    mock_redis = MagicMock()
    mock_redis.get.side_effect = redis.ConnectionError("down")
    mock_redis.setex.side_effect = redis.ConnectionError("down")
    mock_redis.scan_iter.side_effect = redis.ConnectionError("down")
    cache_manager = CacheManager(redis_client=mock_redis)

    assert cache_manager.get_json("key") is None
    assert cache_manager.set_json("key", {"a": 1}, ttl=60) is False
    assert cache_manager.delete_pattern("provider:list:*") == 0


def test_check_redis_connection():
    """Health probe reports missing and failing clients as unhealthy."""
    assert check_redis_connection(None) is False

    healthy = MagicMock()
    assert check_redis_connection(healthy) is True

    broken = MagicMock()
    broken.ping.side_effect = redis.ConnectionError("down")
    assert check_redis_connection(broken) is False


@pytest.mark.asyncio
async def test_provider_list_is_cached(db_session, test_provider):
    """A miss reads the database and stores the page."""
    mock_cache = MagicMock()
    mock_cache.get_json.return_value = None
    service = ProviderService(db_session, mock_cache, list_cache_ttl=120)

    result = await service.list_providers(page=1, limit=10)

    assert result.total == 1
    mock_cache.get_json.assert_called_once_with("provider:list:1:10:all")
    key, value = mock_cache.set_json.call_args.args
    assert key == "provider:list:1:10:all"
    assert value["providers"][0]["id"] == str(test_provider["id"])
    assert value["providers"][0]["availability"][0]["start_time"] == "09:00"
    assert mock_cache.set_json.call_args.kwargs == {"ttl": 120}


@pytest.mark.asyncio
async def test_provider_list_served_from_cache(db_session, test_provider):
    """A hit is returned as-is without touching the database."""
    mock_cache = MagicMock()
    cached = ProviderService(db_session)
    mock_cache.get_json.return_value = (await cached.list_providers()).model_dump(mode="json")

    # Deactivate the provider; the cached page still lists it
    await cached.providers.update(test_provider["id"], {"is_active": False})
    await db_session.commit()

    result = await ProviderService(db_session, mock_cache).list_providers(specialty="cardiology")

    mock_cache.get_json.assert_called_once_with("provider:list:1:10:cardiology")
    assert result.total == 1
    assert result.providers[0].id == test_provider["id"]
    mock_cache.set_json.assert_not_called()


@pytest.mark.asyncio
async def test_availability_update_invalidates_cache(db_session, test_provider):
    """Changing hours drops every cached directory page."""
    mock_cache = MagicMock()
    service = ProviderService(db_session, mock_cache)

    windows = await service.update_availability(
        test_provider["id"],
        AvailabilityUpdate.model_validate(
            {"availability": [{"day_of_week": 5, "start_time": "10:00", "end_time": "14:00"}]}
        ),
    )

    assert [(w.day_of_week, w.start_time.hour) for w in windows] == [(5, 10)]
    mock_cache.delete_pattern.assert_called_once_with("provider:list:*")


@pytest.mark.asyncio
async def test_provider_service_without_cache(db_session, test_provider):
    """Caching is optional."""
    result = await ProviderService(db_session, None).list_providers()
    assert result.providers[0].last_name == "House"
