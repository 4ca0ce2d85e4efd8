import pytest

from shiftly_access.services.invalidation import PermissionInvalidator


async def _fill(cache):
    await cache.put("u1", "r1", {"a:x"})
    await cache.put("u1", "r2", {"a:x"})
    await cache.put("u2", "r1", {"a:x"})


@pytest.mark.asyncio
@pytest.mark.parametrize("event", ["role_permissions_changed", "role_deleted"])
async def test_role_events_flush_the_whole_cache(cache, event):
    await _fill(cache)
    await getattr(PermissionInvalidator(cache), event)("r1")
    assert len(cache) == 0


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "event", ["user_role_changed", "user_permissions_changed", "user_deleted"]
)
async def test_user_events_evict_only_that_user(cache, event):
    await _fill(cache)
    await getattr(PermissionInvalidator(cache), event)("u1")
    assert await cache.get("u1", "r1") is None
    assert await cache.get("u1", "r2") is None
    assert await cache.get("u2", "r1") == frozenset({"a:x"})
