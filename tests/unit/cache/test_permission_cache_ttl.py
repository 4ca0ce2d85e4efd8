import pytest

from shiftly_access.infrastructure.cache.permission_cache import PermissionCache
from tests.fixtures.db_helpers import FakeClock


@pytest.mark.asyncio
async def test_entry_is_served_until_ttl_then_expires(cache, clock):
    await cache.put("u1", "r1", {"users:read"})

    clock.advance(299)
    assert await cache.get("u1", "r1") == frozenset({"users:read"})

    clock.advance(2)  # T+301
    assert await cache.get("u1", "r1") is None
    # expired entries are dropped on read
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_entry_at_exact_ttl_boundary_is_still_fresh(cache, clock):
    await cache.put("u1", "r1", {"a:x"})
    clock.advance(300)
    assert await cache.get("u1", "r1") == frozenset({"a:x"})


@pytest.mark.asyncio
async def test_consecutive_gets_return_identical_sets(cache):
    await cache.put("u1", "r1", ["a:x", "b:*"])
    first = await cache.get("u1", "r1")
    second = await cache.get("u1", "r1")
    assert first == second == frozenset({"a:x", "b:*"})


@pytest.mark.asyncio
async def test_missing_key_returns_none(cache):
    assert await cache.get("nobody", "r1") is None


@pytest.mark.asyncio
async def test_invalidate_user_evicts_every_role_of_that_user_only(cache):
    await cache.put("u1", "r1", {"a:x"})
    await cache.put("u1", "r2", {"b:x"})
    await cache.put("u2", "r1", {"a:x"})

    evicted = await cache.invalidate("u1")

    assert evicted == 2
    assert await cache.get("u1", "r1") is None
    assert await cache.get("u1", "r2") is None
    assert await cache.get("u2", "r1") == frozenset({"a:x"})


@pytest.mark.asyncio
async def test_invalidate_without_user_flushes_everything(cache):
    await cache.put("u1", "r1", {"a:x"})
    await cache.put("u2", "r2", {"b:x"})

    assert await cache.invalidate() == 2
    assert len(cache) == 0


@pytest.mark.asyncio
async def test_put_replaces_entry_and_resets_expiry(cache, clock):
    await cache.put("u1", "r1", {"a:x"})
    clock.advance(200)
    await cache.put("u1", "r1", {"b:x"})
    clock.advance(200)
    assert await cache.get("u1", "r1") == frozenset({"b:x"})


@pytest.mark.asyncio
async def test_stored_set_is_decoupled_from_caller_mutation(cache):
    perms = {"a:x"}
    await cache.put("u1", "r1", perms)
    perms.add("b:x")
    assert await cache.get("u1", "r1") == frozenset({"a:x"})


@pytest.mark.asyncio
async def test_purge_expired_removes_only_stale_entries(cache, clock):
    await cache.put("u1", "r1", {"a:x"})
    clock.advance(250)
    await cache.put("u2", "r1", {"a:x"})
    clock.advance(100)

    assert await cache.purge_expired() == 1
    assert await cache.get("u2", "r1") == frozenset({"a:x"})


def test_ttl_must_be_positive():
    with pytest.raises(ValueError):
        PermissionCache(ttl_seconds=0, clock=FakeClock())


@pytest.mark.asyncio
async def test_independent_instances_do_not_share_state(clock):
    a = PermissionCache(ttl_seconds=300, clock=clock)
    b = PermissionCache(ttl_seconds=300, clock=clock)
    await a.put("u1", "r1", {"a:x"})
    assert await b.get("u1", "r1") is None
