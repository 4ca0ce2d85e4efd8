import time
from typing import Callable, Iterable, NamedTuple, Optional

from ...logging_config import get_logger
from ...metrics import PERMISSION_CACHE_EVICTIONS, PERMISSION_CACHE_LOOKUPS, record

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 300


class _CacheEntry(NamedTuple):
    permissions: frozenset[str]
    expires_at: float


class PermissionCache:
    """Process-local cache of resolved permission sets keyed by (user_id, role_id).

    Keying on the role means a role reassignment misses the old entry on its
    own; invalidation by user still sweeps every role recorded for that user.

    Expiry is checked lazily on read. Entries are immutable tuples and the
    methods never await between reading and replacing the mapping, so under
    cooperative scheduling each entry changes as one unit. Concurrent puts to
    the same key resolve as last writer wins.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self.ttl = float(ttl_seconds)
        self.clock = clock
        self.store: dict[tuple[str, str], _CacheEntry] = {}

    def __len__(self) -> int:
        return len(self.store)

    async def get(self, user_id: str, role_id: str) -> Optional[frozenset[str]]:
        key = (user_id, role_id)
        entry = self.store.get(key)
        if entry is None:
            record(PERMISSION_CACHE_LOOKUPS, result="miss")
            return None
        if self.clock() > entry.expires_at:
            # only drop the entry we inspected; a fresher put may have replaced it
            if self.store.get(key) is entry:
                del self.store[key]
            record(PERMISSION_CACHE_LOOKUPS, result="expired")
            return None
        record(PERMISSION_CACHE_LOOKUPS, result="hit")
        return entry.permissions

    async def put(self, user_id: str, role_id: str, permissions: Iterable[str]) -> None:
        self.store[(user_id, role_id)] = _CacheEntry(
            permissions=frozenset(permissions), expires_at=self.clock() + self.ttl
        )

    async def invalidate(self, user_id: Optional[str] = None) -> int:
        """Evict every entry for ``user_id``, or everything when omitted.

        Returns the number of entries removed.
        """
        if user_id is None:
            evicted = len(self.store)
            self.store = {}
            record(PERMISSION_CACHE_EVICTIONS, scope="global")
            logger.info("permission_cache_flushed", evicted=evicted)
            return evicted

        keys = [k for k in self.store if k[0] == user_id]
        for k in keys:
            self.store.pop(k, None)
        record(PERMISSION_CACHE_EVICTIONS, scope="user")
        logger.debug("permission_cache_user_invalidated", user_id=user_id, evicted=len(keys))
        return len(keys)

    async def purge_expired(self) -> int:
        """Drop every expired entry. Optional; reads already expire lazily."""
        now = self.clock()
        expired = [k for k, e in self.store.items() if now > e.expires_at]
        for k in expired:
            self.store.pop(k, None)
        return len(expired)
