"""Cache invalidation triggered by permission-relevant mutations.

Every call happens after the mutation is committed. A check that resolves
between the commit and the call may cache the new grants or, if it read just
before the commit, the old ones for at most one TTL on this replica.
Other replicas are not notified and converge within their own TTL.
"""

from ..infrastructure.cache.permission_cache import PermissionCache
from ..logging_config import get_logger

logger = get_logger(__name__)


class PermissionInvalidator:
    def __init__(self, cache: PermissionCache):
        self.cache = cache

    async def role_permissions_changed(self, role_id: str) -> None:
        # entries are not indexed by role, so every holder of the role goes
        evicted = await self.cache.invalidate()
        logger.info("role_permissions_invalidated", role_id=role_id, evicted=evicted)

    async def role_deleted(self, role_id: str) -> None:
        evicted = await self.cache.invalidate()
        logger.info("role_deleted_invalidated", role_id=role_id, evicted=evicted)

    async def user_role_changed(self, user_id: str) -> None:
        await self.cache.invalidate(user_id)

    async def user_permissions_changed(self, user_id: str) -> None:
        await self.cache.invalidate(user_id)

    async def user_deleted(self, user_id: str) -> None:
        await self.cache.invalidate(user_id)
