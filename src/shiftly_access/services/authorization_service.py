"""Authorization checks against a principal's effective permissions."""

from typing import Optional, Sequence

from ..domain.permission import (
    AccessDecision,
    PermissionResolver,
    PermissionStorePort,
    ResolvedPermissions,
    missing_permissions,
    require_any,
)
from ..infrastructure.cache.permission_cache import PermissionCache
from ..logging_config import get_logger
from ..metrics import PERMISSION_CHECKS, record

logger = get_logger(__name__)


class AuthorizationService:
    """Answers "does this principal hold these capabilities".

    Resolved sets are served from ``cache`` when fresh; on a miss the resolver
    reads the store and the union is cached. ``StoreUnavailable`` and
    ``NoRoleAssigned`` propagate to the caller.
    """

    def __init__(self, store: PermissionStorePort, cache: PermissionCache):
        self.resolver = PermissionResolver(store)
        self.cache = cache

    async def _granted(self, user_id: str, role_id: Optional[str]) -> frozenset[str]:
        if role_id:
            cached = await self.cache.get(user_id, role_id)
            if cached is not None:
                return cached
        resolved = await self.resolver.resolve_all(user_id, role_id)
        await self.cache.put(user_id, role_id, resolved.all)  # type: ignore[arg-type]
        return resolved.all

    async def check_all(
        self, user_id: str, role_id: Optional[str], required: Sequence[str]
    ) -> AccessDecision:
        """Allow only if every required permission is held."""
        granted = await self._granted(user_id, role_id)
        missing = missing_permissions(granted, required)
        decision = AccessDecision(allowed=not missing, missing=tuple(missing))
        record(PERMISSION_CHECKS, mode="all", result="granted" if decision else "denied")
        logger.debug(
            "permission_check",
            mode="all",
            user_id=user_id,
            role_id=role_id,
            required=list(required),
            allowed=decision.allowed,
            missing=missing,
        )
        return decision

    async def check_any(
        self, user_id: str, role_id: Optional[str], required: Sequence[str]
    ) -> AccessDecision:
        """Allow if at least one required permission is held.

        On deny nothing matched, so every required name is reported missing.
        """
        granted = await self._granted(user_id, role_id)
        if require_any(granted, required):
            decision = AccessDecision(allowed=True)
        else:
            decision = AccessDecision(allowed=False, missing=tuple(dict.fromkeys(required)))
        record(PERMISSION_CHECKS, mode="any", result="granted" if decision else "denied")
        logger.debug(
            "permission_check",
            mode="any",
            user_id=user_id,
            role_id=role_id,
            required=list(required),
            allowed=decision.allowed,
        )
        return decision

    async def get_effective_permissions(
        self, user_id: str, role_id: Optional[str]
    ) -> ResolvedPermissions:
        """Resolve from the store and refresh the cached union."""
        resolved = await self.resolver.resolve_all(user_id, role_id)
        await self.cache.put(user_id, role_id, resolved.all)  # type: ignore[arg-type]
        return resolved
