import asyncio
from dataclasses import dataclass, field
from typing import AbstractSet, Iterable, List, Optional, Protocol

from ..exceptions import NoRoleAssigned

GLOBAL_WILDCARD = "*"


@dataclass
class Permission:
    id: Optional[str]
    name: str
    resource: str
    action: str
    description: str | None = None


class PermissionStorePort(Protocol):
    async def get_role_permissions(self, role_id: str) -> set[str]: ...

    async def get_direct_permissions(self, user_id: str) -> set[str]: ...


@dataclass(frozen=True)
class ResolvedPermissions:
    """A principal's effective permission names at one point in time.

    ``role_permissions`` and ``direct_permissions`` are kept for display
    ("inherited" vs "custom"); matching only ever looks at ``all``.
    """

    all: frozenset[str]
    role_permissions: frozenset[str] = frozenset()
    direct_permissions: frozenset[str] = frozenset()

    @classmethod
    def merge(cls, role_permissions: Iterable[str], direct_permissions: Iterable[str]):
        role = frozenset(role_permissions)
        direct = frozenset(direct_permissions)
        return cls(all=role | direct, role_permissions=role, direct_permissions=direct)


@dataclass(frozen=True)
class AccessDecision:
    allowed: bool
    missing: tuple[str, ...] = field(default_factory=tuple)

    def __bool__(self) -> bool:
        return self.allowed


def resource_of(required: str) -> str:
    """Text before the first ':'; empty when there is no ':'."""
    resource, sep, _ = required.partition(":")
    return resource if sep else ""


def has_permission(granted: AbstractSet[str], required: str) -> bool:
    """Return whether ``granted`` satisfies ``required``.

    Checked in order: exact name, global wildcard ``*``, then the resource
    wildcard ``<resource>:*``. Total over any input string.
    """
    if required in granted:
        return True
    if GLOBAL_WILDCARD in granted:
        return True
    return f"{resource_of(required)}:*" in granted


def require_all(granted: AbstractSet[str], required: Iterable[str]) -> bool:
    return all(has_permission(granted, r) for r in required)


def require_any(granted: AbstractSet[str], required: Iterable[str]) -> bool:
    return any(has_permission(granted, r) for r in required)


def missing_permissions(granted: AbstractSet[str], required: Iterable[str]) -> List[str]:
    missing: List[str] = []
    for r in required:
        if r not in missing and not has_permission(granted, r):
            missing.append(r)
    return missing


class PermissionResolver:
    """Resolve the effective permissions of a principal.

    Role grants and direct grants are independent reads, so they are fetched
    concurrently. Store failures surface to the caller unchanged: an empty set
    here would turn "cannot determine" into a false deny.
    """

    def __init__(self, port: PermissionStorePort):
        self.port = port

    async def resolve_all(self, user_id: str, role_id: Optional[str]) -> ResolvedPermissions:
        if not role_id:
            raise NoRoleAssigned(user_id)
        role_perms, direct_perms = await asyncio.gather(
            self.port.get_role_permissions(role_id),
            self.port.get_direct_permissions(user_id),
        )
        return ResolvedPermissions.merge(role_perms, direct_perms)
