"""Service layer for role management operations."""

import asyncio
from typing import List, Optional, Sequence

from ..domain.role import Role
from ..exceptions import DuplicateError, NotFoundError, SystemRoleError
from ..logging_config import get_logger
from ..ports.repositories import PermissionStore, RoleRepository
from .invalidation import PermissionInvalidator

logger = get_logger(__name__)


class RoleService:
    """Encapsulates role business logic and the cache invalidation it implies."""

    def __init__(
        self,
        roles_repo: RoleRepository,
        permission_store: PermissionStore,
        invalidator: PermissionInvalidator,
    ):
        self.roles_repo = roles_repo
        self.permission_store = permission_store
        self.invalidator = invalidator

    async def _validate_permission_ids(self, permission_ids: Sequence[str]) -> None:
        found = await self.permission_store.get_permissions_by_ids(permission_ids)
        unknown = set(permission_ids) - {p.id for p in found}
        if unknown:
            raise NotFoundError(f"Unknown permission ids: {', '.join(sorted(unknown))}")

    async def _with_permissions(self, role: Role) -> Role:
        role.permissions = await self.permission_store.list_role_permission_details(role.id)  # type: ignore[arg-type]
        return role

    async def create_role(
        self,
        name: str,
        description: Optional[str] = None,
        permission_ids: Optional[Sequence[str]] = None,
        is_system: bool = False,
        is_default: bool = False,
        assigned_by: Optional[str] = None,
    ) -> Role:
        """
        Create a role and optionally assign its permissions.

        Raises:
            DuplicateError: If a role (live or deleted) already has this name
            NotFoundError: If any permission id is unknown
        """
        if await self.roles_repo.get_by_name(name):
            logger.warning("create_role_duplicate", name=name)
            raise DuplicateError(f"Role '{name}' already exists")
        if permission_ids:
            await self._validate_permission_ids(permission_ids)

        role = await self.roles_repo.create(
            Role(
                id=None,
                name=name,
                description=description,
                is_system=is_system,
                is_default=is_default,
            )
        )
        if permission_ids:
            try:
                await self.permission_store.set_role_permissions(
                    role.id, permission_ids, assigned_by=assigned_by  # type: ignore[arg-type]
                )
            except Exception:
                logger.exception("create_role_grants_failed", role_id=role.id)
                await self.roles_repo.delete(role.id)  # type: ignore[arg-type]
                raise
        # the previous default stays until the new role and its grants are committed
        if is_default:
            await self.roles_repo.clear_default(except_role_id=role.id)
        logger.info("role_created", role_id=role.id, permissions=len(permission_ids or []))
        return await self._with_permissions(role)

    async def update_role(
        self,
        role_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None,
        is_default: Optional[bool] = None,
        permission_ids: Optional[Sequence[str]] = None,
        assigned_by: Optional[str] = None,
    ) -> Role:
        """
        Update role fields and, when ``permission_ids`` is given, replace its grants.

        Raises:
            NotFoundError: If the role or any permission id is unknown
            DuplicateError: If renaming onto another role's name
        """
        role = await self.roles_repo.get_by_id(role_id)
        if not role:
            raise NotFoundError("Role not found")

        if name is not None and name != role.name:
            other = await self.roles_repo.get_by_name(name)
            if other and other.id != role_id:
                raise DuplicateError(f"Role '{name}' already exists")
        if permission_ids is not None:
            await self._validate_permission_ids(permission_ids)

        fields = {
            k: v
            for k, v in (("name", name), ("description", description), ("is_default", is_default))
            if v is not None
        }
        updated = await self.roles_repo.update(role_id, **fields)
        if not updated:
            logger.error("update_role_failed", role_id=role_id)
            raise NotFoundError("Role not found")
        if is_default:
            await self.roles_repo.clear_default(except_role_id=role_id)

        if permission_ids is not None:
            await self.permission_store.set_role_permissions(
                role_id, permission_ids, assigned_by=assigned_by
            )
            await self.invalidator.role_permissions_changed(role_id)

        logger.info("role_updated", role_id=role_id, fields=sorted(fields))
        return await self._with_permissions(updated)

    async def delete_role(self, role_id: str) -> None:
        """
        Soft delete a role.

        Raises:
            NotFoundError: If the role is unknown or already deleted
            SystemRoleError: If the role is a system role
        """
        role = await self.roles_repo.get_by_id(role_id)
        if not role:
            raise NotFoundError("Role not found")
        if role.is_system:
            logger.warning("delete_role_system", role_id=role_id)
            raise SystemRoleError("Cannot delete system role")

        await self.roles_repo.soft_delete(role_id)
        await self.invalidator.role_deleted(role_id)

    async def get_role(self, role_id: str) -> Role:
        role = await self.roles_repo.get_by_id(role_id)
        if not role:
            raise NotFoundError("Role not found")
        return await self._with_permissions(role)

    async def list_roles(self) -> List[Role]:
        """All live roles with their permission details."""
        roles = await self.roles_repo.list()
        return list(await asyncio.gather(*(self._with_permissions(r) for r in roles)))

    async def get_default_role(self) -> Optional[Role]:
        return await self.roles_repo.get_default()
