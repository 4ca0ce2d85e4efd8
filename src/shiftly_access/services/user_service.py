"""Service layer for user management operations."""

from typing import List, Mapping, Optional, Sequence

from ..domain.user import User
from ..exceptions import DuplicateError, NoRoleAssigned, NotFoundError
from ..logging_config import get_logger
from ..ports.repositories import PermissionStore, RoleRepository, UserRepository
from ..utils.pagination import PaginatedResponse, PaginationParams, build_paginated_response
from .invalidation import PermissionInvalidator

logger = get_logger(__name__)


class UserService:
    def __init__(
        self,
        users_repo: UserRepository,
        roles_repo: RoleRepository,
        permission_store: PermissionStore,
        invalidator: PermissionInvalidator,
    ):
        self.users_repo = users_repo
        self.roles_repo = roles_repo
        self.permission_store = permission_store
        self.invalidator = invalidator

    async def _resolve_role_id(self, role_id: Optional[str]) -> str:
        if role_id:
            role = await self.roles_repo.get_by_id(role_id)
            if not role:
                raise NotFoundError("Role not found")
            return role_id
        default = await self.roles_repo.get_default()
        if not default:
            logger.error("no_default_role_configured")
            raise NoRoleAssigned()
        return default.id  # type: ignore[return-value]

    async def create_user(self, email: str, name: str, role_id: Optional[str] = None) -> User:
        """
        Create a user with ``role_id`` or the default role.

        Raises:
            DuplicateError: If the email is taken, including by a deleted account
            NoRoleAssigned: If no role is given and no default role exists
        """
        existing = await self.users_repo.get_by_email(email)
        if existing:
            if existing.is_deleted:
                raise DuplicateError(
                    "This email was previously used by a deactivated account. "
                    "Contact an administrator to restore it."
                )
            raise DuplicateError("User exists already.")

        resolved_role_id = await self._resolve_role_id(role_id)
        user = User(id=None, email=email, name=name, role_id=resolved_role_id)
        return await self.users_repo.create(user)

    async def create_bulk_users(self, users: Sequence[Mapping[str, str]]) -> List[User]:
        """
        Create every user whose email is not yet registered.

        Live duplicates are skipped. Each entry is a mapping with ``email``,
        ``name`` and optionally ``role_id``.

        Raises:
            DuplicateError: If any email belongs to a deleted account; nothing is created
        """
        emails = [u["email"] for u in users]
        existing = await self.users_repo.get_by_emails(emails)

        deleted = [u.email for u in existing if u.is_deleted]
        if deleted:
            raise DuplicateError(
                "The following emails were previously used by deactivated accounts: "
                f"{', '.join(deleted)}. Contact an administrator to restore them."
            )

        seen = {u.email for u in existing}
        created: List[User] = []
        for data in users:
            if data["email"] in seen:
                continue
            seen.add(data["email"])
            role_id = await self._resolve_role_id(data.get("role_id"))
            created.append(
                await self.users_repo.create(
                    User(id=None, email=data["email"], name=data["name"], role_id=role_id)
                )
            )
        logger.info(
            "bulk_users_created", requested=len(users), created=len(created), skipped=len(existing)
        )
        return created

    async def get_user(self, user_id: str) -> User:
        """Return a live user with role name and direct permission details."""
        user = await self.users_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        user.direct_permissions = await self.permission_store.list_direct_permission_details(
            user_id
        )
        return user

    async def list_users(self, params: PaginationParams) -> PaginatedResponse[User]:
        users, total = await self.users_repo.list_paginated(params)
        return build_paginated_response(users, total, params)

    async def count_users(self) -> dict:
        return await self.users_repo.count()

    async def update_user(
        self,
        user_id: str,
        role_id: Optional[str] = None,
        direct_permission_ids: Optional[Sequence[str]] = None,
        assigned_by: Optional[str] = None,
    ) -> User:
        """
        Change a user's role and/or replace their direct permissions.

        The user's cached permissions are dropped after each committed change.

        Raises:
            NotFoundError: If the user, role or any permission id is unknown
        """
        user = await self.users_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        role_changed = role_id is not None and role_id != user.role_id
        if role_changed and not await self.roles_repo.get_by_id(role_id):  # type: ignore[arg-type]
            raise NotFoundError("Role not found")
        if direct_permission_ids is not None:
            found = await self.permission_store.get_permissions_by_ids(direct_permission_ids)
            unknown = set(direct_permission_ids) - {p.id for p in found}
            if unknown:
                raise NotFoundError(f"Unknown permission ids: {', '.join(sorted(unknown))}")

        if role_changed:
            await self.users_repo.update(user_id, role_id=role_id)
            await self.invalidator.user_role_changed(user_id)
            logger.info("user_role_changed", user_id=user_id, role_id=role_id)

        if direct_permission_ids is not None:
            await self.permission_store.set_user_permissions(
                user_id, direct_permission_ids, assigned_by=assigned_by
            )
            await self.invalidator.user_permissions_changed(user_id)

        return await self.get_user(user_id)

    async def delete_user(self, user_id: str) -> None:
        user = await self.users_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        await self.users_repo.soft_delete(user_id)
        await self.invalidator.user_deleted(user_id)

