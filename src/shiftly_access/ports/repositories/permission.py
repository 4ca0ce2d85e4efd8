from typing import Iterable, List, Optional, Protocol

from ...domain.permission import Permission


class PermissionStore(Protocol):
    """Protocol for reading and replacing permission grants."""

    async def get_role_permissions(self, role_id: str) -> set[str]: ...

    async def get_direct_permissions(self, user_id: str) -> set[str]: ...

    async def list_permissions(self) -> List[Permission]: ...

    async def get_permissions_by_names(self, names: Iterable[str]) -> List[Permission]: ...

    async def get_permissions_by_ids(self, ids: Iterable[str]) -> List[Permission]: ...

    async def list_role_permission_details(self, role_id: str) -> List[Permission]: ...

    async def list_direct_permission_details(self, user_id: str) -> List[Permission]: ...

    async def set_role_permissions(
        self, role_id: str, permission_ids: Iterable[str], assigned_by: Optional[str] = None
    ) -> None: ...

    async def set_user_permissions(
        self, user_id: str, permission_ids: Iterable[str], assigned_by: Optional[str] = None
    ) -> None: ...
