from typing import List, Optional, Protocol

from ...domain.role import Role


class RoleRepository(Protocol):
    """Protocol for role repository operations."""

    async def create(self, role: Role) -> Role: ...
    async def get_by_id(self, role_id: str, include_deleted: bool = False) -> Optional[Role]: ...
    async def get_by_name(self, name: str) -> Optional[Role]: ...
    async def get_default(self) -> Optional[Role]: ...
    async def list(self) -> List[Role]: ...
    async def update(self, role_id: str, **fields) -> Optional[Role]: ...
    async def clear_default(self, except_role_id: Optional[str] = None) -> None: ...
    async def delete(self, role_id: str) -> None: ...
    async def soft_delete(self, role_id: str) -> None: ...
