from typing import Iterable, List, Optional, Protocol, Tuple

from ...domain.user import User
from ...utils.pagination import PaginationParams


class UserRepository(Protocol):
    """Protocol for user repository operations."""

    async def create(self, user: User) -> User: ...
    async def get_by_id(self, user_id: str) -> Optional[User]: ...
    async def get_by_email(self, email: str, include_deleted: bool = True) -> Optional[User]: ...
    async def get_by_emails(self, emails: Iterable[str]) -> List[User]: ...
    async def get_by_ids(self, user_ids: Iterable[str]) -> List[User]: ...
    async def list_paginated(self, params: PaginationParams) -> Tuple[List[User], int]: ...
    async def count(self) -> dict: ...
    async def update(self, user_id: str, **fields) -> Optional[User]: ...
    async def soft_delete(self, user_id: str) -> None: ...
