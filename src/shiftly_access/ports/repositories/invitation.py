from typing import Iterable, List, Optional, Protocol

from ...domain.invitation import Invitation


class InvitationRepository(Protocol):
    """Protocol for invitation repository operations."""

    async def create_many(self, invitations: Iterable[Invitation]) -> List[Invitation]: ...
    async def get_by_token(self, token: str) -> Optional[Invitation]: ...
    async def list_by_user(self, user_id: str) -> List[Invitation]: ...
    async def list(self) -> List[Invitation]: ...
    async def update_status(self, invitation_ids: Iterable[str], status: str, **fields) -> None: ...
