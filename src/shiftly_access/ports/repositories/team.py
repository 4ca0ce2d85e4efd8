from typing import Iterable, List, Optional, Protocol

from ...domain.team import Team


class TeamRepository(Protocol):
    """Protocol for team repository operations."""

    async def create(self, team: Team) -> Team: ...
    async def get_by_id(self, team_id: str) -> Optional[Team]: ...
    async def list(self) -> List[Team]: ...
    async def update(self, team_id: str, **fields) -> Optional[Team]: ...
    async def soft_delete(self, team_id: str) -> None: ...
    async def add_members(self, team_id: str, user_ids: Iterable[str]) -> int: ...
    async def remove_members(self, team_id: str, user_ids: Iterable[str]) -> int: ...
