"""Service layer for team management operations."""

from typing import List, Optional, Sequence

from ..domain.team import Team
from ..exceptions import NotFoundError
from ..logging_config import get_logger
from ..ports.repositories import TeamRepository, UserRepository

logger = get_logger(__name__)


class TeamService:
    def __init__(self, teams_repo: TeamRepository, users_repo: UserRepository):
        self.teams_repo = teams_repo
        self.users_repo = users_repo

    async def _live_user_ids(self, user_ids: Sequence[str]) -> List[str]:
        found = {u.id for u in await self.users_repo.get_by_ids(user_ids)}
        return [uid for uid in dict.fromkeys(user_ids) if uid in found]

    async def create_team(
        self,
        name: str,
        description: Optional[str] = None,
        member_ids: Optional[Sequence[str]] = None,
    ) -> Team:
        """Create a team; unknown or deleted user IDs in ``member_ids`` are ignored."""
        members = await self._live_user_ids(member_ids) if member_ids else []
        team = await self.teams_repo.create(
            Team(id=None, name=name, description=description or "", member_ids=members)
        )
        logger.info("team_created", team_id=team.id, members=len(members))
        return team

    async def get_team(self, team_id: str) -> Team:
        team = await self.teams_repo.get_by_id(team_id)
        if not team:
            raise NotFoundError("Team not found")
        return team

    async def list_teams(self) -> List[Team]:
        return await self.teams_repo.list()

    async def update_team(
        self, team_id: str, name: Optional[str] = None, description: Optional[str] = None
    ) -> Team:
        """
        Update team name and/or description.

        Raises:
            ValueError: If nothing to update
            NotFoundError: If the team is unknown
        """
        fields = {k: v for k, v in (("name", name), ("description", description)) if v is not None}
        if not fields:
            raise ValueError("Failed to update team")
        if not await self.teams_repo.get_by_id(team_id):
            raise NotFoundError("Team not found")
        updated = await self.teams_repo.update(team_id, **fields)
        if not updated:
            raise NotFoundError("Team not found")
        return updated

    async def delete_team(self, team_id: str) -> None:
        if not await self.teams_repo.get_by_id(team_id):
            raise NotFoundError("Team not found")
        await self.teams_repo.soft_delete(team_id)

    async def add_members(self, team_id: str, user_ids: Sequence[str]) -> Team:
        """
        Raises:
            NotFoundError: If the team is unknown or none of the users exist
        """
        team, valid = await self._team_and_users(team_id, user_ids)
        await self.teams_repo.add_members(team.id, valid)  # type: ignore[arg-type]
        return await self.get_team(team_id)

    async def remove_members(self, team_id: str, user_ids: Sequence[str]) -> Team:
        """Remove users from this team; their other memberships are untouched."""
        team, valid = await self._team_and_users(team_id, user_ids)
        await self.teams_repo.remove_members(team.id, valid)  # type: ignore[arg-type]
        return await self.get_team(team_id)

    async def _team_and_users(self, team_id: str, user_ids: Sequence[str]):
        team = await self.teams_repo.get_by_id(team_id)
        valid = await self._live_user_ids(user_ids) if user_ids else []
        if not team or not valid:
            logger.warning("team_members_invalid", team_id=team_id, requested=len(user_ids))
            raise NotFoundError("Valid team & user/s must be provided")
        return team, valid
