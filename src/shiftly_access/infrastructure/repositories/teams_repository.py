from collections import defaultdict
from datetime import datetime
from typing import Any, Iterable, List, Optional, cast

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ...domain.team import Team as DomainTeam
from ...logging_config import get_logger
from ..db import models

logger = get_logger(__name__)


def _to_domain(row: Any, member_ids: Optional[List[str]] = None) -> DomainTeam:
    return DomainTeam(
        id=cast(Any, row.id),
        name=cast(Any, row.name),
        description=cast(Any, row.description),
        member_ids=list(member_ids or []),
        created_at=cast(Any, row.created_at),
        updated_at=cast(Any, row.updated_at),
        deleted_at=cast(Any, row.deleted_at),
    )


class SqlAlchemyTeamRepository:
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def _member_ids(self, team_ids: List[str]) -> dict:
        """Live member IDs per team, in insertion order."""
        if not team_ids:
            return {}
        tm = models.team_members
        q = await self.db_session.execute(
            select(tm.c.team_id, tm.c.user_id)
            .join(models.UserModel, tm.c.user_id == models.UserModel.id)
            .where(tm.c.team_id.in_(team_ids), models.UserModel.deleted_at.is_(None))
            .order_by(tm.c.created_at, tm.c.user_id)
        )
        members = defaultdict(list)
        for team_id, user_id in q.all():
            members[team_id].append(user_id)
        return members

    async def create(self, team: DomainTeam) -> DomainTeam:
        m = models.TeamModel(name=team.name, description=team.description)
        self.db_session.add(m)
        await self.db_session.flush()
        if team.member_ids:
            now = datetime.utcnow()
            await self.db_session.execute(
                insert(models.team_members).values(
                    [
                        {"team_id": m.id, "user_id": uid, "created_at": now}
                        for uid in dict.fromkeys(team.member_ids)
                    ]
                )
            )
        try:
            await self.db_session.commit()
            logger.info("team_created", team_id=m.id, members=len(team.member_ids))
        except Exception as e:
            logger.exception("team_create_commit_failed", error=str(e), name=team.name)
            raise
        return _to_domain(m, list(dict.fromkeys(team.member_ids)))

    async def get_by_id(self, team_id: str) -> Optional[DomainTeam]:
        q = await self.db_session.execute(
            select(models.TeamModel).where(
                models.TeamModel.id == team_id, models.TeamModel.deleted_at.is_(None)
            )
        )
        row = q.scalars().first()
        if not row:
            return None
        members = await self._member_ids([row.id])
        return _to_domain(row, members.get(row.id))

    async def list(self) -> List[DomainTeam]:
        q = await self.db_session.execute(
            select(models.TeamModel)
            .where(models.TeamModel.deleted_at.is_(None))
            .order_by(models.TeamModel.name)
        )
        rows = q.scalars().all()
        members = await self._member_ids([r.id for r in rows])
        return [_to_domain(r, members.get(r.id)) for r in rows]

    async def update(self, team_id: str, **fields) -> Optional[DomainTeam]:
        allowed = {"name", "description"}
        update_fields = {k: v for k, v in fields.items() if k in allowed}
        if not update_fields:
            return await self.get_by_id(team_id)
        update_fields["updated_at"] = datetime.utcnow()
        await self.db_session.execute(
            update(models.TeamModel).where(models.TeamModel.id == team_id).values(**update_fields)
        )
        try:
            await self.db_session.commit()
        except Exception as e:
            logger.exception("team_update_commit_failed", error=str(e), team_id=team_id)
            raise
        return await self.get_by_id(team_id)

    async def soft_delete(self, team_id: str) -> None:
        now = datetime.utcnow()
        await self.db_session.execute(
            update(models.TeamModel)
            .where(models.TeamModel.id == team_id)
            .values(deleted_at=now, updated_at=now)
        )
        await self.db_session.commit()
        logger.info("team_deleted", team_id=team_id)

    async def add_members(self, team_id: str, user_ids: Iterable[str]) -> int:
        """Add users not already on the team. Returns the number added."""
        tm = models.team_members
        wanted = list(dict.fromkeys(user_ids))
        if not wanted:
            return 0
        q = await self.db_session.execute(
            select(tm.c.user_id).where(tm.c.team_id == team_id, tm.c.user_id.in_(wanted))
        )
        existing = set(q.scalars().all())
        new_ids = [uid for uid in wanted if uid not in existing]
        if new_ids:
            now = datetime.utcnow()
            await self.db_session.execute(
                insert(tm).values(
                    [{"team_id": team_id, "user_id": uid, "created_at": now} for uid in new_ids]
                )
            )
        await self.db_session.commit()
        logger.info("team_members_added", team_id=team_id, added=len(new_ids))
        return len(new_ids)

    async def remove_members(self, team_id: str, user_ids: Iterable[str]) -> int:
        """Remove users from this team only. Returns the number removed."""
        tm = models.team_members
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return 0
        result = await self.db_session.execute(
            delete(tm).where(tm.c.team_id == team_id, tm.c.user_id.in_(ids))
        )
        await self.db_session.commit()
        removed = int(result.rowcount or 0)
        logger.info("team_members_removed", team_id=team_id, removed=removed)
        return removed
