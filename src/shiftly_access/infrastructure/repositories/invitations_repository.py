from datetime import datetime
from typing import Any, Iterable, List, Optional, cast

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ...domain.invitation import Invitation as DomainInvitation
from ...logging_config import get_logger
from ..db import models

logger = get_logger(__name__)


def _to_domain(row: Any) -> DomainInvitation:
    return DomainInvitation(
        id=cast(Any, row.id),
        user_id=cast(Any, row.user_id),
        email=cast(Any, row.email),
        name=cast(Any, row.name),
        role_id=cast(Any, row.role_id),
        token=cast(Any, row.token),
        expires_at=cast(Any, row.expires_at),
        status=cast(Any, row.status),
        invited_by_id=cast(Any, row.invited_by_id),
        accepted_at=cast(Any, row.accepted_at),
        created_at=cast(Any, row.created_at),
        updated_at=cast(Any, row.updated_at),
    )


class SqlAlchemyInvitationRepository:
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def create_many(self, invitations: Iterable[DomainInvitation]) -> List[DomainInvitation]:
        rows = [
            models.InvitationModel(
                user_id=inv.user_id,
                email=inv.email,
                name=inv.name,
                role_id=inv.role_id,
                token=inv.token,
                status=str(inv.status),
                expires_at=inv.expires_at,
                invited_by_id=inv.invited_by_id,
            )
            for inv in invitations
        ]
        if not rows:
            return []
        self.db_session.add_all(rows)
        await self.db_session.flush()
        try:
            await self.db_session.commit()
            logger.info("invitations_created", count=len(rows))
        except Exception as e:
            logger.exception("invitation_create_commit_failed", error=str(e))
            raise
        return [_to_domain(r) for r in rows]

    async def get_by_token(self, token: str) -> Optional[DomainInvitation]:
        q = await self.db_session.execute(
            select(models.InvitationModel).where(models.InvitationModel.token == token)
        )
        row = q.scalars().first()
        return _to_domain(row) if row else None

    async def list_by_user(self, user_id: str) -> List[DomainInvitation]:
        q = await self.db_session.execute(
            select(models.InvitationModel)
            .where(models.InvitationModel.user_id == user_id)
            .order_by(models.InvitationModel.created_at.desc())
        )
        return [_to_domain(r) for r in q.scalars().all()]

    async def list(self) -> List[DomainInvitation]:
        q = await self.db_session.execute(
            select(models.InvitationModel).order_by(models.InvitationModel.created_at.desc())
        )
        return [_to_domain(r) for r in q.scalars().all()]

    async def update_status(self, invitation_ids: Iterable[str], status: str, **fields) -> None:
        """Set ``status`` on the given invitations. Extra allowed field: accepted_at."""
        ids = list(invitation_ids)
        if not ids:
            return
        values = {k: v for k, v in fields.items() if k in {"accepted_at"}}
        values.update(status=str(status), updated_at=datetime.utcnow())
        await self.db_session.execute(
            update(models.InvitationModel)
            .where(models.InvitationModel.id.in_(ids))
            .values(**values)
        )
        try:
            await self.db_session.commit()
            logger.info("invitation_status_updated", count=len(ids), status=str(status))
        except Exception as e:
            logger.exception("invitation_status_commit_failed", error=str(e))
            raise
