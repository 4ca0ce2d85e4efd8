from datetime import datetime
from typing import Any, Iterable, List, Optional, Tuple, cast

from sqlalchemy import case, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ...domain.user import User as DomainUser
from ...logging_config import get_logger
from ...utils.pagination import PaginationParams, calculate_offset
from ..db import models

logger = get_logger(__name__)

_SORT_COLUMNS = {
    "name": models.UserModel.name,
    "email": models.UserModel.email,
    "created_at": models.UserModel.created_at,
    "role_name": models.RoleModel.name,
}


def _to_domain(row: Any, role_name: Optional[str] = None) -> DomainUser:
    return DomainUser(
        id=cast(Any, row.id),
        email=cast(Any, row.email),
        name=cast(Any, row.name),
        role_id=cast(Any, row.role_id),
        role_name=role_name,
        email_verified=bool(row.email_verified),
        image=cast(Any, row.image),
        created_at=cast(Any, row.created_at),
        updated_at=cast(Any, row.updated_at),
        deleted_at=cast(Any, row.deleted_at),
    )


def _with_role():
    return select(models.UserModel, models.RoleModel.name).outerjoin(
        models.RoleModel, models.UserModel.role_id == models.RoleModel.id
    )


class SqlAlchemyUserRepository:
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def create(self, user: DomainUser) -> DomainUser:
        logger.debug("creating_user", email=user.email, role_id=user.role_id)
        m = models.UserModel(
            name=user.name,
            email=user.email,
            email_verified=user.email_verified,
            image=user.image,
            role_id=user.role_id,
        )
        self.db_session.add(m)
        await self.db_session.flush()
        try:
            await self.db_session.commit()
            logger.info("user_created", user_id=m.id, email=user.email)
        except Exception as e:
            logger.exception("user_create_commit_failed", error=str(e), email=user.email)
            raise  # Re-raise to prevent silent failure
        return _to_domain(m, user.role_name)

    async def get_by_id(self, user_id: str) -> Optional[DomainUser]:
        """Get a live user by ID, with the role name joined in."""
        q = await self.db_session.execute(
            _with_role().where(
                models.UserModel.id == user_id, models.UserModel.deleted_at.is_(None)
            )
        )
        row = q.first()
        if not row:
            return None
        return _to_domain(row[0], row[1])

    async def get_by_email(self, email: str, include_deleted: bool = True) -> Optional[DomainUser]:
        """Email is unique across tombstones, so lookups include them by default."""
        stmt = _with_role().where(models.UserModel.email == email)
        if not include_deleted:
            stmt = stmt.where(models.UserModel.deleted_at.is_(None))
        q = await self.db_session.execute(stmt)
        row = q.first()
        if not row:
            return None
        return _to_domain(row[0], row[1])

    async def get_by_emails(self, emails: Iterable[str]) -> List[DomainUser]:
        emails = list(emails)
        if not emails:
            return []
        q = await self.db_session.execute(_with_role().where(models.UserModel.email.in_(emails)))
        return [_to_domain(u, rn) for u, rn in q.all()]

    async def get_by_ids(self, user_ids: Iterable[str]) -> List[DomainUser]:
        """Bulk fetch live users by ID."""
        user_ids = list(user_ids)
        if not user_ids:
            return []
        q = await self.db_session.execute(
            _with_role().where(
                models.UserModel.id.in_(user_ids), models.UserModel.deleted_at.is_(None)
            )
        )
        return [_to_domain(u, rn) for u, rn in q.all()]

    async def list_paginated(self, params: PaginationParams) -> Tuple[List[DomainUser], int]:
        filters = [models.UserModel.deleted_at.is_(None)]
        if params.search:
            pattern = f"%{params.search}%"
            filters.append(
                or_(models.UserModel.name.ilike(pattern), models.UserModel.email.ilike(pattern))
            )
        if params.role_id:
            filters.append(models.UserModel.role_id == params.role_id)

        stmt = _with_role()
        count_stmt = select(func.count(models.UserModel.id)).select_from(models.UserModel)
        if params.team_id:
            tm = models.team_members
            stmt = stmt.join(tm, tm.c.user_id == models.UserModel.id)
            count_stmt = count_stmt.join(tm, tm.c.user_id == models.UserModel.id)
            filters.append(tm.c.team_id == params.team_id)
        stmt = stmt.where(*filters)

        count_q = await self.db_session.execute(count_stmt.where(*filters))
        total = int(count_q.scalar_one())

        column = _SORT_COLUMNS.get(params.sort_by or "")
        if column is None:
            stmt = stmt.order_by(models.UserModel.created_at.desc(), models.UserModel.id)
        elif params.sort_order == "desc":
            stmt = stmt.order_by(column.desc(), models.UserModel.id)
        else:
            stmt = stmt.order_by(column.asc(), models.UserModel.id)

        q = await self.db_session.execute(
            stmt.offset(calculate_offset(params.page, params.page_size)).limit(params.page_size)
        )
        return [_to_domain(u, rn) for u, rn in q.all()], total

    async def count(self) -> dict:
        """Return {"total", "verified"} over live users."""
        q = await self.db_session.execute(
            select(
                func.count(models.UserModel.id),
                func.count(case((models.UserModel.email_verified.is_(True), 1))),
            ).where(models.UserModel.deleted_at.is_(None))
        )
        total, verified = q.one()
        return {"total": int(total or 0), "verified": int(verified or 0)}

    async def update(self, user_id: str, **fields) -> Optional[DomainUser]:
        """Update a user's mutable fields using an explicit whitelist.

        Allowed fields: name, image, role_id, email_verified.
        Returns the updated DomainUser or None if not found.
        """
        allowed = {"name", "image", "role_id", "email_verified"}
        update_fields = {k: v for k, v in fields.items() if k in allowed}
        if not update_fields:
            return await self.get_by_id(user_id)
        update_fields["updated_at"] = datetime.utcnow()
        await self.db_session.execute(
            update(models.UserModel).where(models.UserModel.id == user_id).values(**update_fields)
        )
        try:
            await self.db_session.commit()
        except Exception as e:
            logger.exception("user_update_commit_failed", error=str(e), user_id=user_id)
            raise
        return await self.get_by_id(user_id)

    async def soft_delete(self, user_id: str) -> None:
        now = datetime.utcnow()
        await self.db_session.execute(
            update(models.UserModel)
            .where(models.UserModel.id == user_id)
            .values(deleted_at=now, updated_at=now)
        )
        try:
            await self.db_session.commit()
            logger.info("user_deleted", user_id=user_id)
        except Exception as e:
            logger.exception("user_delete_commit_failed", error=str(e), user_id=user_id)
            raise
