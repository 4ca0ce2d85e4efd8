from datetime import datetime
from typing import Any, List, Optional, cast

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ...domain.role import Role as DomainRole
from ...logging_config import get_logger
from ..db import models

logger = get_logger(__name__)


def _to_domain(row: Any) -> DomainRole:
    return DomainRole(
        id=cast(Any, row.id),
        name=cast(Any, row.name),
        description=cast(Any, row.description),
        is_system=bool(row.is_system),
        is_default=bool(row.is_default),
        created_at=cast(Any, row.created_at),
        updated_at=cast(Any, row.updated_at),
        deleted_at=cast(Any, row.deleted_at),
    )


class SqlAlchemyRoleRepository:
    def __init__(self, db_session: AsyncSession):
        self.db_session = db_session

    async def create(self, role: DomainRole) -> DomainRole:
        m = models.RoleModel(
            name=role.name,
            description=role.description,
            is_system=role.is_system,
            is_default=role.is_default,
        )
        self.db_session.add(m)
        await self.db_session.flush()
        try:
            await self.db_session.commit()
            logger.info("role_created", role_id=m.id, name=role.name)
        except Exception as e:
            logger.exception("role_create_commit_failed", error=str(e), name=role.name)
            raise
        return _to_domain(m)

    async def get_by_id(self, role_id: str, include_deleted: bool = False) -> Optional[DomainRole]:
        stmt = select(models.RoleModel).where(models.RoleModel.id == role_id)
        if not include_deleted:
            stmt = stmt.where(models.RoleModel.deleted_at.is_(None))
        q = await self.db_session.execute(stmt)
        row = q.scalars().first()
        return _to_domain(row) if row else None

    async def get_by_name(self, name: str) -> Optional[DomainRole]:
        """Lookup by name, tombstones included: names stay reserved after deletion."""
        q = await self.db_session.execute(
            select(models.RoleModel).where(models.RoleModel.name == name)
        )
        row = q.scalars().first()
        return _to_domain(row) if row else None

    async def get_default(self) -> Optional[DomainRole]:
        q = await self.db_session.execute(
            select(models.RoleModel).where(
                models.RoleModel.is_default.is_(True),
                models.RoleModel.deleted_at.is_(None),
            )
        )
        row = q.scalars().first()
        return _to_domain(row) if row else None

    async def list(self) -> List[DomainRole]:
        q = await self.db_session.execute(
            select(models.RoleModel)
            .where(models.RoleModel.deleted_at.is_(None))
            .order_by(models.RoleModel.name)
        )
        return [_to_domain(r) for r in q.scalars().all()]

    async def update(self, role_id: str, **fields) -> Optional[DomainRole]:
        """Update a role's mutable fields. Allowed: name, description, is_default."""
        allowed = {"name", "description", "is_default"}
        update_fields = {k: v for k, v in fields.items() if k in allowed}
        if not update_fields:
            return await self.get_by_id(role_id)
        update_fields["updated_at"] = datetime.utcnow()
        await self.db_session.execute(
            update(models.RoleModel).where(models.RoleModel.id == role_id).values(**update_fields)
        )
        try:
            await self.db_session.commit()
        except Exception as e:
            logger.exception("role_update_commit_failed", error=str(e), role_id=role_id)
            raise
        return await self.get_by_id(role_id)

    async def clear_default(self, except_role_id: Optional[str] = None) -> None:
        stmt = update(models.RoleModel).where(models.RoleModel.is_default.is_(True))
        if except_role_id is not None:
            stmt = stmt.where(models.RoleModel.id != except_role_id)
        await self.db_session.execute(stmt.values(is_default=False, updated_at=datetime.utcnow()))
        await self.db_session.commit()

    async def delete(self, role_id: str) -> None:
        """Remove a role row outright. Only for undoing a create that did not complete."""
        await self.db_session.execute(
            delete(models.RoleModel).where(models.RoleModel.id == role_id)
        )
        await self.db_session.commit()
        logger.info("role_removed", role_id=role_id)

    async def soft_delete(self, role_id: str) -> None:
        now = datetime.utcnow()
        await self.db_session.execute(
            update(models.RoleModel)
            .where(models.RoleModel.id == role_id)
            .values(deleted_at=now, updated_at=now, is_default=False)
        )
        try:
            await self.db_session.commit()
            logger.info("role_deleted", role_id=role_id)
        except Exception as e:
            logger.exception("role_delete_commit_failed", error=str(e), role_id=role_id)
            raise
