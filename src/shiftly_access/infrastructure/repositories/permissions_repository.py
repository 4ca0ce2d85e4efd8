from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Iterable, List, Optional

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ...domain.permission import Permission as DomainPermission
from ...exceptions import StoreUnavailable
from ...logging_config import get_logger
from ...metrics import PERMISSION_STORE_ERRORS, record
from ..db import models

logger = get_logger(__name__)


def _to_domain(row: Any) -> DomainPermission:
    return DomainPermission(
        id=row.id,
        name=row.name,
        resource=row.resource,
        action=row.action,
        description=row.description,
    )


class SqlAlchemyPermissionStore:
    """Reads and replaces role/user permission grants.

    Every call opens its own session from ``session_factory`` so that the
    role and direct-grant reads of one resolution can run concurrently.
    Driver and connection failures are raised as ``StoreUnavailable``.
    """

    def __init__(self, session_factory):
        self.session_factory = session_factory

    @asynccontextmanager
    async def _session(self, operation: str):
        try:
            async with self.session_factory() as session:
                yield session
        except IntegrityError:
            # constraint violations are caller errors, not an unreachable store
            raise
        except (SQLAlchemyError, OSError) as e:
            record(PERMISSION_STORE_ERRORS, operation=operation)
            logger.warning("permission_store_unavailable", operation=operation, error=str(e))
            raise StoreUnavailable(operation) from e

    async def get_role_permissions(self, role_id: str) -> set[str]:
        """Permission names granted to a live role; empty for unknown or deleted roles."""
        rp = models.role_permissions
        async with self._session("get_role_permissions") as session:
            q = await session.execute(
                select(models.PermissionModel.name)
                .select_from(
                    rp.join(models.PermissionModel, rp.c.permission_id == models.PermissionModel.id)
                    .join(models.RoleModel, rp.c.role_id == models.RoleModel.id)
                )
                .where(rp.c.role_id == role_id, models.RoleModel.deleted_at.is_(None))
            )
            return {r[0] for r in q.all()}

    async def get_direct_permissions(self, user_id: str) -> set[str]:
        up = models.user_permissions
        async with self._session("get_direct_permissions") as session:
            q = await session.execute(
                select(models.PermissionModel.name)
                .select_from(
                    up.join(models.PermissionModel, up.c.permission_id == models.PermissionModel.id)
                    .join(models.UserModel, up.c.user_id == models.UserModel.id)
                )
                .where(up.c.user_id == user_id, models.UserModel.deleted_at.is_(None))
            )
            return {r[0] for r in q.all()}

    async def list_permissions(self) -> List[DomainPermission]:
        """List all available permissions, grouped for display."""
        async with self._session("list_permissions") as session:
            q = await session.execute(
                select(models.PermissionModel).order_by(
                    models.PermissionModel.resource, models.PermissionModel.action
                )
            )
            return [_to_domain(p) for p in q.scalars().all()]

    async def get_permissions_by_names(self, names: Iterable[str]) -> List[DomainPermission]:
        """Bulk fetch permissions by names to avoid N+1 queries."""
        names = list(names)
        if not names:
            return []
        async with self._session("get_permissions_by_names") as session:
            q = await session.execute(
                select(models.PermissionModel).where(models.PermissionModel.name.in_(names))
            )
            return [_to_domain(p) for p in q.scalars().all()]

    async def get_permissions_by_ids(self, ids: Iterable[str]) -> List[DomainPermission]:
        ids = list(ids)
        if not ids:
            return []
        async with self._session("get_permissions_by_ids") as session:
            q = await session.execute(
                select(models.PermissionModel).where(models.PermissionModel.id.in_(ids))
            )
            return [_to_domain(p) for p in q.scalars().all()]

    async def list_role_permission_details(self, role_id: str) -> List[DomainPermission]:
        rp = models.role_permissions
        async with self._session("list_role_permission_details") as session:
            q = await session.execute(
                select(models.PermissionModel)
                .select_from(
                    rp.join(models.PermissionModel, rp.c.permission_id == models.PermissionModel.id)
                )
                .where(rp.c.role_id == role_id)
                .order_by(models.PermissionModel.resource, models.PermissionModel.action)
            )
            return [_to_domain(p) for p in q.scalars().all()]

    async def list_direct_permission_details(self, user_id: str) -> List[DomainPermission]:
        up = models.user_permissions
        async with self._session("list_direct_permission_details") as session:
            q = await session.execute(
                select(models.PermissionModel)
                .select_from(
                    up.join(models.PermissionModel, up.c.permission_id == models.PermissionModel.id)
                )
                .where(up.c.user_id == user_id)
                .order_by(models.PermissionModel.resource, models.PermissionModel.action)
            )
            return [_to_domain(p) for p in q.scalars().all()]

    async def set_role_permissions(
        self, role_id: str, permission_ids: Iterable[str], assigned_by: Optional[str] = None
    ) -> None:
        """Replace a role's grants. Committed before returning."""
        await self._replace_grants(
            models.role_permissions, "role_id", role_id, permission_ids, assigned_by
        )

    async def set_user_permissions(
        self, user_id: str, permission_ids: Iterable[str], assigned_by: Optional[str] = None
    ) -> None:
        """Replace a user's direct grants. Committed before returning."""
        await self._replace_grants(
            models.user_permissions, "user_id", user_id, permission_ids, assigned_by
        )

    async def _replace_grants(
        self,
        table,
        owner_column: str,
        owner_id: str,
        permission_ids: Iterable[str],
        assigned_by: Optional[str],
    ) -> None:
        # dict.fromkeys keeps the first occurrence and drops repeats
        ids = list(dict.fromkeys(permission_ids))
        now = datetime.utcnow()
        async with self._session(f"set_{table.name}") as session:
            await session.execute(delete(table).where(table.c[owner_column] == owner_id))
            if ids:
                await session.execute(
                    insert(table).values(
                        [
                            {
                                owner_column: owner_id,
                                "permission_id": pid,
                                "assigned_at": now,
                                "assigned_by": assigned_by,
                            }
                            for pid in ids
                        ]
                    )
                )
            await session.commit()
        logger.info(
            "permission_grants_replaced",
            table=table.name,
            owner_id=owner_id,
            count=len(ids),
        )
