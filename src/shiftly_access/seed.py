"""Seed the capability catalog and the built-in roles.

Safe to run repeatedly: missing permissions and roles are inserted, existing
roles and their grants are left as they are. A built-in default role is
inserted as non-default when a live default already exists.
"""

from datetime import datetime

from sqlalchemy import insert, select
from sqlalchemy.ext.asyncio import AsyncSession

from .domain.catalog import DEFAULT_ROLES, PERMISSION_DEFINITIONS
from .infrastructure.db import models
from .logging_config import get_logger

logger = get_logger(__name__)


async def seed_catalog(session: AsyncSession) -> dict:
    """Insert missing catalog rows. Returns counts of what was created."""
    q = await session.execute(select(models.PermissionModel.name, models.PermissionModel.id))
    perm_ids = {name: pid for name, pid in q.all()}

    new_perms = [
        models.PermissionModel(
            name=d.name, resource=d.resource, action=d.action, description=d.description
        )
        for d in PERMISSION_DEFINITIONS
        if d.name not in perm_ids
    ]
    if new_perms:
        session.add_all(new_perms)
        await session.flush()
        perm_ids.update({p.name: p.id for p in new_perms})

    q = await session.execute(select(models.RoleModel.name))
    existing_roles = set(q.scalars().all())
    q = await session.execute(
        select(models.RoleModel.id).where(
            models.RoleModel.is_default.is_(True), models.RoleModel.deleted_at.is_(None)
        )
    )
    has_default = q.first() is not None

    created_roles = 0
    for definition in DEFAULT_ROLES:
        if definition.name in existing_roles:
            logger.debug("seed_role_exists", role=definition.name)
            continue
        role = models.RoleModel(
            name=definition.name,
            description=definition.description,
            is_system=definition.is_system,
            # keep a live default chosen earlier
            is_default=definition.is_default and not has_default,
        )
        session.add(role)
        await session.flush()
        has_default = has_default or role.is_default
        now = datetime.utcnow()
        await session.execute(
            insert(models.role_permissions).values(
                [
                    {"role_id": role.id, "permission_id": perm_ids[str(p)], "assigned_at": now}
                    for p in definition.permissions
                ]
            )
        )
        created_roles += 1

    await session.commit()
    logger.info("catalog_seeded", permissions=len(new_perms), roles=created_roles)
    return {"permissions": len(new_perms), "roles": created_roles}
