"""Capability catalog: the closed set of grantable permission names.

Format is ``resource:action``. ``*`` and ``resource:*`` are ordinary grantable
rows, not computed values. Keep the frontend copy of this list in sync.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import List


class PermissionName(StrEnum):
    # Wildcards
    ALL = "*"

    # Users - manage employee accounts
    USERS_READ = "users:read"
    USERS_CREATE = "users:create"
    USERS_UPDATE = "users:update"
    USERS_DELETE = "users:delete"
    USERS_ALL = "users:*"

    # Teams - departments, locations, groups
    TEAMS_READ = "teams:read"
    TEAMS_CREATE = "teams:create"
    TEAMS_UPDATE = "teams:update"
    TEAMS_DELETE = "teams:delete"
    TEAMS_ALL = "teams:*"

    # Schedules - create/assign/manage shifts
    SCHEDULES_READ = "schedules:read"
    SCHEDULES_CREATE = "schedules:create"
    SCHEDULES_UPDATE = "schedules:update"
    SCHEDULES_DELETE = "schedules:delete"
    SCHEDULES_PUBLISH = "schedules:publish"
    SCHEDULES_ALL = "schedules:*"

    # Employee self-service
    OWN_SCHEDULE_VIEW = "own-schedule:view"
    OWN_SCHEDULE_REQUEST = "own-schedule:request"

    # Shift swaps between employees
    SWAPS_REQUEST = "swaps:request"
    SWAPS_APPROVE = "swaps:approve"
    SWAPS_ALL = "swaps:*"

    # Roles & permissions management
    ROLES_READ = "roles:read"
    ROLES_CREATE = "roles:create"
    ROLES_UPDATE = "roles:update"
    ROLES_DELETE = "roles:delete"
    ROLES_ALL = "roles:*"

    # System settings
    SETTINGS_READ = "settings:read"
    SETTINGS_UPDATE = "settings:update"
    SETTINGS_ALL = "settings:*"

    # Reports & analytics
    REPORTS_VIEW = "reports:view"
    REPORTS_EXPORT = "reports:export"
    REPORTS_ALL = "reports:*"


_DESCRIPTIONS = {
    PermissionName.ALL: "Full system access",
    PermissionName.USERS_ALL: "Full access to user management",
    PermissionName.USERS_READ: "View employees",
    PermissionName.USERS_CREATE: "Create new employees",
    PermissionName.USERS_UPDATE: "Edit employee profiles",
    PermissionName.USERS_DELETE: "Deactivate employees",
    PermissionName.TEAMS_ALL: "Full access to team management",
    PermissionName.TEAMS_READ: "View teams",
    PermissionName.TEAMS_CREATE: "Create teams",
    PermissionName.TEAMS_UPDATE: "Edit teams",
    PermissionName.TEAMS_DELETE: "Delete teams",
    PermissionName.SCHEDULES_ALL: "Full access to scheduling",
    PermissionName.SCHEDULES_READ: "View schedules",
    PermissionName.SCHEDULES_CREATE: "Create shifts",
    PermissionName.SCHEDULES_UPDATE: "Edit shifts",
    PermissionName.SCHEDULES_DELETE: "Delete shifts",
    PermissionName.SCHEDULES_PUBLISH: "Publish schedules",
    PermissionName.OWN_SCHEDULE_VIEW: "View own schedule",
    PermissionName.OWN_SCHEDULE_REQUEST: "Request changes to own schedule",
    PermissionName.SWAPS_ALL: "Full access to shift swaps",
    PermissionName.SWAPS_REQUEST: "Request shift swaps",
    PermissionName.SWAPS_APPROVE: "Approve shift swaps",
    PermissionName.ROLES_ALL: "Full access to roles and permissions",
    PermissionName.ROLES_READ: "View roles",
    PermissionName.ROLES_CREATE: "Create roles",
    PermissionName.ROLES_UPDATE: "Edit roles",
    PermissionName.ROLES_DELETE: "Delete roles",
    PermissionName.SETTINGS_ALL: "Full access to settings",
    PermissionName.SETTINGS_READ: "View settings",
    PermissionName.SETTINGS_UPDATE: "Modify settings",
    PermissionName.REPORTS_ALL: "Full access to reports",
    PermissionName.REPORTS_VIEW: "View reports",
    PermissionName.REPORTS_EXPORT: "Export reports",
}


def split_permission_name(name: str) -> tuple[str, str]:
    """Return the (resource, action) display pair for a permission name.

    Wildcard actions are displayed as ``all``; the global wildcard is
    ``("all", "all")``.
    """
    if name == PermissionName.ALL:
        return "all", "all"
    resource, _, action = name.partition(":")
    if action in ("", "*"):
        action = "all"
    return resource, action


@dataclass(frozen=True)
class PermissionDefinition:
    name: str
    resource: str
    action: str
    description: str | None = None


@dataclass(frozen=True)
class RoleDefinition:
    name: str
    description: str
    is_system: bool = True
    is_default: bool = False
    permissions: List[str] = field(default_factory=list)


PERMISSION_DEFINITIONS: List[PermissionDefinition] = [
    PermissionDefinition(str(p), *split_permission_name(p), description=_DESCRIPTIONS.get(p))
    for p in PermissionName
]


DEFAULT_ROLES: List[RoleDefinition] = [
    RoleDefinition(
        name="Admin",
        description="Full system access",
        permissions=[PermissionName.ALL],  # the wildcard covers everything
    ),
    RoleDefinition(
        name="Scheduler",
        description="Manage schedules, teams, and employees",
        permissions=[
            PermissionName.USERS_ALL,
            PermissionName.TEAMS_ALL,
            PermissionName.SCHEDULES_ALL,
            PermissionName.SWAPS_ALL,
            PermissionName.REPORTS_ALL,
        ],
    ),
    RoleDefinition(
        name="Operations Manager",
        description="Manage team schedules and approve swaps",
        permissions=[
            PermissionName.USERS_READ,
            PermissionName.TEAMS_READ,
            PermissionName.SCHEDULES_READ,
            PermissionName.SCHEDULES_UPDATE,
            PermissionName.SWAPS_APPROVE,
            PermissionName.OWN_SCHEDULE_VIEW,
            PermissionName.OWN_SCHEDULE_REQUEST,
        ],
    ),
    RoleDefinition(
        name="Team Lead",
        description="Manage team schedules and approve swaps",
        permissions=[
            PermissionName.USERS_READ,
            PermissionName.TEAMS_READ,
            PermissionName.SCHEDULES_READ,
            PermissionName.SWAPS_APPROVE,
            PermissionName.OWN_SCHEDULE_VIEW,
            PermissionName.OWN_SCHEDULE_REQUEST,
        ],
    ),
    RoleDefinition(
        name="Employee",
        description="View own schedule and request changes",
        is_default=True,  # new users get this role
        permissions=[
            PermissionName.OWN_SCHEDULE_VIEW,
            PermissionName.OWN_SCHEDULE_REQUEST,
            PermissionName.SWAPS_REQUEST,
        ],
    ),
]


def is_known_permission(name: str) -> bool:
    try:
        PermissionName(name)
    except ValueError:
        return False
    return True
