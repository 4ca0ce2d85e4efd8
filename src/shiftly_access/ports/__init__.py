"""Ports package - defines interfaces for external dependencies.

Exports repository protocols for dependency inversion.
"""

from .repositories import (
    InvitationRepository,
    PermissionStore,
    RoleRepository,
    TeamRepository,
    UserRepository,
)

__all__ = [
    "PermissionStore",
    "RoleRepository",
    "UserRepository",
    "TeamRepository",
    "InvitationRepository",
]
