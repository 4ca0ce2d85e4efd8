"""Repository protocols for data access layer abstraction."""

from .invitation import InvitationRepository
from .permission import PermissionStore
from .role import RoleRepository
from .team import TeamRepository
from .user import UserRepository

__all__ = [
    "PermissionStore",
    "RoleRepository",
    "UserRepository",
    "TeamRepository",
    "InvitationRepository",
]
