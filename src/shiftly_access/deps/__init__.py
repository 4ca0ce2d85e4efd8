"""Dependency injection for FastAPI.

This package provides all FastAPI dependency functions organized by responsibility:
- providers: app-state providers (settings, permission cache/store, authorization service)
- injection: database session, repository and service injection, current principal
- auth: permission-gating dependency factories
"""

from .auth import require_any_permission, require_permission, require_principal
from .injection import (
    get_current_user,
    get_db,
    get_invalidator,
    get_invitation_service,
    get_repos,
    get_role_service,
    get_team_service,
    get_user_service,
)
from .providers import (
    get_authorization_service,
    get_permission_cache,
    get_permission_store,
    get_settings,
)

__all__ = [
    # Providers
    "get_settings",
    "get_permission_cache",
    "get_permission_store",
    "get_authorization_service",
    # Injection
    "get_db",
    "get_repos",
    "get_invalidator",
    "get_role_service",
    "get_user_service",
    "get_team_service",
    "get_invitation_service",
    "get_current_user",
    # Auth
    "require_permission",
    "require_any_permission",
    "require_principal",
]
