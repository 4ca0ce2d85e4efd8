"""Providers for application-wide services held on ``app.state``.

The composition root (``wiring.create_app``) places the session factory,
permission store and permission cache on ``app.state``; these functions read
them per request so tests can swap any of them on a fresh app.
"""

from fastapi import Request

from ..config import Settings
from ..infrastructure.cache.permission_cache import PermissionCache
from ..ports.repositories import PermissionStore
from ..services.authorization_service import AuthorizationService

# Lazy singleton to avoid import-time side-effects
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create singleton Settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def get_permission_cache(request: Request) -> PermissionCache:
    cache = getattr(request.app.state, "permission_cache", None)
    if cache is None:
        raise RuntimeError("Permission cache not initialized. Build the app with create_app().")
    return cache


def get_permission_store(request: Request) -> PermissionStore:
    store = getattr(request.app.state, "permission_store", None)
    if store is None:
        raise RuntimeError("Permission store not initialized. Build the app with create_app().")
    return store


def get_authorization_service(request: Request) -> AuthorizationService:
    return AuthorizationService(get_permission_store(request), get_permission_cache(request))
