"""Dependency injection functions for FastAPI.

This module provides FastAPI Depends() functions for database sessions,
repositories, lifecycle services and the authenticated principal.
"""

from typing import Any, AsyncGenerator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..services.invalidation import PermissionInvalidator
from ..services.invitation_service import InvitationService
from ..services.role_service import RoleService
from ..services.team_service import TeamService
from ..services.user_service import UserService
from .providers import get_permission_cache, get_settings


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session from the app's session factory."""
    session_factory = getattr(request.app.state, "session_factory", None)
    if session_factory is None:
        raise RuntimeError("Database session factory not initialized.")
    async with session_factory() as db_session:
        yield db_session


def get_current_user(request: Request) -> Any:
    """The principal set by the identity provider's middleware, or None."""
    return getattr(request.state, "current_user", None)


def get_repos(request: Request, db_session: AsyncSession = Depends(get_db)) -> dict:
    from ..infrastructure.repositories import get_repositories

    return get_repositories(
        db_session, session_factory=getattr(request.app.state, "session_factory", None)
    )


def get_invalidator(request: Request) -> PermissionInvalidator:
    return PermissionInvalidator(get_permission_cache(request))


def get_role_service(
    repos: dict = Depends(get_repos),
    invalidator: PermissionInvalidator = Depends(get_invalidator),
) -> RoleService:
    return RoleService(repos["roles"], repos["permissions"], invalidator)


def get_user_service(
    repos: dict = Depends(get_repos),
    invalidator: PermissionInvalidator = Depends(get_invalidator),
) -> UserService:
    return UserService(repos["users"], repos["roles"], repos["permissions"], invalidator)


def get_team_service(repos: dict = Depends(get_repos)) -> TeamService:
    return TeamService(repos["teams"], repos["users"])


def get_invitation_service(
    request: Request, repos: dict = Depends(get_repos)
) -> InvitationService:
    settings = getattr(request.app.state, "settings", None) or get_settings()
    return InvitationService(
        repos["invitations"], repos["users"], ttl_seconds=settings.invitation_ttl_seconds
    )
