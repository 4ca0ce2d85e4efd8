"""Authorization dependency factories for FastAPI endpoints.

Permissions are resolved through ``AuthorizationService`` on every request
(served from the permission cache when fresh); nothing the client sends is
trusted.
"""

from typing import Any, List

from fastapi import Depends, HTTPException
from starlette import status

from ..domain.catalog import is_known_permission
from ..domain.permission import AccessDecision
from ..schemas.permission import AccessErrorDetail
from ..services.authorization_service import AuthorizationService
from .injection import get_current_user
from .providers import get_authorization_service


def _catalog_names(permission_names) -> List[str]:
    """Names outside the catalog fail when the route is declared."""
    unknown = [n for n in permission_names if not is_known_permission(n)]
    if unknown:
        raise ValueError(f"Unknown permission names: {', '.join(unknown)}")
    return list(permission_names)


def require_principal(current_user: Any) -> tuple[str, str]:
    """Return (user_id, role_id) or raise 401 without a principal, 403 without a role."""
    if current_user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=AccessErrorDetail(error="Unauthorized", code="UNAUTHORIZED").as_detail(),
        )
    role_id = getattr(current_user, "role_id", None)
    if not role_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=AccessErrorDetail(error="No role assigned", code="NO_ROLE").as_detail(),
        )
    return current_user.id, role_id


def require_permission(*permission_names: str):
    """Dependency that passes only if the current user holds every listed permission."""
    required = _catalog_names(permission_names)

    async def dependency(
        current_user=Depends(get_current_user),
        authz: AuthorizationService = Depends(get_authorization_service),
    ) -> AccessDecision:
        user_id, role_id = require_principal(current_user)
        decision = await authz.check_all(user_id, role_id, required)
        if not decision:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=AccessErrorDetail(
                    error="Forbidden",
                    code="INSUFFICIENT_PERMISSIONS",
                    required=required,
                    missing=list(decision.missing),
                ).as_detail(),
            )
        return decision

    return dependency


def require_any_permission(*permission_names: str):
    """Dependency that passes if the current user holds any of the listed permissions."""
    required = _catalog_names(permission_names)

    async def dependency(
        current_user=Depends(get_current_user),
        authz: AuthorizationService = Depends(get_authorization_service),
    ) -> AccessDecision:
        user_id, role_id = require_principal(current_user)
        decision = await authz.check_any(user_id, role_id, required)
        if not decision:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=AccessErrorDetail(
                    error="Forbidden",
                    code="INSUFFICIENT_PERMISSIONS",
                    required_any=required,
                ).as_detail(),
            )
        return decision

    return dependency
