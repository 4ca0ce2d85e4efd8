from typing import List

from fastapi import APIRouter, Depends

from ..deps import get_authorization_service, get_current_user, get_permission_store
from ..deps.auth import require_principal
from ..ports.repositories import PermissionStore
from ..schemas.permission import EffectivePermissionsResponse, PermissionResponse
from ..services.authorization_service import AuthorizationService

router = APIRouter(prefix="/api/v1/permissions", tags=["permissions"])


@router.get("/me", response_model=EffectivePermissionsResponse)
async def get_my_permissions(
    current_user=Depends(get_current_user),
    authz: AuthorizationService = Depends(get_authorization_service),
):
    """
    Current principal's effective permissions, for client-side UI gating.

    Always read from the store; the cached entry is refreshed as a side effect.
    """
    user_id, role_id = require_principal(current_user)
    resolved = await authz.get_effective_permissions(user_id, role_id)
    return EffectivePermissionsResponse.from_resolved(role_id, resolved)


@router.get("", response_model=List[PermissionResponse])
async def list_permissions(
    current_user=Depends(get_current_user),
    store: PermissionStore = Depends(get_permission_store),
):
    """List the permission catalog for role and user forms."""
    require_principal(current_user)
    return [PermissionResponse.model_validate(p) for p in await store.list_permissions()]
