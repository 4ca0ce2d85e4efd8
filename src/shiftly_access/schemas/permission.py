from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from ..domain.permission import ResolvedPermissions


class PermissionResponse(BaseModel):
    """Response model for a single catalog permission."""

    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    resource: str
    action: str
    description: Optional[str] = None


class EffectivePermissionsResponse(BaseModel):
    """The current principal's permissions, for client-side UI gating."""

    permissions: List[str]
    role_id: Optional[str] = None
    role_permissions: List[str]
    direct_permissions: List[str]

    @classmethod
    def from_resolved(cls, role_id: Optional[str], resolved: ResolvedPermissions):
        return cls(
            permissions=sorted(resolved.all),
            role_id=role_id,
            role_permissions=sorted(resolved.role_permissions),
            direct_permissions=sorted(resolved.direct_permissions),
        )


class AccessErrorDetail(BaseModel):
    """Body of 401/403/503 authorization failures."""

    error: str
    code: str
    required: Optional[List[str]] = None
    required_any: Optional[List[str]] = None
    missing: Optional[List[str]] = None

    def as_detail(self) -> dict:
        return self.model_dump(exclude_none=True)
