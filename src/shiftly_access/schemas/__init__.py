"""Pydantic request/response models."""

from .permission import AccessErrorDetail, EffectivePermissionsResponse, PermissionResponse

__all__ = ["AccessErrorDetail", "EffectivePermissionsResponse", "PermissionResponse"]
