import datetime
from dataclasses import dataclass, field
from typing import List, Optional

from .permission import Permission


@dataclass
class Role:
    id: Optional[str]
    name: str
    description: Optional[str] = None
    is_system: bool = False
    is_default: bool = False
    permissions: List[Permission] = field(default_factory=list)
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None
    deleted_at: Optional[datetime.datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    def can_delete(self) -> bool:
        """System roles are permanent; tombstoned roles are already gone."""
        return not self.is_system and not self.is_deleted

    def permission_names(self) -> List[str]:
        return [p.name for p in self.permissions]
