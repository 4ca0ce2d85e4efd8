import datetime
from dataclasses import dataclass, field
from typing import List, Optional

from .permission import Permission


@dataclass
class User:
    id: Optional[str]
    email: str
    name: str
    role_id: Optional[str]
    role_name: Optional[str] = None
    email_verified: bool = False
    image: Optional[str] = None
    direct_permissions: List[Permission] = field(default_factory=list)
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None
    deleted_at: Optional[datetime.datetime] = None

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None
