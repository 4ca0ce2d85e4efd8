import datetime
from dataclasses import dataclass, field
from typing import List, Optional


@dataclass
class Team:
    id: Optional[str]
    name: str
    description: Optional[str] = None
    member_ids: List[str] = field(default_factory=list)
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None
    deleted_at: Optional[datetime.datetime] = None
