"""Invitation lifecycle.

An invitation starts ``pending`` and ends in exactly one terminal status:

- ``accepted``: the invitee redeemed the token.
- ``cancelled``: an administrator withdrew it.
- ``expired``: superseded by a regenerated invitation. Time-based expiry is
  evaluated against ``expires_at`` and does not require a status write.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from enum import StrEnum
from typing import Optional


class InvitationStatus(StrEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    CANCELLED = "cancelled"
    EXPIRED = "expired"


_TRANSITIONS = {
    InvitationStatus.PENDING: {
        InvitationStatus.ACCEPTED,
        InvitationStatus.CANCELLED,
        InvitationStatus.EXPIRED,
    },
}


@dataclass
class Invitation:
    id: Optional[str]
    user_id: str
    email: str
    name: str
    role_id: str
    token: str
    expires_at: datetime.datetime
    status: str = InvitationStatus.PENDING
    invited_by_id: Optional[str] = None
    accepted_at: Optional[datetime.datetime] = None
    created_at: Optional[datetime.datetime] = None
    updated_at: Optional[datetime.datetime] = None

    def can_transition_to(self, target: str) -> bool:
        try:
            src = InvitationStatus(self.status)
            tgt = InvitationStatus(target)
        except ValueError:
            return False
        return tgt in _TRANSITIONS.get(src, set())

    def is_expired(self, now: datetime.datetime) -> bool:
        return self.expires_at <= now

    def is_redeemable(self, now: datetime.datetime) -> bool:
        return self.status == InvitationStatus.PENDING and not self.is_expired(now)
