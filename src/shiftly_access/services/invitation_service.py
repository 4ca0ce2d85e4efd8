"""Service layer for invitation operations.

Invitations are issued for users that already exist; delivering the token
is the caller's concern.
"""

import secrets
from datetime import datetime, timedelta
from typing import Callable, List, Optional, Sequence

from ..domain.invitation import Invitation, InvitationStatus
from ..domain.user import User
from ..exceptions import InvalidInvitationError, NotFoundError
from ..logging_config import get_logger
from ..ports.repositories import InvitationRepository, UserRepository

logger = get_logger(__name__)

DEFAULT_INVITATION_TTL_SECONDS = 7 * 24 * 60 * 60


def generate_invitation_token() -> str:
    """64 hex characters from 32 random bytes."""
    return secrets.token_hex(32)


class InvitationService:
    def __init__(
        self,
        invitations_repo: InvitationRepository,
        users_repo: UserRepository,
        ttl_seconds: int = DEFAULT_INVITATION_TTL_SECONDS,
        clock: Callable[[], datetime] = datetime.utcnow,
    ):
        self.invitations_repo = invitations_repo
        self.users_repo = users_repo
        self.ttl = timedelta(seconds=ttl_seconds)
        self.clock = clock

    def _build(self, user: User, invited_by_id: Optional[str]) -> Invitation:
        return Invitation(
            id=None,
            user_id=user.id,  # type: ignore[arg-type]
            email=user.email,
            name=user.name,
            role_id=user.role_id,  # type: ignore[arg-type]
            token=generate_invitation_token(),
            expires_at=self.clock() + self.ttl,
            invited_by_id=invited_by_id,
        )

    async def create_invitation(self, user_id: str, invited_by_id: Optional[str] = None) -> Invitation:
        user = await self.users_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")
        [invitation] = await self.invitations_repo.create_many([self._build(user, invited_by_id)])
        logger.info("invitation_created", user_id=user_id, invitation_id=invitation.id)
        return invitation

    async def create_bulk_invitations(
        self, user_ids: Sequence[str], invited_by_id: Optional[str] = None
    ) -> List[Invitation]:
        """
        Raises:
            NotFoundError: If none of the users exist
        """
        users = await self.users_repo.get_by_ids(user_ids)
        if not users:
            raise NotFoundError("No users found")
        return await self.invitations_repo.create_many(
            [self._build(u, invited_by_id) for u in users]
        )

    async def regenerate_invitation(
        self, user_id: str, invited_by_id: Optional[str] = None
    ) -> Invitation:
        """
        Issue a fresh invitation, marking the user's pending ones ``expired``.

        Raises:
            NotFoundError: If the user is unknown
            InvalidInvitationError: If the user already accepted an invitation
        """
        user = await self.users_repo.get_by_id(user_id)
        if not user:
            raise NotFoundError("User not found")

        existing = await self.invitations_repo.list_by_user(user_id)
        if any(inv.status == InvitationStatus.ACCEPTED for inv in existing):
            raise InvalidInvitationError("User accepted invitation already")

        superseded = [
            inv.id
            for inv in existing
            if inv.can_transition_to(InvitationStatus.EXPIRED)
        ]
        if superseded:
            await self.invitations_repo.update_status(superseded, InvitationStatus.EXPIRED)

        [invitation] = await self.invitations_repo.create_many([self._build(user, invited_by_id)])
        logger.info(
            "invitation_regenerated",
            user_id=user_id,
            invitation_id=invitation.id,
            superseded=len(superseded),
        )
        return invitation

    async def cancel_invitation(self, user_id: str) -> None:
        """
        Raises:
            InvalidInvitationError: If the user has no pending invitation
        """
        pending = [
            inv.id
            for inv in await self.invitations_repo.list_by_user(user_id)
            if inv.status == InvitationStatus.PENDING
        ]
        if not pending:
            raise InvalidInvitationError("No active invitations")
        await self.invitations_repo.update_status(pending, InvitationStatus.CANCELLED)
        logger.info("invitation_cancelled", user_id=user_id, count=len(pending))

    async def accept_invitation(self, token: str) -> Invitation:
        """
        Redeem a token and mark the invitee's email verified.

        Raises:
            InvalidInvitationError: If the token is unknown, expired or not pending
        """
        invitation = await self.invitations_repo.get_by_token(token)
        now = self.clock()
        if not invitation or not invitation.is_redeemable(now):
            logger.warning("invitation_token_rejected")
            raise InvalidInvitationError("Invalid Token")

        await self.invitations_repo.update_status(
            [invitation.id], InvitationStatus.ACCEPTED, accepted_at=now  # type: ignore[list-item]
        )
        await self.users_repo.update(invitation.user_id, email_verified=True)
        invitation.status = InvitationStatus.ACCEPTED
        invitation.accepted_at = now
        logger.info("invitation_accepted", user_id=invitation.user_id, invitation_id=invitation.id)
        return invitation

    async def list_invitations(self) -> List[Invitation]:
        return await self.invitations_repo.list()
