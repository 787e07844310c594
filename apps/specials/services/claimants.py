"""Claimant identity and audit metadata value objects."""

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from .exceptions import ClaimValidationError

# Matches the guest_session_id column on claims and events
GUEST_SESSION_MAX_LENGTH = 128


@dataclass(frozen=True)
class Claimant:
    """
    Who is claiming: a signed-in user or a guest session, never both.

    Identities arrive already validated from the auth/guest collaborators;
    this object only enforces that exactly one of them is present and that a
    guest session id fits the ledger column.
    """
    user_id: Optional[UUID] = None
    guest_session_id: Optional[str] = None

    def __post_init__(self):
        has_user = self.user_id is not None
        has_guest = bool(self.guest_session_id)
        if has_user == has_guest:
            raise ClaimValidationError(
                "Claimant must be exactly one of a user or a guest session"
            )
        if has_guest and len(self.guest_session_id) > GUEST_SESSION_MAX_LENGTH:
            raise ClaimValidationError(
                f"Guest session id must be at most {GUEST_SESSION_MAX_LENGTH} characters"
            )

    @classmethod
    def for_user(cls, user_id):
        return cls(user_id=user_id)

    @classmethod
    def for_guest(cls, guest_session_id):
        return cls(guest_session_id=guest_session_id)

    @property
    def is_guest(self):
        return self.user_id is None

    def as_fields(self):
        """Model field values identifying this claimant."""
        return {'user_id': self.user_id, 'guest_session_id': self.guest_session_id}

    def __str__(self):
        return f"guest:{self.guest_session_id}" if self.is_guest else f"user:{self.user_id}"


@dataclass(frozen=True)
class ClaimMetadata:
    """Request details kept for audit. Never consulted for eligibility."""
    ip_address: Optional[str] = None
    user_agent: str = ''

    def as_fields(self):
        return {'ip_address': self.ip_address, 'user_agent': (self.user_agent or '')[:500]}
