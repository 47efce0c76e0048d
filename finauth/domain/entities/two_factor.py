"""Two-factor login state."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass
class TwoFactorChallenge:
    """Pending second step of a login.

    Created when a user with two-factor enrolled passes the password check.
    Tokens are only issued once the challenge is completed, and a challenge
    can be completed exactly once.

    Attributes:
        id: Challenge identifier returned to the client.
        user_id: User who passed the password step.
        expires_at: Deadline for submitting a code.
        created_at: Creation time.
        remember_me: Carried over from the login request to size the refresh token.
        consumed_at: When the challenge was completed.
    """

    id: UUID
    user_id: UUID
    expires_at: datetime
    created_at: datetime
    remember_me: bool = False
    consumed_at: datetime | None = None

    def is_pending(self, now: datetime) -> bool:
        return self.consumed_at is None and now < self.expires_at


@dataclass
class BackupCode:
    """One-time recovery code. Stored as a SHA-256 digest."""

    id: UUID
    user_id: UUID
    code_hash: str
    created_at: datetime
    used_at: datetime | None = None
