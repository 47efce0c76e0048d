"""Persisted token records.

Only hashes of token secrets are held here. The plaintext value exists
exactly once, in the response to the client that requested it.
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass
class RefreshToken:
    """A refresh token row in the rotation chain.

    Rotation revokes the presented token and links it to its successor
    through ``replaced_by_token_id``. A revoked token never validates again.

    Attributes:
        id: Lookup id, the first segment of the ``{id}.{secret}`` wire value.
        user_id: Owning user.
        token_hash: SHA-256 hex digest of the secret segment.
        issued_at: When the token was issued.
        expires_at: Hard expiry.
        revoked_at: When the token was revoked (None while active).
        replaced_by_token_id: Successor issued by rotation.
        ip_address: Client address at issuance.
        user_agent: Client user agent at issuance.
    """

    id: UUID
    user_id: UUID
    token_hash: str
    issued_at: datetime
    expires_at: datetime
    revoked_at: datetime | None = None
    replaced_by_token_id: UUID | None = None
    ip_address: str | None = None
    user_agent: str | None = None

    @property
    def is_revoked(self) -> bool:
        return self.revoked_at is not None

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


@dataclass
class SingleUseToken:
    """Base shape of password reset and email verification tokens.

    Attributes:
        id: Row identifier.
        user_id: Owning user.
        token_hash: SHA-256 hex digest of the emailed token.
        expires_at: Hard expiry.
        created_at: Issuance time.
        consumed_at: When the token was used (None while unused).
    """

    id: UUID
    user_id: UUID
    token_hash: str
    expires_at: datetime
    created_at: datetime
    consumed_at: datetime | None = None

    def is_usable(self, now: datetime) -> bool:
        """A token is usable once, and only before it expires."""
        return self.consumed_at is None and now < self.expires_at


@dataclass
class PasswordResetToken(SingleUseToken):
    """Single-use token mailed by the forgot-password flow."""


@dataclass
class EmailVerificationToken(SingleUseToken):
    """Single-use token mailed after signup."""
