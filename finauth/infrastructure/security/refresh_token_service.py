"""Refresh token service.

Token Strategy:
    - Opaque composite tokens ``{id}.{secret}`` (NOT JWT)
    - id: UUIDv7, the repository lookup key
    - secret: 48 random bytes, urlsafe base64
    - Only the SHA-256 digest of the secret is stored
    - Rotated on every use
    - 30-day lifetime with remember me, capped at 7 days without
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import UUID

from uuid_extensions import uuid7

from finauth.domain.value_objects import CompositeToken
from finauth.infrastructure.security.opaque_token import (
    generate_opaque_token,
    hash_opaque_token,
    verify_opaque_token,
)

SECRET_BYTES = 48


@dataclass(frozen=True, slots=True, kw_only=True)
class IssuedRefreshToken:
    """Freshly generated refresh token.

    Attributes:
        id: Lookup id (first wire segment).
        token: Full wire value, returned to the client once.
        secret_hash: Digest to persist.
        issued_at: Issuance time.
        expires_at: Expiry time.
    """

    id: UUID
    token: str
    secret_hash: str
    issued_at: datetime
    expires_at: datetime


class RefreshTokenService:
    """Refresh token generation and verification.

    Usage:
        service = RefreshTokenService(expiration_days=30, short_expiration_days=7)
        issued = service.generate(remember_me=True)
        await repository.save_refresh_token(RefreshToken(id=issued.id, ...))

        # Later, with the token presented by the client
        parsed = CompositeToken.parse(raw)
        service.verify_secret(parsed.secret, record.token_hash)
    """

    def __init__(self, expiration_days: int = 30, short_expiration_days: int = 7) -> None:
        """Initialize refresh token service.

        Args:
            expiration_days: Lifetime when the user asked to be remembered.
            short_expiration_days: Upper bound on lifetime otherwise.
        """
        self._expiration_days = expiration_days
        self._short_expiration_days = short_expiration_days

    def calculate_expiration(self, issued_at: datetime, remember_me: bool = False) -> datetime:
        """Expiry for a token issued at ``issued_at``."""
        days = self._expiration_days
        if not remember_me:
            days = min(days, self._short_expiration_days)
        return issued_at + timedelta(days=days)

    def generate(self, remember_me: bool = False) -> IssuedRefreshToken:
        """Generate a new refresh token.

        Args:
            remember_me: Use the long lifetime.

        Returns:
            IssuedRefreshToken. Persist ``secret_hash``, return ``token``.
        """
        issued_at = datetime.now(UTC)
        token_id = uuid7()
        secret = generate_opaque_token(SECRET_BYTES)
        composite = CompositeToken(lookup_id=str(token_id), secret=secret)
        return IssuedRefreshToken(
            id=token_id,
            token=composite.format(),
            secret_hash=hash_opaque_token(secret),
            issued_at=issued_at,
            expires_at=self.calculate_expiration(issued_at, remember_me),
        )

    @staticmethod
    def parse(raw: str | None) -> tuple[UUID, str] | None:
        """Split a presented token into its lookup id and secret.

        Returns:
            (token_id, secret), or None if the value is malformed.
        """
        composite = CompositeToken.parse(raw)
        if composite is None:
            return None
        try:
            token_id = UUID(composite.lookup_id)
        except ValueError:
            return None
        return token_id, composite.secret

    @staticmethod
    def verify_secret(secret: str, secret_hash: str) -> bool:
        """Constant-time check of the secret segment against the stored digest."""
        return verify_opaque_token(secret, secret_hash)
