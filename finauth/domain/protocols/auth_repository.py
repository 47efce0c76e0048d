"""AuthRepository protocol (port) for the auth core.

One repository owns every piece of mutable shared state the auth flows touch:
users, refresh tokens, single-use tokens, two-factor challenges, backup codes
and the audit log.

Write discipline:
    - Every method returns only after its writes are durable.
    - Multi-step transitions (rotation, password reset, email verification,
      two-factor enrollment) are single methods executed atomically.
    - Consuming operations are conditional ("revoke iff not yet revoked",
      "consume iff not yet consumed") and report whether they won.

Implementations:
    - SqlAlchemyAuthRepository: finauth/infrastructure/persistence/repositories/
    - InMemoryAuthRepository: finauth/infrastructure/persistence/repositories/
"""

from datetime import datetime
from typing import Protocol
from uuid import UUID

from finauth.domain.entities import (
    AuditEvent,
    EmailVerificationToken,
    PasswordResetToken,
    RefreshToken,
    TwoFactorChallenge,
    User,
)


class AuthRepository(Protocol):
    """Persistence port for the auth core."""

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_user(self, user: User) -> User | None:
        """Insert a new user.

        Returns:
            The stored user, or None when the email is already registered
            (unique constraint, case-insensitive).
        """
        ...

    async def find_user_by_email(self, email: str) -> User | None:
        """Case-insensitive lookup by email."""
        ...

    async def find_user_by_id(self, user_id: UUID) -> User | None:
        ...

    async def update_last_login(self, user_id: UUID, logged_in_at: datetime) -> None:
        ...

    async def set_totp_secret(self, user_id: UUID, secret: str, now: datetime) -> None:
        """Store a pending TOTP secret (enrollment not yet confirmed)."""
        ...

    async def enable_two_factor(
        self, user_id: UUID, backup_code_hashes: list[str], now: datetime
    ) -> None:
        """Mark two-factor enrolled and replace the backup code set, atomically."""
        ...

    # ------------------------------------------------------------------
    # Refresh tokens
    # ------------------------------------------------------------------

    async def save_refresh_token(self, token: RefreshToken) -> None:
        ...

    async def find_refresh_token_by_id(self, token_id: UUID) -> RefreshToken | None:
        ...

    async def rotate_refresh_token(
        self, old_token_id: UUID, new_token: RefreshToken, now: datetime
    ) -> bool:
        """Revoke ``old_token_id`` and persist its successor in one transaction.

        The revoke is conditional on the old token not being revoked yet.
        When the condition fails nothing is written.

        Returns:
            True if this call performed the rotation, False if the old token
            was already revoked (a concurrent refresh won, or the token was
            replayed).
        """
        ...

    async def revoke_refresh_token(
        self,
        token_id: UUID,
        revoked_at: datetime,
        replaced_by_token_id: UUID | None = None,
    ) -> None:
        """Revoke a refresh token. Revoking a revoked or unknown token is a no-op."""
        ...

    async def revoke_refresh_token_chain(self, token_id: UUID, revoked_at: datetime) -> int:
        """Revoke every still-active successor reachable through replaced_by links.

        Returns:
            Number of tokens revoked by this call.
        """
        ...

    # ------------------------------------------------------------------
    # Single-use tokens
    # ------------------------------------------------------------------

    async def save_email_verification_token(self, token: EmailVerificationToken) -> None:
        ...

    async def complete_email_verification(
        self, token_hash: str, now: datetime
    ) -> User | None:
        """Consume a verification token and mark the user verified, atomically.

        Returns:
            The updated user, or None if the token is unknown, consumed or
            expired.
        """
        ...

    async def save_password_reset_token(self, token: PasswordResetToken) -> None:
        ...

    async def find_password_reset_token(self, token_hash: str) -> PasswordResetToken | None:
        ...

    async def complete_password_reset(
        self, token_hash: str, password_hash: str, now: datetime
    ) -> User | None:
        """Consume a reset token, store the new hash and revoke all refresh tokens.

        All three writes happen in one transaction.

        Returns:
            The updated user, or None if the token is unknown, consumed or
            expired.
        """
        ...

    # ------------------------------------------------------------------
    # Two-factor
    # ------------------------------------------------------------------

    async def save_two_factor_challenge(self, challenge: TwoFactorChallenge) -> None:
        ...

    async def find_two_factor_challenge(
        self, challenge_id: UUID
    ) -> TwoFactorChallenge | None:
        ...

    async def consume_two_factor_challenge(self, challenge_id: UUID, now: datetime) -> bool:
        """Mark a pending, unexpired challenge consumed. False if already used or expired."""
        ...

    async def redeem_backup_code(
        self, challenge_id: UUID, user_id: UUID, code_hash: str, now: datetime
    ) -> bool:
        """Consume a pending challenge and an unused backup code together.

        Either both are marked used or neither is. False if the challenge is
        consumed or expired, or the code is unknown or already used.
        """
        ...

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    async def create_audit_event(self, event: AuditEvent) -> None:
        ...
