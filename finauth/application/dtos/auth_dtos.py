"""Authentication DTOs (results of AuthService operations).

DTOs:
    - AuthTokens: Access + refresh token pair
    - SignupResult, LoginResult, TwoFactorChallengeResult, RefreshResult
    - PasswordResetRequestResult, PasswordResetResult, VerifyEmailResult
    - TwoFactorEnrollmentStart, TwoFactorEnrollmentResult
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Literal
from uuid import UUID

from finauth.domain.entities import User


@dataclass(frozen=True, kw_only=True)
class AuthTokens:
    """Issued token pair.

    Attributes:
        access_token: Signed JWT (minutes).
        access_token_expires_at: Access token expiry.
        refresh_token: Opaque ``{id}.{secret}`` token (days).
        refresh_token_expires_at: Refresh token expiry.
        token_type: Always "bearer".
    """

    access_token: str = field(repr=False)
    access_token_expires_at: datetime
    refresh_token: str = field(repr=False)
    refresh_token_expires_at: datetime
    token_type: str = "bearer"

    @property
    def expires_in(self) -> int:
        """Access token lifetime in whole seconds from now (never negative)."""
        remaining = (self.access_token_expires_at - datetime.now(UTC)).total_seconds()
        return max(0, int(remaining))


@dataclass(frozen=True, kw_only=True)
class SignupDebug:
    """Non-production convenience values. Never populated in production."""

    email_verification_token: str


@dataclass(frozen=True, kw_only=True)
class SignupResult:
    user: User
    tokens: AuthTokens
    requires_email_verification: bool = True
    debug: SignupDebug | None = None


@dataclass(frozen=True, kw_only=True)
class LoginResult:
    user: User
    tokens: AuthTokens
    email_verified: bool


@dataclass(frozen=True, kw_only=True)
class TwoFactorChallengeResult:
    """Password accepted, second factor required before tokens are issued.

    Attributes:
        challenge_id: Identifier to send back with the code.
        expires_at: Deadline for completing the challenge.
        methods: Accepted submission modes.
        status: Always "needs_two_factor".
    """

    challenge_id: UUID
    expires_at: datetime
    methods: tuple[str, ...] = ("code", "backup")
    status: Literal["needs_two_factor"] = "needs_two_factor"


@dataclass(frozen=True, kw_only=True)
class RefreshResult:
    user: User
    tokens: AuthTokens


@dataclass(frozen=True, kw_only=True)
class PasswordResetRequestResult:
    requested: bool = True


@dataclass(frozen=True, kw_only=True)
class PasswordResetResult:
    user: User


@dataclass(frozen=True, kw_only=True)
class VerifyEmailResult:
    user: User


@dataclass(frozen=True, kw_only=True)
class TwoFactorEnrollmentStart:
    """Secret to load into an authenticator app."""

    secret: str = field(repr=False)
    provisioning_uri: str = field(repr=False)


@dataclass(frozen=True, kw_only=True)
class TwoFactorEnrollmentResult:
    """Enrollment confirmed. Backup codes are shown exactly once."""

    user: User
    backup_codes: list[str] = field(repr=False)
