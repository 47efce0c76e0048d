"""Authentication commands (inputs to AuthService operations).

All commands are immutable (frozen=True) and keyword-only (kw_only=True).
Field-level validation (email format, password strength) happens at the
edge, in the request schemas; the service re-normalizes emails itself.
"""

from dataclasses import dataclass, field
from typing import Literal
from uuid import UUID

from finauth.domain.enums import PlanTier


@dataclass(frozen=True, kw_only=True)
class RequestContext:
    """Client context attached to every auth operation.

    Attributes:
        ip_address: Client address (after proxy resolution).
        user_agent: Client user agent.
    """

    ip_address: str | None = None
    user_agent: str | None = None


@dataclass(frozen=True, kw_only=True)
class SignupInput:
    """Create an account.

    Attributes:
        email: Email address (normalized by the service).
        password: Plaintext password (hashed by the service).
        accept_terms: Must be True.
        first_name: Optional given name.
        last_name: Optional family name.
        marketing_opt_in: Recorded in the audit event.
        plan_tier: Chosen plan (default free).
        timezone: Optional IANA timezone.

    Example:
        >>> SignupInput(email="casey@example.com", password="Sup3rSecurePass!", accept_terms=True)
    """

    email: str
    password: str = field(repr=False)
    accept_terms: bool
    first_name: str | None = None
    last_name: str | None = None
    marketing_opt_in: bool = False
    plan_tier: PlanTier = PlanTier.FREE
    timezone: str | None = None


@dataclass(frozen=True, kw_only=True)
class LoginInput:
    """Password login.

    Attributes:
        email: Email address.
        password: Plaintext password.
        remember_me: Long-lived refresh token when True.
    """

    email: str
    password: str = field(repr=False)
    remember_me: bool = False


@dataclass(frozen=True, kw_only=True)
class TwoFactorCodeSubmission:
    """Second login step with an authenticator code."""

    challenge_id: UUID
    code: str = field(repr=False)
    mode: Literal["code"] = "code"


@dataclass(frozen=True, kw_only=True)
class TwoFactorBackupSubmission:
    """Second login step with a one-time backup code."""

    challenge_id: UUID
    backup_code: str = field(repr=False)
    mode: Literal["backup"] = "backup"


type TwoFactorSubmission = TwoFactorCodeSubmission | TwoFactorBackupSubmission


@dataclass(frozen=True, kw_only=True)
class PasswordResetRequestInput:
    """Ask for a password reset email."""

    email: str


@dataclass(frozen=True, kw_only=True)
class PasswordResetConfirmInput:
    """Set a new password with an emailed reset token."""

    token: str = field(repr=False)
    new_password: str = field(repr=False)


@dataclass(frozen=True, kw_only=True)
class VerifyEmailInput:
    """Confirm an email address with an emailed verification token."""

    token: str = field(repr=False)
