"""User domain entity for authentication.

Pure business logic, no framework dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime
from uuid import UUID

from finauth.domain.enums import PlanTier, UserStatus

DEFAULT_ROLES: tuple[str, ...] = ("member",)


def build_display_name(
    email: str, first_name: str | None = None, last_name: str | None = None
) -> str:
    """Derive the name shown in the dashboard header.

    Uses the given names when present, otherwise the local part of the email.

    Example:
        >>> build_display_name("casey@example.com", "Casey", "Patel")
        'Casey Patel'
        >>> build_display_name("casey@example.com")
        'casey'
    """
    parts = [part for part in (first_name, last_name) if part]
    if parts:
        return " ".join(parts)
    return email.split("@", 1)[0] or email


@dataclass
class User:
    """User domain entity.

    Business Rules:
        - Email is unique and stored lower-cased
        - Suspended accounts can neither log in nor refresh a session
        - emailVerifiedAt stays None until a verification token is consumed
        - Two-factor login is required once two_factor_enrolled is True

    Attributes:
        id: Unique user identifier.
        email: Normalized (lower-cased) email address.
        password_hash: Bcrypt hash, never plaintext.
        display_name: Name shown in the UI and carried in the session cookie.
        roles: Role names granted to the user.
        status: Account lifecycle status.
        plan_tier: Subscription plan.
        created_at: Creation timestamp.
        updated_at: Last modification timestamp.
        first_name: Optional given name.
        last_name: Optional family name.
        timezone: Optional IANA timezone name.
        email_verified_at: When the email was verified (None if unverified).
        last_login_at: Last successful login.
        two_factor_enrolled: Whether TOTP two-factor is active.
        totp_secret: Base32 TOTP secret (set during enrollment).
    """

    id: UUID
    email: str
    password_hash: str
    display_name: str
    status: UserStatus
    plan_tier: PlanTier
    created_at: datetime
    updated_at: datetime
    roles: list[str] = field(default_factory=lambda: list(DEFAULT_ROLES))
    first_name: str | None = None
    last_name: str | None = None
    timezone: str | None = None
    email_verified_at: datetime | None = None
    last_login_at: datetime | None = None
    two_factor_enrolled: bool = False
    totp_secret: str | None = None

    @property
    def is_email_verified(self) -> bool:
        """True once an email verification token has been consumed."""
        return self.email_verified_at is not None

    def is_suspended(self) -> bool:
        """Check whether support has suspended the account.

        Returns:
            bool: True if the account is suspended.
        """
        return self.status == UserStatus.SUSPENDED
