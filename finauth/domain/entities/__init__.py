"""Domain entities."""

from finauth.domain.entities.audit_event import AuditEvent
from finauth.domain.entities.tokens import (
    EmailVerificationToken,
    PasswordResetToken,
    RefreshToken,
    SingleUseToken,
)
from finauth.domain.entities.two_factor import BackupCode, TwoFactorChallenge
from finauth.domain.entities.user import DEFAULT_ROLES, User, build_display_name

__all__ = [
    "AuditEvent",
    "BackupCode",
    "DEFAULT_ROLES",
    "EmailVerificationToken",
    "PasswordResetToken",
    "RefreshToken",
    "SingleUseToken",
    "TwoFactorChallenge",
    "User",
    "build_display_name",
]
