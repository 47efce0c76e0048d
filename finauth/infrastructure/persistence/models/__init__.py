"""Database models. Importing this package registers every table on BaseModel.metadata."""

from finauth.infrastructure.persistence.models.audit_log import AuditLogModel
from finauth.infrastructure.persistence.models.tokens import (
    EmailVerificationTokenModel,
    PasswordResetTokenModel,
    RefreshTokenModel,
)
from finauth.infrastructure.persistence.models.two_factor import (
    BackupCodeModel,
    TwoFactorChallengeModel,
)
from finauth.infrastructure.persistence.models.user import UserModel

__all__ = [
    "AuditLogModel",
    "BackupCodeModel",
    "EmailVerificationTokenModel",
    "PasswordResetTokenModel",
    "RefreshTokenModel",
    "TwoFactorChallengeModel",
    "UserModel",
]
