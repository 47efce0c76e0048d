"""Auth command package exports."""

from finauth.application.commands.auth_commands import (
    LoginInput,
    PasswordResetConfirmInput,
    PasswordResetRequestInput,
    RequestContext,
    SignupInput,
    TwoFactorBackupSubmission,
    TwoFactorCodeSubmission,
    TwoFactorSubmission,
    VerifyEmailInput,
)

__all__ = [
    "LoginInput",
    "PasswordResetConfirmInput",
    "PasswordResetRequestInput",
    "RequestContext",
    "SignupInput",
    "TwoFactorBackupSubmission",
    "TwoFactorCodeSubmission",
    "TwoFactorSubmission",
    "VerifyEmailInput",
]
