"""Auth DTO package exports."""

from finauth.application.dtos.auth_dtos import (
    AuthTokens,
    LoginResult,
    PasswordResetRequestResult,
    PasswordResetResult,
    RefreshResult,
    SignupDebug,
    SignupResult,
    TwoFactorChallengeResult,
    TwoFactorEnrollmentResult,
    TwoFactorEnrollmentStart,
    VerifyEmailResult,
)

__all__ = [
    "AuthTokens",
    "LoginResult",
    "PasswordResetRequestResult",
    "PasswordResetResult",
    "RefreshResult",
    "SignupDebug",
    "SignupResult",
    "TwoFactorChallengeResult",
    "TwoFactorEnrollmentResult",
    "TwoFactorEnrollmentStart",
    "VerifyEmailResult",
]
