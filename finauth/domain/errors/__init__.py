"""Domain errors package.

Usage:
    from finauth.domain.errors import InvalidCredentialsError, InvalidTokenError
"""

from finauth.domain.errors.auth_errors import (
    AccountSuspendedError,
    AuthError,
    EmailInUseError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    InvalidTokenError,
    InvalidTwoFactorCodeError,
    TermsNotAcceptedError,
    TwoFactorEnrollmentError,
    UserNotFoundError,
)

__all__ = [
    "AccountSuspendedError",
    "AuthError",
    "EmailInUseError",
    "InvalidCredentialsError",
    "InvalidOrExpiredTokenError",
    "InvalidTokenError",
    "InvalidTwoFactorCodeError",
    "TermsNotAcceptedError",
    "TwoFactorEnrollmentError",
    "UserNotFoundError",
]
