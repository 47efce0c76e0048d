"""Authentication domain errors.

Every expected failure of the auth flows is one of these values, returned in
``Failure`` and mapped to an HTTP status by the presentation layer.

Mapping:
    EmailInUseError             -> 409
    TermsNotAcceptedError       -> 400
    InvalidCredentialsError     -> 401 (identical for unknown email and wrong password)
    AccountSuspendedError       -> 403
    InvalidTokenError           -> 401 (never says whether missing, expired or used)
    InvalidOrExpiredTokenError  -> 400 (reset and verification tokens)
    InvalidTwoFactorCodeError   -> 401

Usage:
    from finauth.domain.errors import InvalidCredentialsError

    if user is None or not password_ok:
        return Failure(error=InvalidCredentialsError())
"""

from dataclasses import dataclass

from finauth.core.enums import ErrorCode
from finauth.core.errors import DomainError


@dataclass(frozen=True, slots=True, kw_only=True)
class AuthError(DomainError):
    """Base class for auth flow failures."""


@dataclass(frozen=True, slots=True, kw_only=True)
class EmailInUseError(AuthError):
    """Signup with an email that already has an account."""

    code: ErrorCode = ErrorCode.EMAIL_ALREADY_EXISTS
    message: str = "An account already exists for this email."


@dataclass(frozen=True, slots=True, kw_only=True)
class TermsNotAcceptedError(AuthError):
    """Signup without accepting the terms of service."""

    code: ErrorCode = ErrorCode.TERMS_NOT_ACCEPTED
    message: str = "You must accept the terms of service."


@dataclass(frozen=True, slots=True, kw_only=True)
class InvalidCredentialsError(AuthError):
    """Login failed. Deliberately identical for every cause."""

    code: ErrorCode = ErrorCode.INVALID_CREDENTIALS
    message: str = "Email or password is incorrect."


@dataclass(frozen=True, slots=True, kw_only=True)
class AccountSuspendedError(AuthError):
    """Account suspended. Blocks login and refresh."""

    code: ErrorCode = ErrorCode.ACCOUNT_SUSPENDED
    message: str = "Your account is currently suspended. Please contact support."


@dataclass(frozen=True, slots=True, kw_only=True)
class InvalidTokenError(AuthError):
    """Refresh token or two-factor challenge is missing, expired, revoked or malformed."""

    code: ErrorCode = ErrorCode.TOKEN_INVALID
    message: str = "Token is invalid or expired."


@dataclass(frozen=True, slots=True, kw_only=True)
class InvalidOrExpiredTokenError(InvalidTokenError):
    """Password reset or email verification token cannot be consumed."""

    code: ErrorCode = ErrorCode.TOKEN_INVALID_OR_EXPIRED
    message: str = "Token is invalid or expired."


@dataclass(frozen=True, slots=True, kw_only=True)
class InvalidTwoFactorCodeError(AuthError):
    """Submitted TOTP or backup code was rejected."""

    code: ErrorCode = ErrorCode.TWO_FACTOR_INVALID
    message: str = "The verification code is invalid."


@dataclass(frozen=True, slots=True, kw_only=True)
class TwoFactorEnrollmentError(AuthError):
    """Enrollment requested in the wrong state (already enrolled, not started)."""


@dataclass(frozen=True, slots=True, kw_only=True)
class UserNotFoundError(AuthError):
    """Authenticated principal no longer exists."""

    code: ErrorCode = ErrorCode.USER_NOT_FOUND
    message: str = "User not found."
