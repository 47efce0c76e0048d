"""Annotated types with centralized validation.

Define validation once, use everywhere. Request schemas declare these types
and Pydantic runs the validators.

Usage:
    from finauth.domain.types import Email, Password

    class SignupRequest(BaseModel):
        email: Email
        password: Password
"""

from typing import Annotated

from pydantic import AfterValidator, Field

from finauth.domain.validators import (
    validate_email,
    validate_opaque_token,
    validate_strong_password,
)

Email = Annotated[
    str,
    Field(
        min_length=5,
        max_length=255,
        description="Email address",
        examples=["casey@example.com"],
    ),
    AfterValidator(validate_email),
]
"""Email address, trimmed and lower-cased.

Examples:
    >>> class LoginRequest(BaseModel):
    ...     email: Email
    >>> LoginRequest(email="Casey@Example.COM").email
    'casey@example.com'
"""

Password = Annotated[
    str,
    Field(
        min_length=12,
        max_length=128,
        description="Password with strength requirements",
        examples=["Sup3rSecurePass!"],
    ),
    AfterValidator(validate_strong_password),
]
"""New password: 12-128 chars with upper, lower, digit and symbol."""

LoginPassword = Annotated[
    str,
    Field(min_length=1, max_length=128, description="Password as typed at login"),
]
"""Login password. Strength rules are not re-checked at login."""

SingleUseTokenValue = Annotated[
    str,
    Field(
        min_length=16,
        max_length=256,
        description="Emailed password reset or verification token",
    ),
    AfterValidator(validate_opaque_token),
]
"""Password reset or email verification token (urlsafe base64)."""

TotpCode = Annotated[
    str,
    Field(
        min_length=6,
        max_length=8,
        pattern=r"^\d+$",
        description="Code from an authenticator app",
        examples=["492039"],
    ),
]
"""Time-based one-time code (digits only)."""

BackupCodeValue = Annotated[
    str,
    Field(
        min_length=8,
        max_length=32,
        description="One-time backup code",
        examples=["k7q2-mx9p"],
    ),
]
"""Backup code as printed for the user."""
