"""Validators package exports."""

from finauth.domain.validators.functions import (
    normalize_optional_string,
    validate_email,
    validate_opaque_token,
    validate_strong_password,
)

__all__ = [
    "normalize_optional_string",
    "validate_email",
    "validate_opaque_token",
    "validate_strong_password",
]
