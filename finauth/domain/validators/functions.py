"""Centralized validation functions.

Validators are pure functions that raise ValueError on failure. They are
attached to request fields through the Annotated types in
``finauth.domain.types``.
"""

import re

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PASSWORD_SYMBOLS = set("!@#$%^&*()_+-=[]{};':\"\\|,.<>/?`~")
PASSWORD_MIN_LENGTH = 12
PASSWORD_MAX_LENGTH = 128


def validate_email(v: str) -> str:
    """Validate email format.

    Args:
        v: Email address to validate.

    Returns:
        Normalized email (trimmed, lowercase).

    Raises:
        ValueError: If email format is invalid.

    Example:
        >>> validate_email(" Casey@Example.COM ")
        'casey@example.com'
    """
    value = v.strip()
    if not EMAIL_PATTERN.match(value):
        raise ValueError("Invalid email format")
    return value.lower()


def validate_strong_password(v: str) -> str:
    """Validate password strength.

    Requirements:
        - 12 to 128 characters
        - At least one uppercase letter, one lowercase letter and one digit
        - At least one symbol

    Args:
        v: Password to validate.

    Returns:
        Password unchanged (validation only).

    Raises:
        ValueError: If password doesn't meet requirements.

    Example:
        >>> validate_strong_password("Sup3rSecurePass!")
        'Sup3rSecurePass!'
        >>> validate_strong_password("weak")
        ValueError: Password must be at least 12 characters
    """
    if len(v) < PASSWORD_MIN_LENGTH:
        raise ValueError(f"Password must be at least {PASSWORD_MIN_LENGTH} characters")
    if len(v) > PASSWORD_MAX_LENGTH:
        raise ValueError(f"Password must be at most {PASSWORD_MAX_LENGTH} characters")
    if not any(c.isupper() for c in v):
        raise ValueError("Password must contain uppercase letter")
    if not any(c.islower() for c in v):
        raise ValueError("Password must contain lowercase letter")
    if not any(c.isdigit() for c in v):
        raise ValueError("Password must contain digit")
    if not any(c in PASSWORD_SYMBOLS for c in v):
        raise ValueError("Password must contain special character")
    return v


def validate_opaque_token(v: str) -> str:
    """Validate an emailed single-use token (urlsafe base64).

    Raises:
        ValueError: If the token contains characters outside the urlsafe alphabet.
    """
    value = v.strip()
    if not value:
        raise ValueError("Token cannot be empty")
    if not re.fullmatch(r"[A-Za-z0-9_-]+", value):
        raise ValueError("Token format is invalid")
    return value


def normalize_optional_string(v: str | None) -> str | None:
    """Trim a free-text value and turn blanks into None.

    Example:
        >>> normalize_optional_string("  Casey ")
        'Casey'
        >>> normalize_optional_string("   ") is None
        True
    """
    if v is None:
        return None
    trimmed = v.strip()
    return trimmed or None
