"""Edge security helpers."""

from finauth.presentation.security.csrf import (
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    constant_time_compare,
    generate_csrf_token,
    is_safe_method,
)

__all__ = [
    "CSRF_COOKIE_NAME",
    "CSRF_HEADER_NAME",
    "constant_time_compare",
    "generate_csrf_token",
    "is_safe_method",
]
