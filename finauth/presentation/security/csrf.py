"""Double-submit CSRF helpers.

The token lives in a cookie readable by client script, which mirrors it into
the ``x-csrf-token`` header on every unsafe request. The edge middleware
accepts the request only when both values are present and equal.
"""

import secrets

CSRF_COOKIE_NAME = "fm_csrf"
CSRF_HEADER_NAME = "x-csrf-token"
CSRF_TOKEN_BYTES = 32

SAFE_METHODS = frozenset({"GET", "HEAD", "OPTIONS", "TRACE"})


def generate_csrf_token() -> str:
    """Return 32 random bytes as 64 lowercase hex characters."""
    return secrets.token_hex(CSRF_TOKEN_BYTES)


def is_safe_method(method: str | None) -> bool:
    """Check whether an HTTP method is exempt from CSRF validation.

    A missing method is treated as GET.
    """
    if not method:
        return True
    return method.upper() in SAFE_METHODS


def constant_time_compare(a: str | None, b: str | None) -> bool:
    """Compare two tokens without leaking the position of the first mismatch.

    Only a length mismatch returns early. Every character pair of
    equal-length inputs is XOR-accumulated before the result is inspected.

    Args:
        a: First token (e.g. the cookie value).
        b: Second token (e.g. the header value).

    Returns:
        True only if both are non-empty and identical.
    """
    if not a or not b:
        return False
    if len(a) != len(b):
        return False

    result = 0
    for left, right in zip(a, b, strict=True):
        result |= ord(left) ^ ord(right)
    return result == 0
