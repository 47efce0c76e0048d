"""Opaque token helpers.

Emailed single-use tokens, refresh secrets and backup codes are high-entropy
random values, so a plain SHA-256 digest is enough to make a stolen database
useless: there is nothing to brute-force. Lookups by digest stay indexable,
which a salted password hash would prevent.
"""

import hashlib
import hmac
import secrets


def generate_opaque_token(num_bytes: int = 32) -> str:
    """Return a urlsafe base64 token with ``num_bytes`` of entropy."""
    return secrets.token_urlsafe(num_bytes)


def hash_opaque_token(token: str) -> str:
    """SHA-256 hex digest of a token, as stored in the database.

    Example:
        >>> len(hash_opaque_token("abc"))
        64
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def verify_opaque_token(token: str, token_hash: str) -> bool:
    """Constant-time check of a presented token against its stored digest."""
    return hmac.compare_digest(hash_opaque_token(token), token_hash)
