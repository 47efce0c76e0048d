"""Core errors package.

Usage:
    from finauth.core.errors import DomainError
"""

from finauth.core.errors.domain_error import DomainError

__all__ = ["DomainError"]
