"""Core enums package.

Usage:
    from finauth.core.enums import ErrorCode, Environment
"""

from finauth.core.enums.environment import Environment
from finauth.core.enums.error_code import ErrorCode

__all__ = ["ErrorCode", "Environment"]
