"""Core shared kernel.

This module provides foundational utilities used across all layers:
- Result types for railway-oriented programming
- Base error class and error codes
- Settings

The core module has NO dependencies on other application layers.
"""

from finauth.core.enums import Environment, ErrorCode
from finauth.core.errors import DomainError
from finauth.core.result import Failure, Result, Success

__all__ = [
    "DomainError",
    "Environment",
    "ErrorCode",
    "Failure",
    "Result",
    "Success",
]
