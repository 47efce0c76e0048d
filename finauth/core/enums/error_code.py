"""Machine-readable error codes.

Codes follow the ENTITY_ACTION_REASON naming convention and travel inside
DomainError values. The presentation layer maps them to HTTP status codes.
"""

from enum import Enum


class ErrorCode(Enum):
    """Machine-readable error codes."""

    # Validation errors
    VALIDATION_FAILED = "validation_failed"
    TERMS_NOT_ACCEPTED = "terms_not_accepted"

    # Conflict errors
    EMAIL_ALREADY_EXISTS = "email_already_exists"

    # Authentication errors
    INVALID_CREDENTIALS = "invalid_credentials"
    TOKEN_INVALID = "token_invalid"
    TOKEN_INVALID_OR_EXPIRED = "token_invalid_or_expired"
    TWO_FACTOR_INVALID = "two_factor_invalid"

    # Authorization errors
    ACCOUNT_SUSPENDED = "account_suspended"
    TWO_FACTOR_NOT_ENROLLED = "two_factor_not_enrolled"
    TWO_FACTOR_ALREADY_ENROLLED = "two_factor_already_enrolled"

    # Resource errors
    USER_NOT_FOUND = "user_not_found"
