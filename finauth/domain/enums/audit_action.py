"""Audit trail action types.

Every state transition of the auth core writes one audit event. The string
values are stable identifiers stored in the audit log.
"""

from enum import Enum


class AuditAction(str, Enum):
    """Auth events recorded in the audit log."""

    SIGNUP = "auth.signup"
    LOGIN = "auth.login"
    LOGIN_TWO_FACTOR_CHALLENGE = "auth.login.two-factor-challenge"
    LOGIN_TWO_FACTOR = "auth.login.two-factor"
    REFRESH = "auth.refresh"
    REFRESH_TOKEN_REUSE = "auth.refresh.reuse-detected"
    LOGOUT = "auth.logout"
    PASSWORD_RESET_REQUEST = "auth.password-reset-request"
    PASSWORD_RESET = "auth.password-reset"
    VERIFY_EMAIL = "auth.verify-email"
    TWO_FACTOR_ENROLLED = "auth.two-factor.enrolled"
