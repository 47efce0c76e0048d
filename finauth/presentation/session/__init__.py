"""Edge session cookie codec and helpers."""

from finauth.presentation.session.cookie import (
    DEMO_DISPLAY_NAME,
    DEMO_USER_EMAIL,
    DEMO_USER_ID,
    SESSION_COOKIE_NAME,
    SESSION_COOKIE_PATH,
    SESSION_DEFAULT_TTL_SECONDS,
    SessionCookiePayload,
    SessionMetadata,
    SessionUser,
    create_session_payload,
    demo_session_payload,
    get_cookie_max_age_seconds,
    is_session_expired,
    parse_session_cookie,
    serialize_session_cookie,
    session_payload_for_user,
)
from finauth.presentation.session.server import get_server_session, is_authenticated

__all__ = [
    "DEMO_DISPLAY_NAME",
    "DEMO_USER_EMAIL",
    "DEMO_USER_ID",
    "SESSION_COOKIE_NAME",
    "SESSION_COOKIE_PATH",
    "SESSION_DEFAULT_TTL_SECONDS",
    "SessionCookiePayload",
    "SessionMetadata",
    "SessionUser",
    "create_session_payload",
    "demo_session_payload",
    "get_cookie_max_age_seconds",
    "get_server_session",
    "is_authenticated",
    "is_session_expired",
    "parse_session_cookie",
    "serialize_session_cookie",
    "session_payload_for_user",
]
