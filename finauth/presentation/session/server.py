"""Server-side session helpers for route handlers.

Handlers pass the request cookies explicitly; nothing here reads ambient
request state.
"""

from collections.abc import Mapping
from datetime import datetime

from finauth.presentation.session.cookie import (
    SESSION_COOKIE_NAME,
    SessionCookiePayload,
    parse_session_cookie,
)


def get_server_session(
    cookies: Mapping[str, str], *, now: datetime | None = None
) -> SessionCookiePayload | None:
    """Return the valid session carried by the request cookies, if any."""
    return parse_session_cookie(cookies.get(SESSION_COOKIE_NAME), now=now)


def is_authenticated(cookies: Mapping[str, str], *, now: datetime | None = None) -> bool:
    return get_server_session(cookies, now=now) is not None
