"""Session cookie codec.

The edge session is a self-contained JSON document carried in the
``fm_session`` cookie. Nothing is stored server-side: every request re-parses
and re-validates the cookie, and logout is cookie deletion.

Wire format:
    percent-encoded (``encodeURIComponent`` compatible) compact JSON with
    camelCase keys, e.g.

    {"version":1,"kind":"authenticated",
     "user":{"id":"...","email":"casey@example.com","displayName":"Casey","roles":["member"]},
     "issuedAt":"2026-01-01T12:00:00.000Z","expiresAt":"2026-01-01T12:30:00.000Z"}

Usage:
    payload = session_payload_for_user(user, ttl_seconds=settings.session_ttl_seconds)
    response.set_cookie(
        SESSION_COOKIE_NAME,
        serialize_session_cookie(payload),
        max_age=get_cookie_max_age_seconds(payload),
        path=SESSION_COOKIE_PATH,
    )

    session = parse_session_cookie(request.cookies.get(SESSION_COOKIE_NAME))
"""

import math
from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any, Literal
from urllib.parse import quote, unquote

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    HttpUrl,
    ValidationError,
    field_serializer,
    field_validator,
)
from pydantic.alias_generators import to_camel

from finauth.domain.entities import User
from finauth.domain.types import Email

SESSION_COOKIE_NAME = "fm_session"
SESSION_COOKIE_PATH = "/"
SESSION_DEFAULT_TTL_SECONDS = 60 * 30

DEMO_USER_ID = "user-demo"
DEMO_USER_EMAIL = "demo@financemanager.app"
DEMO_DISPLAY_NAME = "Alex Demo"

# Characters encodeURIComponent leaves untouched
_URI_COMPONENT_SAFE = "-_.!~*'()"

type SessionKind = Literal["authenticated", "demo"]


class _CookieModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class SessionUser(_CookieModel):
    """User snapshot carried in the cookie."""

    id: str = Field(min_length=1)
    email: Email
    display_name: str = Field(min_length=1)
    roles: list[str] = Field(default_factory=list)
    avatar_url: HttpUrl | None = None


class SessionMetadata(_CookieModel):
    is_two_factor_enrolled: bool | None = None
    feature_flags: list[str] | None = None


class SessionCookiePayload(_CookieModel):
    """Validated session cookie document.

    Timestamps are normalized to UTC with millisecond precision so that a
    payload survives serialize/parse unchanged.
    """

    version: Literal[1] = 1
    kind: SessionKind
    user: SessionUser
    issued_at: datetime
    expires_at: datetime
    metadata: SessionMetadata | None = None

    @field_validator("issued_at", "expires_at", mode="before")
    @classmethod
    def require_iso_timestamp(cls, v: Any) -> datetime:
        # Epoch numbers and numeric strings are not accepted on the wire
        if isinstance(v, datetime):
            return v
        if not isinstance(v, str) or not v:
            raise ValueError("Value must be an ISO 8601 timestamp.")
        return datetime.fromisoformat(v)

    @field_validator("issued_at", "expires_at")
    @classmethod
    def normalize_timestamp(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            v = v.replace(tzinfo=UTC)
        v = v.astimezone(UTC)
        return v.replace(microsecond=(v.microsecond // 1000) * 1000)

    @field_serializer("issued_at", "expires_at")
    def serialize_timestamp(self, v: datetime) -> str:
        return v.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _now(now: datetime | None) -> datetime:
    return now if now is not None else datetime.now(UTC)


def create_session_payload(
    *,
    kind: SessionKind,
    user: SessionUser | Mapping[str, Any],
    metadata: SessionMetadata | Mapping[str, Any] | None = None,
    ttl_seconds: int | None = None,
    issued_at: datetime | None = None,
    expires_at: datetime | None = None,
) -> SessionCookiePayload:
    """Build a complete, validated payload.

    Args:
        kind: "authenticated" or "demo".
        user: User snapshot (model or camelCase/snake_case mapping).
        metadata: Optional metadata.
        ttl_seconds: Lifetime used when ``expires_at`` is omitted
            (default 1800).
        issued_at: Defaults to now.
        expires_at: Defaults to now + ttl.

    Returns:
        SessionCookiePayload.

    Raises:
        pydantic.ValidationError: If the input does not satisfy the schema.
    """
    now = datetime.now(UTC)
    ttl = ttl_seconds if ttl_seconds is not None else SESSION_DEFAULT_TTL_SECONDS
    return SessionCookiePayload.model_validate(
        {
            "version": 1,
            "kind": kind,
            "user": user,
            "issued_at": issued_at or now,
            "expires_at": expires_at or now + timedelta(seconds=ttl),
            "metadata": metadata,
        }
    )


def serialize_session_cookie(payload: SessionCookiePayload) -> str:
    """Validate and encode a payload into a cookie value.

    Raises:
        pydantic.ValidationError: If the payload was mutated into an invalid shape.
    """
    validated = SessionCookiePayload.model_validate(payload.model_dump())
    document = validated.model_dump_json(by_alias=True, exclude_none=True)
    return quote(document, safe=_URI_COMPONENT_SAFE)


def parse_session_cookie(
    raw: str | None, *, now: datetime | None = None
) -> SessionCookiePayload | None:
    """Decode and validate a cookie value. Never raises.

    Returns:
        The payload, or None when the value is missing, not decodable, fails
        the schema (which includes an unparsable expiry) or is expired.
    """
    if not raw:
        return None

    try:
        document = unquote(raw, errors="strict")
        payload = SessionCookiePayload.model_validate_json(document)
    except (UnicodeDecodeError, ValidationError):
        return None

    if is_session_expired(payload, now=now):
        return None
    return payload


def is_session_expired(
    session: SessionCookiePayload, *, now: datetime | None = None
) -> bool:
    """True once ``now >= expires_at``."""
    return _now(now) >= session.expires_at


def get_cookie_max_age_seconds(
    session: SessionCookiePayload, *, now: datetime | None = None
) -> int:
    """Remaining lifetime in whole seconds, rounded up, never negative."""
    remaining = (session.expires_at - _now(now)).total_seconds()
    return math.ceil(remaining) if remaining > 0 else 0


def session_payload_for_user(
    user: User, *, ttl_seconds: int = SESSION_DEFAULT_TTL_SECONDS
) -> SessionCookiePayload:
    """Authenticated session snapshot for a signed-in user."""
    return create_session_payload(
        kind="authenticated",
        user=SessionUser(
            id=str(user.id),
            email=user.email,
            display_name=user.display_name,
            roles=list(user.roles),
        ),
        metadata=SessionMetadata(is_two_factor_enrolled=user.two_factor_enrolled),
        ttl_seconds=ttl_seconds,
    )


def demo_session_payload(
    *, display_name: str | None = None, ttl_seconds: int = SESSION_DEFAULT_TTL_SECONDS
) -> SessionCookiePayload:
    """Session for the read-only demo workspace. No account is involved."""
    name = (display_name or "").strip() or DEMO_DISPLAY_NAME
    return create_session_payload(
        kind="demo",
        user=SessionUser(
            id=DEMO_USER_ID,
            email=DEMO_USER_EMAIL,
            display_name=name,
            roles=["demo"],
        ),
        metadata=SessionMetadata(feature_flags=["demo-mode"]),
        ttl_seconds=ttl_seconds,
    )
