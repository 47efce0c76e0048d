"""Unit tests for the session cookie codec.

Tests cover:
- Serialize/parse round trip (camelCase wire keys, millisecond UTC timestamps)
- Expiry handling (parse rejects expired sessions, max-age rounding)
- Malformed input never raises
- Demo and user session builders
- Server-side helpers reading from a cookie mapping
"""

import json
from datetime import UTC, datetime, timedelta
from urllib.parse import quote, unquote

import pytest
from freezegun import freeze_time
from pydantic import ValidationError
from uuid_extensions import uuid7

from finauth.domain.entities import User
from finauth.domain.enums import PlanTier, UserStatus
from finauth.presentation.session import (
    DEMO_DISPLAY_NAME,
    DEMO_USER_EMAIL,
    DEMO_USER_ID,
    SESSION_COOKIE_NAME,
    create_session_payload,
    demo_session_payload,
    get_cookie_max_age_seconds,
    get_server_session,
    is_authenticated,
    is_session_expired,
    parse_session_cookie,
    serialize_session_cookie,
    session_payload_for_user,
)

ISSUED_AT = datetime(2026, 1, 1, 12, 0, 0, tzinfo=UTC)
EXPIRES_AT = ISSUED_AT + timedelta(minutes=30)


def make_payload(**overrides):
    values = {
        "kind": "authenticated",
        "user": {
            "id": "user-123",
            "email": "casey@example.com",
            "displayName": "Casey Patel",
            "roles": ["member"],
        },
        "issued_at": ISSUED_AT,
        "expires_at": EXPIRES_AT,
    }
    values.update(overrides)
    return create_session_payload(**values)


@pytest.mark.unit
class TestSerializeSessionCookie:
    """Test encoding."""

    def test_wire_format_is_percent_encoded_camel_case_json(self):
        """Test the cookie value decodes to the documented JSON shape."""
        raw = serialize_session_cookie(make_payload())

        document = json.loads(unquote(raw))
        assert document == {
            "version": 1,
            "kind": "authenticated",
            "user": {
                "id": "user-123",
                "email": "casey@example.com",
                "displayName": "Casey Patel",
                "roles": ["member"],
            },
            "issuedAt": "2026-01-01T12:00:00.000Z",
            "expiresAt": "2026-01-01T12:30:00.000Z",
        }

    def test_cookie_value_has_no_reserved_characters(self):
        """Test the encoded value is safe to place in a Set-Cookie header."""
        raw = serialize_session_cookie(make_payload())

        for ch in ' ";,{}:':
            assert ch not in raw

    def test_round_trip_preserves_payload(self):
        """Test parse(serialize(p)) == p."""
        payload = make_payload(
            metadata={"isTwoFactorEnrolled": True, "featureFlags": ["beta"]},
        )

        parsed = parse_session_cookie(
            serialize_session_cookie(payload), now=ISSUED_AT + timedelta(minutes=1)
        )

        assert parsed == payload

    def test_timestamps_are_truncated_to_milliseconds(self):
        """Test sub-millisecond precision is dropped so round trips are stable."""
        payload = make_payload(issued_at=ISSUED_AT.replace(microsecond=123456))

        assert payload.issued_at.microsecond == 123000

    def test_naive_timestamps_are_treated_as_utc(self):
        """Test naive datetimes are interpreted as UTC."""
        payload = make_payload(issued_at=datetime(2026, 1, 1, 12, 0, 0))

        assert payload.issued_at == ISSUED_AT

    def test_invalid_user_is_rejected(self):
        """Test the schema refuses a user without a display name."""
        with pytest.raises(ValidationError):
            make_payload(user={"id": "x", "email": "casey@example.com", "displayName": ""})


@pytest.mark.unit
class TestParseSessionCookie:
    """Test decoding."""

    @pytest.mark.parametrize("raw", [None, "", "not-json", quote("{}"), quote("[1,2]"), "%E0%A4%A"])
    def test_malformed_values_return_none(self, raw):
        """Test parsing never raises on garbage."""
        assert parse_session_cookie(raw, now=ISSUED_AT) is None

    def test_invalid_utf8_returns_none(self):
        """Test a percent sequence that is not UTF-8 is rejected."""
        assert parse_session_cookie("%FF%FE", now=ISSUED_AT) is None

    def test_unknown_version_returns_none(self):
        """Test only version 1 documents are accepted."""
        document = json.loads(unquote(serialize_session_cookie(make_payload())))
        document["version"] = 2

        assert parse_session_cookie(quote(json.dumps(document)), now=ISSUED_AT) is None

    def test_unparsable_expiry_returns_none(self):
        """Test an expiry that is not a timestamp fails validation."""
        document = json.loads(unquote(serialize_session_cookie(make_payload())))
        document["expiresAt"] = "tomorrow-ish"

        assert parse_session_cookie(quote(json.dumps(document)), now=ISSUED_AT) is None

    @pytest.mark.parametrize(
        ("issued_at", "expires_at"),
        [(0, 4102444800), ("0", "4102444800"), (None, "2100-01-01T00:00:00.000Z")],
    )
    def test_non_iso_timestamps_return_none(self, issued_at, expires_at):
        """Test epoch numbers and numeric strings are not accepted as timestamps."""
        document = json.loads(unquote(serialize_session_cookie(make_payload())))
        document["issuedAt"] = issued_at
        document["expiresAt"] = expires_at

        assert parse_session_cookie(quote(json.dumps(document)), now=ISSUED_AT) is None

    def test_offset_timestamps_are_normalized_to_utc(self):
        document = json.loads(unquote(serialize_session_cookie(make_payload())))
        document["expiresAt"] = "2026-01-01T14:30:00.000+02:00"

        payload = parse_session_cookie(quote(json.dumps(document)), now=ISSUED_AT)

        assert payload.expires_at == EXPIRES_AT

    def test_unknown_keys_are_ignored(self):
        """Test extra fields from newer writers do not invalidate the cookie."""
        document = json.loads(unquote(serialize_session_cookie(make_payload())))
        document["theme"] = "dark"

        assert parse_session_cookie(quote(json.dumps(document)), now=ISSUED_AT) is not None

    def test_expired_session_returns_none(self):
        """Test a session is invalid at and after its expiry."""
        raw = serialize_session_cookie(make_payload())

        assert parse_session_cookie(raw, now=EXPIRES_AT - timedelta(seconds=1)) is not None
        assert parse_session_cookie(raw, now=EXPIRES_AT) is None
        assert parse_session_cookie(raw, now=EXPIRES_AT + timedelta(days=1)) is None

    def test_parse_defaults_to_current_time(self):
        """Test the wall clock is used when no time is given."""
        raw = serialize_session_cookie(make_payload())

        with freeze_time(ISSUED_AT + timedelta(minutes=10)):
            assert parse_session_cookie(raw) is not None
        with freeze_time(EXPIRES_AT + timedelta(minutes=10)):
            assert parse_session_cookie(raw) is None


@pytest.mark.unit
class TestSessionExpiry:
    """Test expiry helpers."""

    def test_is_session_expired(self):
        payload = make_payload()

        assert is_session_expired(payload, now=ISSUED_AT) is False
        assert is_session_expired(payload, now=EXPIRES_AT) is True

    def test_max_age_rounds_up(self):
        """Test partial seconds count as a whole second."""
        payload = make_payload()

        assert get_cookie_max_age_seconds(payload, now=ISSUED_AT) == 1800
        assert (
            get_cookie_max_age_seconds(payload, now=EXPIRES_AT - timedelta(milliseconds=1500))
            == 2
        )

    def test_max_age_never_negative(self):
        """Test an expired session has max-age zero."""
        payload = make_payload()

        assert get_cookie_max_age_seconds(payload, now=EXPIRES_AT + timedelta(hours=1)) == 0

    @freeze_time("2026-03-01 09:00:00")
    def test_default_ttl_is_thirty_minutes(self):
        """Test payloads built without explicit times last 1800 seconds."""
        payload = create_session_payload(
            kind="authenticated",
            user={"id": "u", "email": "casey@example.com", "displayName": "Casey"},
        )

        assert payload.expires_at - payload.issued_at == timedelta(seconds=1800)
        assert get_cookie_max_age_seconds(payload) == 1800


@pytest.mark.unit
class TestSessionBuilders:
    """Test payload builders."""

    def test_demo_session(self):
        """Test the demo session uses the fixed demo identity."""
        payload = demo_session_payload()

        assert payload.kind == "demo"
        assert payload.user.id == DEMO_USER_ID
        assert payload.user.email == DEMO_USER_EMAIL
        assert payload.user.display_name == DEMO_DISPLAY_NAME
        assert payload.user.roles == ["demo"]
        assert payload.metadata.feature_flags == ["demo-mode"]

    def test_demo_session_custom_name(self):
        """Test a blank name falls back to the default demo name."""
        assert demo_session_payload(display_name="Jordan").user.display_name == "Jordan"
        assert demo_session_payload(display_name="   ").user.display_name == DEMO_DISPLAY_NAME

    def test_user_session(self):
        """Test an authenticated session mirrors the user."""
        now = datetime.now(UTC)
        user = User(
            id=uuid7(),
            email="casey@example.com",
            password_hash="x",
            display_name="Casey Patel",
            status=UserStatus.ACTIVE,
            plan_tier=PlanTier.FREE,
            created_at=now,
            updated_at=now,
            two_factor_enrolled=True,
        )

        payload = session_payload_for_user(user, ttl_seconds=600)

        assert payload.kind == "authenticated"
        assert payload.user.id == str(user.id)
        assert payload.user.roles == ["member"]
        assert payload.metadata.is_two_factor_enrolled is True
        assert payload.expires_at - payload.issued_at == timedelta(seconds=600)


@pytest.mark.unit
class TestServerSession:
    """Test helpers for route handlers."""

    def test_reads_session_from_cookies(self):
        raw = serialize_session_cookie(make_payload())
        cookies = {SESSION_COOKIE_NAME: raw}

        session = get_server_session(cookies, now=ISSUED_AT)

        assert session is not None
        assert session.user.id == "user-123"
        assert is_authenticated(cookies, now=ISSUED_AT) is True

    def test_missing_cookie_is_unauthenticated(self):
        assert get_server_session({}, now=ISSUED_AT) is None
        assert is_authenticated({"other": "value"}, now=ISSUED_AT) is False
