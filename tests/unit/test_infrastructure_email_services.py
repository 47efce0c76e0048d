"""Unit tests for the email adapters.

Tests cover:
- StubEmailService: captured messages, links, last_token lookup
- HttpEmailService: request shape, bearer key, error propagation
  (httpx.MockTransport, no network)
"""

import json
from datetime import UTC, datetime, timedelta
from unittest.mock import Mock

import httpx
import pytest
from uuid_extensions import uuid7

from finauth.domain.entities import User
from finauth.domain.enums import PlanTier, UserStatus
from finauth.infrastructure.email import HttpEmailService, StubEmailService

EXPIRES_AT = datetime(2026, 1, 1, 13, 0, tzinfo=UTC)


def make_user() -> User:
    now = datetime.now(UTC)
    return User(
        id=uuid7(),
        email="casey@example.com",
        password_hash="x",
        display_name="Casey Patel",
        status=UserStatus.ACTIVE,
        plan_tier=PlanTier.FREE,
        created_at=now,
        updated_at=now,
    )


@pytest.mark.unit
class TestStubEmailService:
    """Test the logging stub."""

    @pytest.mark.asyncio
    async def test_verification_email_is_captured(self):
        logger = Mock()
        service = StubEmailService(logger=logger, app_base_url="http://localhost:3000/")

        await service.send_verification_email(make_user(), "verify-token-123", EXPIRES_AT)

        message = service.sent[0]
        assert message.kind == "verification"
        assert message.link == "http://localhost:3000/verify-email?token=verify-token-123"
        assert service.last_token("verification") == "verify-token-123"
        assert service.last_token("password_reset") is None
        logger.info.assert_called_once()
        assert logger.info.call_args.kwargs["token_prefix"] == "verify-t"

    @pytest.mark.asyncio
    async def test_last_token_returns_most_recent(self):
        service = StubEmailService(logger=Mock(), app_base_url="http://localhost:3000")
        user = make_user()

        await service.send_password_reset_email(user, "first-reset-token", EXPIRES_AT)
        await service.send_password_reset_email(user, "second-reset-token", EXPIRES_AT)

        assert service.last_token("password_reset") == "second-reset-token"
        assert service.sent[-1].link.endswith("/reset-password?token=second-reset-token")


@pytest.mark.unit
class TestHttpEmailService:
    """Test the HTTP provider adapter."""

    def _service(self, handler, api_key: str | None = "key-123") -> HttpEmailService:
        return HttpEmailService(
            api_url="https://mail.example.com/v1/send",
            api_key=api_key,
            sender="no-reply@finance-manager.local",
            app_base_url="https://app.example.com",
            logger=Mock(),
            timeout=2.0,
            transport=httpx.MockTransport(handler),
        )

    @pytest.mark.asyncio
    async def test_posts_json_message_with_bearer_key(self):
        """Test the provider receives sender, recipient, subject and link."""
        # Arrange
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(202, json={"id": "msg-1"})

        service = self._service(handler)

        # Act
        await service.send_password_reset_email(make_user(), "reset-token-xyz", EXPIRES_AT)

        # Assert
        request = captured[0]
        assert request.method == "POST"
        assert str(request.url) == "https://mail.example.com/v1/send"
        assert request.headers["Authorization"] == "Bearer key-123"
        body = json.loads(request.content)
        assert body["from"] == "no-reply@finance-manager.local"
        assert body["to"] == ["casey@example.com"]
        assert body["subject"] == "Reset your password"
        assert "https://app.example.com/reset-password?token=reset-token-xyz" in body["text"]
        assert body["tags"] == ["password-reset"]

    @pytest.mark.asyncio
    async def test_omits_authorization_without_key(self):
        captured: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            captured.append(request)
            return httpx.Response(200)

        service = self._service(handler, api_key=None)

        await service.send_verification_email(
            make_user(), "verify-token", EXPIRES_AT + timedelta(hours=1)
        )

        assert "Authorization" not in captured[0].headers
        assert json.loads(captured[0].content)["tags"] == ["verify-email"]

    @pytest.mark.asyncio
    async def test_provider_error_raises(self):
        """Test non-2xx responses propagate to the caller."""
        service = self._service(lambda request: httpx.Response(500, text="boom"))

        with pytest.raises(httpx.HTTPStatusError):
            await service.send_verification_email(make_user(), "verify-token", EXPIRES_AT)
