"""Transactional email over a provider HTTP API.

Posts a JSON message to the configured endpoint with a bearer key. Transport
errors and non-2xx responses propagate as httpx exceptions; the AuthService
decides what a failed delivery means (it soft-fails).
"""

from datetime import datetime

import httpx

from finauth.domain.entities import User
from finauth.domain.protocols import LoggerProtocol


class HttpEmailService:
    """Email adapter for JSON-over-HTTP providers.

    Usage:
        email_service = HttpEmailService(
            api_url=settings.email_api_url,
            api_key=settings.email_api_key,
            sender=settings.email_from,
            app_base_url=settings.app_base_url,
            logger=logger,
            timeout=settings.email_timeout_seconds,
        )
    """

    def __init__(
        self,
        api_url: str,
        api_key: str | None,
        sender: str,
        app_base_url: str,
        logger: LoggerProtocol,
        timeout: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            api_url: Provider send endpoint.
            api_key: Bearer key (omitted from headers when None).
            sender: From address.
            app_base_url: Dashboard URL used to build links.
            logger: Structured logger.
            timeout: Per-request timeout in seconds.
            transport: Optional httpx transport (tests use httpx.MockTransport).
        """
        self._api_url = api_url
        self._api_key = api_key
        self._sender = sender
        self._app_base_url = app_base_url.rstrip("/")
        self._logger = logger
        self._timeout = timeout
        self._transport = transport

    async def send_verification_email(
        self, user: User, verification_token: str, expires_at: datetime
    ) -> None:
        link = f"{self._app_base_url}/verify-email?token={verification_token}"
        await self._send(
            to_email=user.email,
            subject="Verify your email address",
            text=(
                f"Hi {user.display_name},\n\n"
                f"Confirm your email address by opening this link:\n{link}\n\n"
                f"The link expires at {expires_at.isoformat()}."
            ),
            template="verify-email",
        )

    async def send_password_reset_email(
        self, user: User, reset_token: str, expires_at: datetime
    ) -> None:
        link = f"{self._app_base_url}/reset-password?token={reset_token}"
        await self._send(
            to_email=user.email,
            subject="Reset your password",
            text=(
                f"Hi {user.display_name},\n\n"
                f"Someone asked to reset the password for this account. "
                f"If it was you, open this link:\n{link}\n\n"
                f"The link expires at {expires_at.isoformat()}. "
                f"If it was not you, you can ignore this message."
            ),
            template="password-reset",
        )

    async def _send(self, *, to_email: str, subject: str, text: str, template: str) -> None:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
            response = await client.post(
                self._api_url,
                headers=headers,
                json={
                    "from": self._sender,
                    "to": [to_email],
                    "subject": subject,
                    "text": text,
                    "tags": [template],
                },
            )
            response.raise_for_status()

        self._logger.info(
            "email_sent",
            template=template,
            to_email=to_email,
            status_code=response.status_code,
        )
