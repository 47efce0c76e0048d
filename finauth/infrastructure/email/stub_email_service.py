"""Stub email service (development and tests).

Logs each message instead of sending it and keeps the messages in memory so
local tooling and tests can pick the token out of the "mailbox".
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Literal

from finauth.domain.entities import User
from finauth.domain.protocols import LoggerProtocol


@dataclass(frozen=True, slots=True, kw_only=True)
class SentEmail:
    """A message captured by the stub."""

    kind: Literal["verification", "password_reset"]
    to_email: str
    user_id: str
    token: str
    link: str
    expires_at: datetime


class StubEmailService:
    """Email service that logs instead of sending.

    Usage:
        email_service = StubEmailService(logger=logger, app_base_url="http://localhost:3000")
        await email_service.send_verification_email(user, token, expires_at)
        email_service.last_token("verification")
    """

    def __init__(self, logger: LoggerProtocol, app_base_url: str) -> None:
        self._logger = logger
        self._app_base_url = app_base_url.rstrip("/")
        self.sent: list[SentEmail] = []

    async def send_verification_email(
        self, user: User, verification_token: str, expires_at: datetime
    ) -> None:
        link = f"{self._app_base_url}/verify-email?token={verification_token}"
        self._record("verification", user, verification_token, link, expires_at)

    async def send_password_reset_email(
        self, user: User, reset_token: str, expires_at: datetime
    ) -> None:
        link = f"{self._app_base_url}/reset-password?token={reset_token}"
        self._record("password_reset", user, reset_token, link, expires_at)

    def last_token(self, kind: Literal["verification", "password_reset"]) -> str | None:
        """Most recent token of the given kind, or None."""
        for message in reversed(self.sent):
            if message.kind == kind:
                return message.token
        return None

    def _record(
        self,
        kind: Literal["verification", "password_reset"],
        user: User,
        token: str,
        link: str,
        expires_at: datetime,
    ) -> None:
        self.sent.append(
            SentEmail(
                kind=kind,
                to_email=user.email,
                user_id=str(user.id),
                token=token,
                link=link,
                expires_at=expires_at,
            )
        )
        self._logger.info(
            "email_stubbed",
            kind=kind,
            user_id=str(user.id),
            to_email=user.email,
            token_prefix=token[:8],
            expires_at=expires_at.isoformat(),
        )
