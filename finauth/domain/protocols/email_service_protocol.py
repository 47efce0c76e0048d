"""EmailServiceProtocol - domain port for transactional email.

Implementations:
    - StubEmailService: finauth/infrastructure/email/stub_email_service.py (dev/test)
    - HttpEmailService: finauth/infrastructure/email/http_email_service.py (provider API)

Delivery is soft-fail: the AuthService bounds each call with a timeout and
logs failures without failing signup or password reset.
"""

from datetime import datetime
from typing import Protocol

from finauth.domain.entities import User


class EmailServiceProtocol(Protocol):
    """Protocol for auth email delivery."""

    async def send_verification_email(
        self,
        user: User,
        verification_token: str,
        expires_at: datetime,
    ) -> None:
        """Send the email verification message.

        Args:
            user: Recipient.
            verification_token: Plaintext single-use token to embed in the link.
            expires_at: Token expiry, shown to the user.
        """
        ...

    async def send_password_reset_email(
        self,
        user: User,
        reset_token: str,
        expires_at: datetime,
    ) -> None:
        """Send the password reset message.

        Args:
            user: Recipient.
            reset_token: Plaintext single-use token to embed in the link.
            expires_at: Token expiry, shown to the user.
        """
        ...
