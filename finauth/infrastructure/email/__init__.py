"""Email adapters."""

from finauth.infrastructure.email.http_email_service import HttpEmailService
from finauth.infrastructure.email.stub_email_service import SentEmail, StubEmailService

__all__ = ["HttpEmailService", "SentEmail", "StubEmailService"]
