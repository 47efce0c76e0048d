"""Domain protocols (ports)."""

from finauth.domain.protocols.auth_repository import AuthRepository
from finauth.domain.protocols.email_service_protocol import EmailServiceProtocol
from finauth.domain.protocols.logger_protocol import LoggerProtocol
from finauth.domain.protocols.password_hashing_protocol import PasswordHashingProtocol

__all__ = [
    "AuthRepository",
    "EmailServiceProtocol",
    "LoggerProtocol",
    "PasswordHashingProtocol",
]
