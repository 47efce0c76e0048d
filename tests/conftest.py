"""Shared pytest fixtures.

Every test builds its own Settings, repository and AuthService; nothing is
shared between tests through module state.
"""

from unittest.mock import Mock

import pytest

from finauth.application.commands import RequestContext, SignupInput
from finauth.application.services import AuthService
from finauth.core.config import Settings
from finauth.core.enums import Environment
from finauth.infrastructure.email import StubEmailService
from finauth.infrastructure.persistence.repositories import InMemoryAuthRepository
from finauth.infrastructure.security import (
    BcryptPasswordService,
    JWTService,
    RefreshTokenService,
    TotpService,
)

TEST_SECRET_KEY = "test-secret-key-0123456789abcdefghijklmnop"
TEST_PASSWORD = "Sup3rSecurePass!"
TEST_NEW_PASSWORD = "Diff3rentPass!"
TEST_EMAIL = "casey@example.com"


def make_settings(**overrides) -> Settings:
    """Test settings: fast bcrypt, in-memory repository, stub email."""
    values = {
        "secret_key": TEST_SECRET_KEY,
        "environment": Environment.TESTING,
        "bcrypt_rounds": 4,
        "log_json": True,
        "log_level": "WARNING",
        "email_backend": "stub",
        "database_url": None,
    }
    values.update(overrides)
    return Settings(**values)


def make_auth_service(
    settings: Settings,
    repository,
    email_service,
    logger=None,
) -> AuthService:
    """Wire an AuthService the same way the container does."""
    return AuthService(
        repository=repository,
        password_hasher=BcryptPasswordService(cost_factor=settings.bcrypt_rounds),
        token_service=JWTService(
            secret_key=settings.secret_key,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            expiration_minutes=settings.access_token_expire_minutes,
        ),
        refresh_token_service=RefreshTokenService(
            expiration_days=settings.refresh_token_expire_days,
            short_expiration_days=settings.refresh_token_short_expire_days,
        ),
        totp_service=TotpService(
            issuer=settings.totp_issuer,
            digits=settings.totp_digits,
            interval_seconds=settings.totp_interval_seconds,
            valid_window=settings.totp_valid_window,
        ),
        email_service=email_service,
        logger=logger or Mock(),
        settings=settings,
    )


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def mock_logger() -> Mock:
    return Mock()


@pytest.fixture
def repository() -> InMemoryAuthRepository:
    return InMemoryAuthRepository()


@pytest.fixture
def email_service(mock_logger) -> StubEmailService:
    return StubEmailService(logger=mock_logger, app_base_url="http://localhost:3000")


@pytest.fixture
def auth_service(settings, repository, email_service, mock_logger) -> AuthService:
    return make_auth_service(settings, repository, email_service, mock_logger)


@pytest.fixture
def totp_service(settings) -> TotpService:
    return TotpService(
        issuer=settings.totp_issuer,
        digits=settings.totp_digits,
        interval_seconds=settings.totp_interval_seconds,
        valid_window=settings.totp_valid_window,
    )


@pytest.fixture
def context() -> RequestContext:
    return RequestContext(ip_address="203.0.113.10", user_agent="pytest-agent/1.0")


@pytest.fixture
def signup_input() -> SignupInput:
    return SignupInput(
        email=TEST_EMAIL,
        password=TEST_PASSWORD,
        accept_terms=True,
        first_name="Casey",
        last_name="Patel",
    )
