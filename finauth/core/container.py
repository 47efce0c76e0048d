"""Container - centralized dependency wiring.

One Container is built per process from an explicit Settings value and
stored on ``app.state``. Nothing is cached at module level, so tests can
build as many independent containers as they need.

Adapter selection:
    - database_url set   -> SqlAlchemyAuthRepository (asyncpg)
    - database_url unset -> InMemoryAuthRepository
    - email_backend=http -> HttpEmailService (httpx)
    - email_backend=stub -> StubEmailService (structured log only)

Usage:
    container = build_container(settings)
    result = await container.auth_service.login(data, context)
"""

from dataclasses import dataclass

from finauth.application.services import AuthService
from finauth.core.config import Settings
from finauth.domain.protocols import AuthRepository, EmailServiceProtocol, LoggerProtocol
from finauth.infrastructure.email import HttpEmailService, StubEmailService
from finauth.infrastructure.logging import ConsoleAdapter
from finauth.infrastructure.persistence import Database
from finauth.infrastructure.persistence.repositories import (
    InMemoryAuthRepository,
    SqlAlchemyAuthRepository,
)
from finauth.infrastructure.security import (
    BcryptPasswordService,
    JWTService,
    RefreshTokenService,
    TotpService,
)


@dataclass(kw_only=True)
class Container:
    """Process-wide services.

    Attributes:
        settings: Immutable application settings.
        logger: Structured logger.
        repository: AuthRepository implementation.
        email_service: Email adapter.
        token_service: Access token (JWT) service.
        auth_service: The auth state machine.
        database: Database handle when a database_url is configured.
    """

    settings: Settings
    logger: LoggerProtocol
    repository: AuthRepository
    email_service: EmailServiceProtocol
    token_service: JWTService
    auth_service: AuthService
    database: Database | None = None

    async def startup(self) -> None:
        """Create tables outside production (no migration tooling is shipped)."""
        if self.database is not None and not self.settings.is_production:
            await self.database.create_all()
        self.logger.info(
            "container_started",
            environment=self.settings.environment.value,
            repository=type(self.repository).__name__,
            email_backend=self.settings.email_backend,
        )

    async def shutdown(self) -> None:
        if self.database is not None:
            await self.database.close()


def build_email_service(settings: Settings, logger: LoggerProtocol) -> EmailServiceProtocol:
    """Select the email adapter configured by ``email_backend``."""
    if settings.email_backend == "http" and settings.email_api_url:
        return HttpEmailService(
            api_url=settings.email_api_url,
            api_key=settings.email_api_key,
            sender=settings.email_from,
            app_base_url=settings.app_base_url,
            logger=logger,
            timeout=settings.email_timeout_seconds,
        )
    return StubEmailService(logger=logger, app_base_url=settings.app_base_url)


def build_container(
    settings: Settings,
    *,
    logger: LoggerProtocol | None = None,
    repository: AuthRepository | None = None,
    email_service: EmailServiceProtocol | None = None,
) -> Container:
    """Wire every service from settings.

    Args:
        settings: Application settings.
        logger: Override the logger (tests).
        repository: Override the repository (tests).
        email_service: Override the email adapter (tests).

    Returns:
        Container: Fully wired services.
    """
    logger = logger or ConsoleAdapter(
        use_json=settings.use_json_logs,
        level="DEBUG" if settings.debug else settings.log_level,
    )

    database: Database | None = None
    if repository is None:
        if settings.database_url:
            database = Database(settings.database_url, echo=settings.db_echo)
            repository = SqlAlchemyAuthRepository(database)
        else:
            repository = InMemoryAuthRepository()

    email_service = email_service or build_email_service(settings, logger)

    token_service = JWTService(
        secret_key=settings.secret_key,
        issuer=settings.jwt_issuer,
        audience=settings.jwt_audience,
        expiration_minutes=settings.access_token_expire_minutes,
    )

    auth_service = AuthService(
        repository=repository,
        password_hasher=BcryptPasswordService(cost_factor=settings.bcrypt_rounds),
        token_service=token_service,
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
        logger=logger,
        settings=settings,
    )

    return Container(
        settings=settings,
        logger=logger,
        repository=repository,
        email_service=email_service,
        token_service=token_service,
        auth_service=auth_service,
        database=database,
    )
