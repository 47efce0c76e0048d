"""
Main FastAPI application entry point.

``create_app(settings)`` builds the container, mounts the middleware and
routers and registers the error handlers. Settings are loaded from the
environment only when none are passed in.

Run:
    uvicorn finauth.main:create_app --factory
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from finauth.core.config import Settings, get_settings
from finauth.core.container import Container, build_container
from finauth.presentation.errors import register_exception_handlers
from finauth.presentation.middleware import EdgeSecurityMiddleware, TraceMiddleware
from finauth.presentation.routers import auth_router, system_router


def create_app(settings: Settings | None = None, container: Container | None = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Application settings (read from the environment when omitted).
        container: Pre-built container (tests inject one with overrides).

    Returns:
        FastAPI: Configured application.
    """
    settings = settings or (container.settings if container else get_settings())
    container = container or build_container(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan: start and stop the container."""
        await container.startup()
        yield
        await container.shutdown()

    app = FastAPI(
        title=settings.app_name,
        description="Authentication and session security for the finance dashboard",
        version=settings.app_version,
        debug=settings.debug,
        docs_url=None if settings.is_production else "/docs",
        redoc_url=None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.container = container

    # Last added runs first: trace id is bound before the edge checks log
    app.add_middleware(EdgeSecurityMiddleware, settings=settings, logger=container.logger)
    app.add_middleware(TraceMiddleware)

    # RFC 9457 error responses
    register_exception_handlers(app)

    app.include_router(system_router)
    app.include_router(auth_router)

    return app
