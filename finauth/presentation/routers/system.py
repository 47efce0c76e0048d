"""System router for non-versioned application endpoints.

Root and health endpoints. Lightweight and side-effect free.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from finauth.core.container import Container
from finauth.presentation.routers.dependencies import get_container

system_router = APIRouter(tags=["System"])


@system_router.get("/")
async def root(container: Annotated[Container, Depends(get_container)]) -> dict[str, str]:
    """Root endpoint - basic status check.

    Returns:
        dict[str, str]: Application name, status and version.
    """
    return {
        "message": container.settings.app_name,
        "status": "operational",
        "version": container.settings.app_version,
    }


@system_router.get("/health")
async def health(container: Annotated[Container, Depends(get_container)]) -> dict[str, str]:
    """Health check endpoint for monitoring and load balancers.

    Reports the database as well when one is configured.
    """
    if container.database is None:
        return {"status": "healthy", "database": "not_configured"}
    database_ok = await container.database.check_connection()
    return {
        "status": "healthy" if database_ok else "degraded",
        "database": "ok" if database_ok else "unreachable",
    }
