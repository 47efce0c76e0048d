"""HTTP routers."""

from finauth.presentation.routers.auth import router as auth_router
from finauth.presentation.routers.system import system_router

__all__ = ["auth_router", "system_router"]
