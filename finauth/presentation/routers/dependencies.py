"""FastAPI dependencies.

Everything is read from the Container stored on ``app.state`` at start-up;
there are no module-level service singletons.

Usage:
    @router.post("/login")
    async def login(
        data: LoginRequest,
        auth_service: Annotated[AuthService, Depends(get_auth_service)],
        context: Annotated[RequestContext, Depends(get_request_context)],
    ): ...
"""

from dataclasses import dataclass
from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from finauth.application.commands import RequestContext
from finauth.application.services import AuthService
from finauth.core.config import Settings
from finauth.core.container import Container
from finauth.core.result import Failure, Success
from finauth.infrastructure.security import JWTService

# auto_error=False so a missing header produces our Problem Details 401
bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True, slots=True, kw_only=True)
class CurrentUser:
    """Identity extracted from a valid access token.

    Attributes:
        user_id: ``sub`` claim.
        email: ``email`` claim.
        roles: ``roles`` claim.
    """

    user_id: UUID
    email: str
    roles: list[str]


def get_container(request: Request) -> Container:
    return request.app.state.container


def get_settings(container: Annotated[Container, Depends(get_container)]) -> Settings:
    return container.settings


def get_auth_service(container: Annotated[Container, Depends(get_container)]) -> AuthService:
    return container.auth_service


def get_token_service(container: Annotated[Container, Depends(get_container)]) -> JWTService:
    return container.token_service


def get_request_context(request: Request) -> RequestContext:
    """Client address and user agent for audit and token records.

    The first ``X-Forwarded-For`` hop wins over the socket peer.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        ip_address: str | None = forwarded_for.split(",")[0].strip() or None
    else:
        ip_address = request.client.host if request.client else None
    return RequestContext(
        ip_address=ip_address,
        user_agent=request.headers.get("user-agent"),
    )


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    token_service: Annotated[JWTService, Depends(get_token_service)],
) -> CurrentUser:
    """Validate the bearer access token.

    Raises:
        HTTPException 401: If the token is missing, invalid or expired.
    """
    if credentials is None:
        raise _unauthorized("Authentication required")

    match token_service.validate_access_token(credentials.credentials):
        case Success(value=claims):
            try:
                roles = claims.get("roles", [])
                return CurrentUser(
                    user_id=UUID(str(claims["sub"])),
                    email=str(claims.get("email", "")),
                    roles=list(roles) if isinstance(roles, list) else [],
                )
            except (KeyError, ValueError) as e:
                raise _unauthorized("Invalid token payload") from e
        case Failure(error=error):
            raise _unauthorized(error.message)
