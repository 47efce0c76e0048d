"""Edge security middleware.

Runs on every page and API request except static assets and decides, in
order:

    1. HTTPS enforcement      (production: 308 to the https URL)
    2. Route protection       (protected prefix without session: redirect to login)
    3. Auth-page bounce       (session on /login etc.: redirect to destination)
    4. CSRF enforcement       (unsafe method without matching cookie/header: 403)
    5. CSRF issuance          (no CSRF cookie yet: set one)
    6. Security headers       (production: Strict-Transport-Security)

The decision logic is a pure function of an explicit ``EdgeRequest`` value
(``EdgeSecurityPolicy``), so it is testable without an ASGI stack. The
Starlette middleware only translates requests and decisions.

Usage:
    app.add_middleware(EdgeSecurityMiddleware, settings=settings, logger=logger)
"""

from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from urllib.parse import parse_qs, urlencode, urlsplit

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import PlainTextResponse, RedirectResponse, Response
from starlette.types import ASGIApp

from finauth.core.config import Settings
from finauth.domain.protocols import LoggerProtocol
from finauth.presentation.security.csrf import (
    CSRF_COOKIE_NAME,
    CSRF_HEADER_NAME,
    constant_time_compare,
    generate_csrf_token,
    is_safe_method,
)
from finauth.presentation.session.cookie import SESSION_COOKIE_NAME, parse_session_cookie

CSRF_FAILURE_MESSAGE = "CSRF token validation failed"
HSTS_HEADER_NAME = "Strict-Transport-Security"


class EdgeAction(str, Enum):
    PASS = "pass"
    REDIRECT = "redirect"
    FORBID = "forbid"


@dataclass(frozen=True, slots=True, kw_only=True)
class EdgeRequest:
    """What the edge sees of a request.

    Attributes:
        method: HTTP method.
        url: Full request URL.
        path: URL path.
        query: Raw query string (without "?").
        headers: Request headers, looked up by lower-case name.
        cookies: Request cookies.
    """

    method: str
    url: str
    path: str
    query: str = ""
    headers: Mapping[str, str] = field(default_factory=dict)
    cookies: Mapping[str, str] = field(default_factory=dict)

    @property
    def scheme(self) -> str:
        return urlsplit(self.url).scheme.lower()


@dataclass(frozen=True, slots=True, kw_only=True)
class EdgeDecision:
    """Outcome of the edge checks.

    Attributes:
        action: Pass through, redirect or forbid.
        status_code: Redirect or error status.
        location: Redirect target.
        reason: Short machine-readable reason (for logs and tests).
        csrf_token: Token to set as a new CSRF cookie, if any.
        headers: Extra response headers for pass-through responses.
    """

    action: EdgeAction
    status_code: int | None = None
    location: str | None = None
    reason: str | None = None
    csrf_token: str | None = None
    headers: dict[str, str] = field(default_factory=dict)


def _first_protocol(value: str | None) -> str | None:
    if not value:
        return None
    return value.split(",")[0].strip().lower() or None


def _matches_prefix(path: str, prefixes: list[str]) -> bool:
    return any(path == prefix or path.startswith(f"{prefix}/") for prefix in prefixes)


def is_same_origin_path(target: str | None) -> bool:
    """Accept only local absolute paths as post-login destinations.

    Example:
        >>> is_same_origin_path("/budgets?month=3")
        True
        >>> is_same_origin_path("//evil.example")
        False
    """
    if not target or not target.startswith("/"):
        return False
    if target.startswith("//") or "\\" in target:
        return False
    return True


class EdgeSecurityPolicy:
    """Pure per-request decision logic.

    Args:
        settings: Injected application settings.
        token_factory: CSRF token generator (overridable in tests).
    """

    def __init__(
        self,
        settings: Settings,
        token_factory: Callable[[], str] = generate_csrf_token,
    ) -> None:
        self._settings = settings
        self._token_factory = token_factory

    def is_excluded(self, path: str) -> bool:
        return _matches_prefix(path, self._settings.excluded_path_prefixes)

    def is_protected(self, path: str) -> bool:
        return _matches_prefix(path, self._settings.protected_path_prefixes)

    def is_auth_page(self, path: str) -> bool:
        return path in self._settings.auth_pages

    def evaluate(self, request: EdgeRequest) -> EdgeDecision:
        """Run the edge checks in order and return the first terminal outcome."""
        if self.is_excluded(request.path):
            return EdgeDecision(action=EdgeAction.PASS, reason="excluded")

        if self._settings.is_production:
            protocol = _first_protocol(request.headers.get("x-forwarded-proto"))
            if (protocol or request.scheme) != "https":
                secure_url = urlsplit(request.url)._replace(scheme="https").geturl()
                return EdgeDecision(
                    action=EdgeAction.REDIRECT,
                    status_code=308,
                    location=secure_url,
                    reason="https_required",
                )

        session = parse_session_cookie(request.cookies.get(SESSION_COOKIE_NAME))

        if session is None and self.is_protected(request.path):
            target = f"{request.path}?{request.query}" if request.query else request.path
            return EdgeDecision(
                action=EdgeAction.REDIRECT,
                status_code=307,
                location=f"{self._settings.login_path}?{urlencode({'redirect': target})}",
                reason="login_required",
            )

        if session is not None and self.is_auth_page(request.path):
            requested = parse_qs(request.query).get("redirect", [None])[0]
            destination = (
                requested
                if is_same_origin_path(requested)
                else self._settings.default_landing_path
            )
            return EdgeDecision(
                action=EdgeAction.REDIRECT,
                status_code=307,
                location=destination,
                reason="already_authenticated",
            )

        csrf_cookie = request.cookies.get(CSRF_COOKIE_NAME)
        if not is_safe_method(request.method):
            csrf_header = request.headers.get(CSRF_HEADER_NAME)
            if not constant_time_compare(csrf_cookie, csrf_header):
                return EdgeDecision(
                    action=EdgeAction.FORBID,
                    status_code=403,
                    reason="csrf_mismatch" if csrf_cookie and csrf_header else "csrf_missing",
                )

        headers: dict[str, str] = {}
        if self._settings.is_production:
            headers[HSTS_HEADER_NAME] = self._settings.hsts_header_value

        return EdgeDecision(
            action=EdgeAction.PASS,
            csrf_token=None if csrf_cookie else self._token_factory(),
            headers=headers,
        )


class EdgeSecurityMiddleware(BaseHTTPMiddleware):
    """Starlette adapter around EdgeSecurityPolicy.

    Mounted outermost so that redirects and CSRF rejections happen before any
    route handler or body parsing.
    """

    def __init__(self, app: ASGIApp, *, settings: Settings, logger: LoggerProtocol) -> None:
        super().__init__(app)
        self._settings = settings
        self._logger = logger
        self._policy = EdgeSecurityPolicy(settings)

    async def dispatch(
        self, request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        decision = self._policy.evaluate(
            EdgeRequest(
                method=request.method,
                url=str(request.url),
                path=request.url.path,
                query=request.url.query,
                headers=request.headers,
                cookies=request.cookies,
            )
        )

        match decision.action:
            case EdgeAction.REDIRECT:
                self._logger.info(
                    "edge_redirect",
                    reason=decision.reason,
                    path=request.url.path,
                    status_code=decision.status_code,
                )
                return RedirectResponse(
                    url=decision.location or "/",
                    status_code=decision.status_code or 307,
                )
            case EdgeAction.FORBID:
                self._logger.warning(
                    "csrf_validation_failed",
                    reason=decision.reason,
                    method=request.method,
                    path=request.url.path,
                )
                return PlainTextResponse(CSRF_FAILURE_MESSAGE, status_code=403)

        response = await call_next(request)

        for name, value in decision.headers.items():
            response.headers[name] = value

        if decision.csrf_token is not None:
            response.set_cookie(
                CSRF_COOKIE_NAME,
                decision.csrf_token,
                max_age=self._settings.csrf_cookie_max_age_seconds,
                path="/",
                domain=self._settings.cookie_domain,
                secure=self._settings.is_production,
                httponly=False,
                samesite="strict",
            )

        return response
