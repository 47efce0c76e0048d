"""Auth router.

Thin HTTP adapter over AuthService: validates the body, calls the service,
maps ``Failure`` to Problem Details and manages the auth cookies.

Cookies:
    fm_session - edge session document (see presentation.session.cookie)
    fm_refresh - refresh token, httpOnly, scoped to /api/auth

Every unsafe request must carry the CSRF header (enforced by the edge
middleware before any handler runs).
"""

from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from finauth.application.commands import (
    LoginInput,
    PasswordResetConfirmInput,
    PasswordResetRequestInput,
    RequestContext,
    SignupInput,
    TwoFactorBackupSubmission,
    TwoFactorCodeSubmission,
    VerifyEmailInput,
)
from finauth.application.dtos import AuthTokens, TwoFactorChallengeResult
from finauth.application.services import AuthService
from finauth.core.config import Settings
from finauth.core.result import Failure, Success
from finauth.domain.entities import User
from finauth.domain.errors import InvalidTokenError
from finauth.presentation.errors import ErrorResponseBuilder
from finauth.presentation.routers.dependencies import (
    CurrentUser,
    get_auth_service,
    get_current_user,
    get_request_context,
    get_settings,
)
from finauth.presentation.session import (
    SESSION_COOKIE_NAME,
    SESSION_COOKIE_PATH,
    demo_session_payload,
    get_cookie_max_age_seconds,
    get_server_session,
    serialize_session_cookie,
    session_payload_for_user,
)
from finauth.schemas.auth_schemas import (
    DemoSessionRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    PasswordResetBody,
    PasswordResetRequestBody,
    RefreshRequest,
    RefreshResponse,
    SessionStateResponse,
    SignupDebugResponse,
    SignupRequest,
    SignupResponse,
    TokenResponse,
    TwoFactorChallengeResponse,
    TwoFactorBackupRequest,
    TwoFactorCodeRequest,
    TwoFactorEnrollmentConfirmRequest,
    TwoFactorEnrollmentConfirmResponse,
    TwoFactorEnrollmentStartResponse,
    UserEnvelopeResponse,
    UserResponse,
    VerifyEmailBody,
)

REFRESH_COOKIE_NAME = "fm_refresh"
REFRESH_COOKIE_PATH = "/api/auth"
PASSWORD_RESET_REQUESTED_MESSAGE = (
    "If an account exists for that email, a password reset link has been sent."
)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
ContextDep = Annotated[RequestContext, Depends(get_request_context)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


# =============================================================================
# Cookie helpers
# =============================================================================


def _set_session_cookie(response: Response, value: str, max_age: int, settings: Settings) -> None:
    response.set_cookie(
        SESSION_COOKIE_NAME,
        value,
        max_age=max_age,
        path=SESSION_COOKIE_PATH,
        domain=settings.cookie_domain,
        secure=settings.is_production,
        httponly=True,
        samesite="lax",
    )


def _set_auth_cookies(
    response: Response, user: User, tokens: AuthTokens, settings: Settings
) -> None:
    payload = session_payload_for_user(user, ttl_seconds=settings.session_ttl_seconds)
    _set_session_cookie(
        response,
        serialize_session_cookie(payload),
        get_cookie_max_age_seconds(payload),
        settings,
    )
    response.set_cookie(
        REFRESH_COOKIE_NAME,
        tokens.refresh_token,
        max_age=max(
            0, int((tokens.refresh_token_expires_at - datetime.now(UTC)).total_seconds())
        ),
        path=REFRESH_COOKIE_PATH,
        domain=settings.cookie_domain,
        secure=settings.is_production,
        httponly=True,
        samesite="strict",
    )


def _clear_auth_cookies(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        SESSION_COOKIE_NAME, path=SESSION_COOKIE_PATH, domain=settings.cookie_domain
    )
    response.delete_cookie(
        REFRESH_COOKIE_NAME, path=REFRESH_COOKIE_PATH, domain=settings.cookie_domain
    )


# =============================================================================
# Signup / login
# =============================================================================


@router.post(
    "/signup",
    status_code=status.HTTP_201_CREATED,
    response_model=SignupResponse,
    summary="Create account",
)
async def signup(
    request: Request,
    response: Response,
    data: SignupRequest,
    auth_service: AuthServiceDep,
    context: ContextDep,
    settings: SettingsDep,
) -> SignupResponse | JSONResponse:
    """Create an account and start a session.

    POST /api/auth/signup -> 201 Created (409 email in use, 400 terms)
    """
    result = await auth_service.signup(
        SignupInput(
            email=data.email,
            password=data.password,
            accept_terms=data.accept_terms,
            first_name=data.first_name,
            last_name=data.last_name,
            marketing_opt_in=data.marketing_opt_in,
            plan_tier=data.plan_tier,
            timezone=data.timezone,
        ),
        context,
    )

    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=signup_result):
            _set_auth_cookies(response, signup_result.user, signup_result.tokens, settings)
            debug = None
            if signup_result.debug is not None:
                debug = SignupDebugResponse(
                    email_verification_token=signup_result.debug.email_verification_token
                )
            return SignupResponse(
                user=UserResponse.from_entity(signup_result.user),
                tokens=TokenResponse.from_tokens(signup_result.tokens),
                requires_email_verification=signup_result.requires_email_verification,
                debug=debug,
            )


@router.post(
    "/login",
    response_model=LoginResponse | TwoFactorChallengeResponse,
    responses={202: {"description": "Two-factor code required", "model": TwoFactorChallengeResponse}},
    summary="Password login",
)
async def login(
    request: Request,
    response: Response,
    data: LoginRequest,
    auth_service: AuthServiceDep,
    context: ContextDep,
    settings: SettingsDep,
) -> LoginResponse | TwoFactorChallengeResponse | JSONResponse:
    """Password login.

    POST /api/auth/login -> 200 OK with tokens, or 202 Accepted with a
    two-factor challenge when the account has two-factor enabled.
    """
    result = await auth_service.login(
        LoginInput(email=data.email, password=data.password, remember_me=data.remember_me),
        context,
    )

    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=TwoFactorChallengeResult() as challenge):
            response.status_code = status.HTTP_202_ACCEPTED
            return TwoFactorChallengeResponse(
                challenge_id=challenge.challenge_id,
                expires_at=challenge.expires_at,
                methods=list(challenge.methods),
            )
        case Success(value=login_result):
            _set_auth_cookies(response, login_result.user, login_result.tokens, settings)
            return LoginResponse(
                user=UserResponse.from_entity(login_result.user),
                tokens=TokenResponse.from_tokens(login_result.tokens),
                email_verified=login_result.email_verified,
            )


@router.post("/two-factor", response_model=LoginResponse, summary="Complete two-factor login")
async def complete_two_factor(
    request: Request,
    response: Response,
    data: Annotated[
        TwoFactorCodeRequest | TwoFactorBackupRequest, Body(discriminator="mode")
    ],
    auth_service: AuthServiceDep,
    context: ContextDep,
    settings: SettingsDep,
) -> LoginResponse | JSONResponse:
    """POST /api/auth/two-factor -> 200 OK with the deferred tokens."""
    if isinstance(data, TwoFactorCodeRequest):
        submission: TwoFactorCodeSubmission | TwoFactorBackupSubmission = (
            TwoFactorCodeSubmission(challenge_id=data.challenge_id, code=data.code)
        )
    else:
        submission = TwoFactorBackupSubmission(
            challenge_id=data.challenge_id, backup_code=data.backup_code
        )

    match await auth_service.complete_two_factor(submission, context):
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=login_result):
            _set_auth_cookies(response, login_result.user, login_result.tokens, settings)
            return LoginResponse(
                user=UserResponse.from_entity(login_result.user),
                tokens=TokenResponse.from_tokens(login_result.tokens),
                email_verified=login_result.email_verified,
            )


# =============================================================================
# Refresh / logout
# =============================================================================


@router.post("/refresh", response_model=RefreshResponse, summary="Rotate refresh token")
async def refresh(
    request: Request,
    response: Response,
    auth_service: AuthServiceDep,
    context: ContextDep,
    settings: SettingsDep,
    data: RefreshRequest | None = None,
) -> RefreshResponse | JSONResponse:
    """POST /api/auth/refresh -> 200 OK with a new token pair.

    The token is read from the body, falling back to the refresh cookie.
    On failure the auth cookies are cleared.
    """
    raw_token = (data.refresh_token if data else None) or request.cookies.get(
        REFRESH_COOKIE_NAME
    )

    if not raw_token:
        error_response = ErrorResponseBuilder.from_domain_error(InvalidTokenError(), request)
        _clear_auth_cookies(error_response, settings)
        return error_response

    match await auth_service.refresh_session(raw_token, context):
        case Failure(error=error):
            error_response = ErrorResponseBuilder.from_domain_error(error, request)
            _clear_auth_cookies(error_response, settings)
            return error_response
        case Success(value=refresh_result):
            _set_auth_cookies(response, refresh_result.user, refresh_result.tokens, settings)
            return RefreshResponse(
                user=UserResponse.from_entity(refresh_result.user),
                tokens=TokenResponse.from_tokens(refresh_result.tokens),
            )


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Log out",
)
async def logout(
    request: Request,
    auth_service: AuthServiceDep,
    context: ContextDep,
    settings: SettingsDep,
    data: RefreshRequest | None = None,
) -> Response:
    """POST /api/auth/logout -> 204 No Content. Always clears the cookies."""
    raw_token = (data.refresh_token if data else None) or request.cookies.get(
        REFRESH_COOKIE_NAME
    )
    await auth_service.logout(raw_token, context)

    response = Response(status_code=status.HTTP_204_NO_CONTENT)
    _clear_auth_cookies(response, settings)
    return response


# =============================================================================
# Password reset / email verification
# =============================================================================


@router.post(
    "/password/reset-request",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=MessageResponse,
    summary="Request password reset",
)
async def request_password_reset(
    data: PasswordResetRequestBody,
    auth_service: AuthServiceDep,
    context: ContextDep,
    background_tasks: BackgroundTasks,
) -> MessageResponse:
    """POST /api/auth/password/reset-request -> 202 Accepted, whether or not
    the email is registered. The email goes out after the response."""
    await auth_service.request_password_reset(
        PasswordResetRequestInput(email=data.email),
        context,
        schedule=background_tasks.add_task,
    )
    return MessageResponse(message=PASSWORD_RESET_REQUESTED_MESSAGE)


@router.post("/password/reset", response_model=UserEnvelopeResponse, summary="Reset password")
async def reset_password(
    request: Request,
    response: Response,
    data: PasswordResetBody,
    auth_service: AuthServiceDep,
    context: ContextDep,
    settings: SettingsDep,
) -> UserEnvelopeResponse | JSONResponse:
    """POST /api/auth/password/reset -> 200 OK. Ends every session of the user."""
    result = await auth_service.reset_password(
        PasswordResetConfirmInput(token=data.token, new_password=data.new_password),
        context,
    )

    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=reset_result):
            _clear_auth_cookies(response, settings)
            return UserEnvelopeResponse(user=UserResponse.from_entity(reset_result.user))


@router.post("/email/verify", response_model=UserEnvelopeResponse, summary="Verify email")
async def verify_email(
    request: Request,
    data: VerifyEmailBody,
    auth_service: AuthServiceDep,
    context: ContextDep,
) -> UserEnvelopeResponse | JSONResponse:
    """POST /api/auth/email/verify -> 200 OK."""
    match await auth_service.verify_email(VerifyEmailInput(token=data.token), context):
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=verify_result):
            return UserEnvelopeResponse(user=UserResponse.from_entity(verify_result.user))


# =============================================================================
# Edge session
# =============================================================================


@router.post("/demo", response_model=SessionStateResponse, summary="Start demo session")
async def start_demo_session(
    response: Response,
    settings: SettingsDep,
    data: DemoSessionRequest | None = None,
) -> SessionStateResponse:
    """POST /api/auth/demo -> 200 OK with a demo session cookie. No account involved."""
    payload = demo_session_payload(
        display_name=data.display_name if data else None,
        ttl_seconds=settings.session_ttl_seconds,
    )
    _set_session_cookie(
        response,
        serialize_session_cookie(payload),
        get_cookie_max_age_seconds(payload),
        settings,
    )
    return SessionStateResponse(
        authenticated=True,
        session=payload.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


@router.get("/session", response_model=SessionStateResponse, summary="Current session")
async def get_session(request: Request) -> SessionStateResponse:
    """GET /api/auth/session -> the session carried by the cookie, if valid."""
    session = get_server_session(request.cookies)
    if session is None:
        return SessionStateResponse(authenticated=False)
    return SessionStateResponse(
        authenticated=True,
        session=session.model_dump(mode="json", by_alias=True, exclude_none=True),
    )


# =============================================================================
# Two-factor enrollment
# =============================================================================


@router.post(
    "/two-factor/enrollment",
    response_model=TwoFactorEnrollmentStartResponse,
    summary="Start two-factor enrollment",
)
async def start_two_factor_enrollment(
    request: Request,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    auth_service: AuthServiceDep,
) -> TwoFactorEnrollmentStartResponse | JSONResponse:
    """POST /api/auth/two-factor/enrollment (bearer) -> secret and otpauth URI."""
    match await auth_service.start_two_factor_enrollment(current_user.user_id):
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=enrollment):
            return TwoFactorEnrollmentStartResponse(
                secret=enrollment.secret,
                provisioning_uri=enrollment.provisioning_uri,
            )


@router.post(
    "/two-factor/enrollment/confirm",
    response_model=TwoFactorEnrollmentConfirmResponse,
    summary="Confirm two-factor enrollment",
)
async def confirm_two_factor_enrollment(
    request: Request,
    data: TwoFactorEnrollmentConfirmRequest,
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
    auth_service: AuthServiceDep,
    context: ContextDep,
) -> TwoFactorEnrollmentConfirmResponse | JSONResponse:
    """POST /api/auth/two-factor/enrollment/confirm (bearer) -> backup codes."""
    result = await auth_service.confirm_two_factor_enrollment(
        current_user.user_id, data.code, context
    )

    match result:
        case Failure(error=error):
            return ErrorResponseBuilder.from_domain_error(error, request)
        case Success(value=enrolled):
            return TwoFactorEnrollmentConfirmResponse(
                user=UserResponse.from_entity(enrolled.user),
                backup_codes=enrolled.backup_codes,
            )
