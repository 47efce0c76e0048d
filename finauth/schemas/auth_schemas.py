"""Authentication request/response schemas.

Pydantic models for API request validation and response serialization.
Kept separate from domain entities - these are HTTP-layer concerns.

Endpoints:
    POST   /api/auth/signup                     - Create account
    POST   /api/auth/login                      - Password login
    POST   /api/auth/two-factor                 - Complete two-factor login
    POST   /api/auth/refresh                    - Rotate refresh token
    POST   /api/auth/logout                     - Revoke refresh token, clear cookies
    POST   /api/auth/password/reset-request     - Request reset email
    POST   /api/auth/password/reset             - Set new password
    POST   /api/auth/email/verify               - Verify email
    POST   /api/auth/demo                       - Start demo session
    GET    /api/auth/session                    - Current edge session
    POST   /api/auth/two-factor/enrollment      - Start enrollment
    POST   /api/auth/two-factor/enrollment/confirm - Confirm enrollment
"""

from datetime import datetime
from typing import Any, Literal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from finauth.application.dtos import AuthTokens
from finauth.domain.entities import User
from finauth.domain.enums import PlanTier, UserStatus
from finauth.domain.types import (
    BackupCodeValue,
    Email,
    LoginPassword,
    Password,
    SingleUseTokenValue,
    TotpCode,
)

# =============================================================================
# Shared response parts
# =============================================================================


class UserResponse(BaseModel):
    """Public view of a user. Never includes hashes or secrets."""

    id: UUID
    email: str
    display_name: str
    first_name: str | None = None
    last_name: str | None = None
    roles: list[str]
    status: UserStatus
    plan_tier: PlanTier
    timezone: str | None = None
    email_verified: bool
    two_factor_enrolled: bool
    last_login_at: datetime | None = None
    created_at: datetime

    @classmethod
    def from_entity(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            display_name=user.display_name,
            first_name=user.first_name,
            last_name=user.last_name,
            roles=list(user.roles),
            status=user.status,
            plan_tier=user.plan_tier,
            timezone=user.timezone,
            email_verified=user.is_email_verified,
            two_factor_enrolled=user.two_factor_enrolled,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
        )


class TokenResponse(BaseModel):
    """Issued token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Access token lifetime in seconds")
    access_token_expires_at: datetime
    refresh_token_expires_at: datetime

    @classmethod
    def from_tokens(cls, tokens: AuthTokens) -> "TokenResponse":
        return cls(
            access_token=tokens.access_token,
            refresh_token=tokens.refresh_token,
            token_type=tokens.token_type,
            expires_in=tokens.expires_in,
            access_token_expires_at=tokens.access_token_expires_at,
            refresh_token_expires_at=tokens.refresh_token_expires_at,
        )


class MessageResponse(BaseModel):
    message: str


# =============================================================================
# Signup
# =============================================================================


class SignupRequest(BaseModel):
    """Request schema for account creation.

    POST /api/auth/signup
    Returns: 201 Created
    """

    email: Email
    password: Password
    accept_terms: bool = Field(..., description="Must be true")
    first_name: str | None = Field(None, max_length=100)
    last_name: str | None = Field(None, max_length=100)
    marketing_opt_in: bool = False
    plan_tier: PlanTier = PlanTier.FREE
    timezone: str | None = Field(None, max_length=64)

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "email": "casey@example.com",
                "password": "Sup3rSecurePass!",
                "accept_terms": True,
                "first_name": "Casey",
            }
        }
    )


class SignupDebugResponse(BaseModel):
    email_verification_token: str


class SignupResponse(BaseModel):
    user: UserResponse
    tokens: TokenResponse
    requires_email_verification: bool = True
    debug: SignupDebugResponse | None = Field(
        None, description="Only present outside production"
    )


# =============================================================================
# Login / two-factor
# =============================================================================


class LoginRequest(BaseModel):
    """Request schema for password login.

    POST /api/auth/login
    Returns: 200 OK (tokens) or 202 Accepted (two-factor challenge)
    """

    email: Email
    password: LoginPassword
    remember_me: bool = False


class LoginResponse(BaseModel):
    status: Literal["authenticated"] = "authenticated"
    user: UserResponse
    tokens: TokenResponse
    email_verified: bool


class TwoFactorChallengeResponse(BaseModel):
    status: Literal["needs_two_factor"] = "needs_two_factor"
    challenge_id: UUID
    expires_at: datetime
    methods: list[str]


class TwoFactorCodeRequest(BaseModel):
    challenge_id: UUID
    mode: Literal["code"]
    code: TotpCode


class TwoFactorBackupRequest(BaseModel):
    challenge_id: UUID
    mode: Literal["backup"]
    backup_code: BackupCodeValue


# =============================================================================
# Refresh / logout
# =============================================================================


class RefreshRequest(BaseModel):
    """Refresh token in the body. Falls back to the ``fm_refresh`` cookie."""

    refresh_token: str | None = Field(None, max_length=512)


class RefreshResponse(BaseModel):
    user: UserResponse
    tokens: TokenResponse


# =============================================================================
# Password reset / email verification
# =============================================================================


class PasswordResetRequestBody(BaseModel):
    """POST /api/auth/password/reset-request - Returns: 202 Accepted."""

    email: Email


class PasswordResetBody(BaseModel):
    """POST /api/auth/password/reset - Returns: 200 OK."""

    token: SingleUseTokenValue
    new_password: Password


class VerifyEmailBody(BaseModel):
    """POST /api/auth/email/verify - Returns: 200 OK."""

    token: SingleUseTokenValue


class UserEnvelopeResponse(BaseModel):
    user: UserResponse


# =============================================================================
# Edge session
# =============================================================================


class DemoSessionRequest(BaseModel):
    display_name: str | None = Field(None, max_length=80)


class SessionStateResponse(BaseModel):
    authenticated: bool
    session: dict[str, Any] | None = Field(
        None, description="Session cookie document (camelCase keys)"
    )


# =============================================================================
# Two-factor enrollment
# =============================================================================


class TwoFactorEnrollmentStartResponse(BaseModel):
    secret: str
    provisioning_uri: str


class TwoFactorEnrollmentConfirmRequest(BaseModel):
    code: TotpCode


class TwoFactorEnrollmentConfirmResponse(BaseModel):
    user: UserResponse
    backup_codes: list[str] = Field(..., description="Shown once, store them safely")
