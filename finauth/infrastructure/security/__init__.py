"""Security adapters: password hashing, access and refresh tokens, two-factor codes."""

from finauth.infrastructure.security.bcrypt_password_service import BcryptPasswordService
from finauth.infrastructure.security.jwt_service import IssuedAccessToken, JWTService
from finauth.infrastructure.security.opaque_token import (
    generate_opaque_token,
    hash_opaque_token,
    verify_opaque_token,
)
from finauth.infrastructure.security.refresh_token_service import (
    IssuedRefreshToken,
    RefreshTokenService,
)
from finauth.infrastructure.security.totp_service import TotpEnrollment, TotpService

__all__ = [
    "BcryptPasswordService",
    "IssuedAccessToken",
    "IssuedRefreshToken",
    "JWTService",
    "RefreshTokenService",
    "TotpEnrollment",
    "TotpService",
    "generate_opaque_token",
    "hash_opaque_token",
    "verify_opaque_token",
]
