"""JWT access token service (adapter).

Security:
    - HMAC-SHA256 (HS256), 256-bit secret minimum
    - Short expiration (minutes)
    - Issuer and audience pinned on both sides
    - Unique JWT ID (jti) per token

Access tokens are stateless. Revocation happens at the refresh-token layer;
a revoked session stops receiving new access tokens within one access TTL.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt
from jwt.exceptions import InvalidTokenError as JWTInvalidTokenError
from uuid_extensions import uuid7

from finauth.core.result import Failure, Result, Success
from finauth.domain.entities import User
from finauth.domain.errors import InvalidTokenError


@dataclass(frozen=True, slots=True, kw_only=True)
class IssuedAccessToken:
    """Signed access token and its expiry."""

    token: str
    expires_at: datetime


class JWTService:
    """JWT token generation and validation service.

    Usage:
        jwt_service = JWTService(
            secret_key=settings.secret_key,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            expiration_minutes=settings.access_token_expire_minutes,
        )
        issued = jwt_service.generate_access_token(user)
        result = jwt_service.validate_access_token(issued.token)
    """

    def __init__(
        self,
        secret_key: str,
        issuer: str,
        audience: str,
        expiration_minutes: int = 15,
    ) -> None:
        """Initialize JWT service.

        Args:
            secret_key: Secret key for HMAC-SHA256 signing (>= 32 bytes).
            issuer: ``iss`` claim written and required.
            audience: ``aud`` claim written and required.
            expiration_minutes: Token lifetime in minutes (default: 15).

        Raises:
            ValueError: If secret_key is too short (< 32 bytes).
        """
        if len(secret_key) < 32:
            msg = "JWT secret key must be at least 32 bytes (256 bits)"
            raise ValueError(msg)

        self._secret_key = secret_key
        self._issuer = issuer
        self._audience = audience
        self._expiration_minutes = expiration_minutes
        self._algorithm = "HS256"

    def generate_access_token(self, user: User) -> IssuedAccessToken:
        """Generate a signed access token for a user.

        Claims are kept minimal: subject, email, roles, verification state
        and plan tier.

        Args:
            user: Token subject.

        Returns:
            IssuedAccessToken with the encoded token and its expiry.

        Example:
            >>> issued = service.generate_access_token(user)
            >>> len(issued.token.split("."))
            3
        """
        now = datetime.now(UTC)
        expires_at = now + timedelta(minutes=self._expiration_minutes)

        payload: dict[str, Any] = {
            "sub": str(user.id),
            "email": user.email,
            "roles": list(user.roles),
            "email_verified": user.is_email_verified,
            "plan_tier": user.plan_tier.value,
            "iss": self._issuer,
            "aud": self._audience,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
            "jti": str(uuid7()),
        }

        token: str = jwt.encode(payload, self._secret_key, algorithm=self._algorithm)
        return IssuedAccessToken(token=token, expires_at=expires_at)

    def validate_access_token(self, token: str) -> Result[dict[str, Any], InvalidTokenError]:
        """Validate an access token and extract its claims.

        PyJWT checks signature, expiration, issuer and audience.

        Args:
            token: Encoded JWT.

        Returns:
            Success with the claims, or Failure(InvalidTokenError).
        """
        try:
            payload: dict[str, Any] = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                audience=self._audience,
                options={"require": ["sub", "exp", "iat"]},
            )
            return Success(value=payload)
        except JWTInvalidTokenError:
            return Failure(error=InvalidTokenError())
