"""API tests for the auth endpoints.

Tests cover the HTTP contract over a real app with an in-memory repository:
- Signup, login and the auth cookies
- Refresh via cookie and body, rotation and cookie clearing
- Logout
- Password reset and email verification with the stub mailer
- Two-factor enrollment and login completion
- Demo session and session lookup
"""

import pyotp
import pytest
from fastapi import status

from finauth.domain.enums import UserStatus
from finauth.presentation.routers.auth import (
    PASSWORD_RESET_REQUESTED_MESSAGE,
    REFRESH_COOKIE_NAME,
)
from finauth.presentation.session import SESSION_COOKIE_NAME
from tests.api.conftest import csrf_headers, login, signup
from tests.conftest import TEST_EMAIL, TEST_NEW_PASSWORD, TEST_PASSWORD


def set_cookie_headers(response) -> list[str]:
    return response.headers.get_list("set-cookie")


def cookie_header_for(response, name: str) -> str:
    return next(h for h in set_cookie_headers(response) if h.startswith(f"{name}="))


@pytest.mark.api
class TestSignupEndpoint:
    """Test POST /api/auth/signup."""

    def test_signup_creates_account_and_session(self, client):
        response = signup(client)

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["user"]["email"] == TEST_EMAIL
        assert data["user"]["display_name"] == "Casey"
        assert data["user"]["email_verified"] is False
        assert data["requires_email_verification"] is True
        assert data["tokens"]["token_type"] == "bearer"
        assert 890 <= data["tokens"]["expires_in"] <= 900
        assert data["debug"]["email_verification_token"]
        assert "password_hash" not in data["user"]
        assert client.cookies.get(SESSION_COOKIE_NAME)
        assert client.cookies.get(REFRESH_COOKIE_NAME) == data["tokens"]["refresh_token"]

    def test_auth_cookie_attributes(self, client):
        response = signup(client)

        session_cookie = cookie_header_for(response, SESSION_COOKIE_NAME).lower()
        refresh_cookie = cookie_header_for(response, REFRESH_COOKIE_NAME).lower()
        assert "httponly" in session_cookie
        assert "samesite=lax" in session_cookie
        assert "path=/" in session_cookie
        assert "httponly" in refresh_cookie
        assert "samesite=strict" in refresh_cookie
        assert "path=/api/auth" in refresh_cookie

    def test_duplicate_email_is_conflict(self, client):
        signup(client)

        response = signup(client, email="CASEY@example.com")

        assert response.status_code == status.HTTP_409_CONFLICT
        data = response.json()
        assert data["code"] == "email_already_exists"
        assert data["status"] == 409
        assert data["instance"] == "/api/auth/signup"
        assert data["type"].endswith("/errors/email_already_exists")

    def test_weak_password_is_validation_error(self, client):
        response = signup(client, password="short")

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["code"] == "validation_failed"
        assert any(error["field"] == "password" for error in data["errors"])

    def test_terms_must_be_accepted(self, client):
        response = client.post(
            "/api/auth/signup",
            json={"email": TEST_EMAIL, "password": TEST_PASSWORD, "accept_terms": False},
            headers=csrf_headers(client),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "terms_not_accepted"


@pytest.mark.api
class TestLoginEndpoint:
    """Test POST /api/auth/login."""

    def test_login_returns_tokens_and_cookies(self, client):
        signup(client)
        client.cookies.clear()
        client.get("/health")

        response = login(client)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "authenticated"
        assert data["user"]["email"] == TEST_EMAIL
        assert data["user"]["last_login_at"] is not None
        assert client.cookies.get(REFRESH_COOKIE_NAME) == data["tokens"]["refresh_token"]

    def test_wrong_password_and_unknown_email_look_the_same(self, client):
        signup(client)

        wrong_password = login(client, password="WrongPass123!")
        unknown_email = login(client, email="nobody@example.com")

        assert wrong_password.status_code == status.HTTP_401_UNAUTHORIZED
        assert unknown_email.status_code == status.HTTP_401_UNAUTHORIZED
        assert wrong_password.json()["code"] == unknown_email.json()["code"] == (
            "invalid_credentials"
        )
        assert wrong_password.json()["detail"] == unknown_email.json()["detail"]

    def test_suspended_account_is_forbidden(self, client, container):
        user_id = signup(client).json()["user"]["id"]
        for user in container.repository._users.values():
            if str(user.id) == user_id:
                user.status = UserStatus.SUSPENDED

        response = login(client)

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["code"] == "account_suspended"


@pytest.mark.api
class TestRefreshEndpoint:
    """Test POST /api/auth/refresh."""

    def test_refresh_from_cookie_rotates(self, client):
        original = signup(client).json()["tokens"]["refresh_token"]

        response = client.post("/api/auth/refresh", headers=csrf_headers(client))

        assert response.status_code == status.HTTP_200_OK
        rotated = response.json()["tokens"]["refresh_token"]
        assert rotated != original
        assert client.cookies.get(REFRESH_COOKIE_NAME) == rotated

    def test_refresh_from_body(self, client):
        original = signup(client).json()["tokens"]["refresh_token"]
        client.cookies.delete(REFRESH_COOKIE_NAME)

        response = client.post(
            "/api/auth/refresh",
            json={"refresh_token": original},
            headers=csrf_headers(client),
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["user"]["email"] == TEST_EMAIL

    def test_rotated_token_is_rejected_and_cookies_cleared(self, client):
        """Test replaying a rotated token fails and ends the browser session."""
        # Arrange
        original = signup(client).json()["tokens"]["refresh_token"]
        client.post("/api/auth/refresh", headers=csrf_headers(client))

        # Act
        response = client.post(
            "/api/auth/refresh",
            json={"refresh_token": original},
            headers=csrf_headers(client),
        )

        # Assert
        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "token_invalid"
        assert client.cookies.get(REFRESH_COOKIE_NAME) is None
        assert client.cookies.get(SESSION_COOKIE_NAME) is None

    def test_missing_token_is_unauthorized(self, client):
        response = client.post("/api/auth/refresh", headers=csrf_headers(client))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "token_invalid"

    @pytest.mark.parametrize("token", ["garbage", "not-a-uuid.secret", "a.b.c"])
    def test_malformed_token_is_unauthorized(self, client, token):
        response = client.post(
            "/api/auth/refresh", json={"refresh_token": token}, headers=csrf_headers(client)
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED


@pytest.mark.api
class TestLogoutEndpoint:
    """Test POST /api/auth/logout."""

    def test_logout_revokes_and_clears_cookies(self, client):
        refresh_token = signup(client).json()["tokens"]["refresh_token"]

        response = client.post("/api/auth/logout", headers=csrf_headers(client))

        assert response.status_code == status.HTTP_204_NO_CONTENT
        assert client.cookies.get(REFRESH_COOKIE_NAME) is None
        assert client.cookies.get(SESSION_COOKIE_NAME) is None
        replay = client.post(
            "/api/auth/refresh",
            json={"refresh_token": refresh_token},
            headers=csrf_headers(client),
        )
        assert replay.status_code == status.HTTP_401_UNAUTHORIZED

    def test_logout_without_session_succeeds(self, client):
        response = client.post("/api/auth/logout", headers=csrf_headers(client))

        assert response.status_code == status.HTTP_204_NO_CONTENT


@pytest.mark.api
class TestPasswordResetEndpoints:
    """Test the password reset flow."""

    def test_reset_request_response_does_not_reveal_accounts(self, client):
        signup(client)

        known = client.post(
            "/api/auth/password/reset-request",
            json={"email": TEST_EMAIL},
            headers=csrf_headers(client),
        )
        unknown = client.post(
            "/api/auth/password/reset-request",
            json={"email": "nobody@example.com"},
            headers=csrf_headers(client),
        )

        assert known.status_code == unknown.status_code == status.HTTP_202_ACCEPTED
        assert known.json() == unknown.json() == {"message": PASSWORD_RESET_REQUESTED_MESSAGE}

    def test_reset_with_emailed_token(self, client, container):
        """Test the emailed token sets a new password and ends old sessions."""
        # Arrange
        old_refresh = signup(client).json()["tokens"]["refresh_token"]
        client.post(
            "/api/auth/password/reset-request",
            json={"email": TEST_EMAIL},
            headers=csrf_headers(client),
        )
        token = container.email_service.last_token("password_reset")

        # Act
        response = client.post(
            "/api/auth/password/reset",
            json={"token": token, "new_password": TEST_NEW_PASSWORD},
            headers=csrf_headers(client),
        )

        # Assert
        assert response.status_code == status.HTTP_200_OK
        assert response.json()["user"]["email"] == TEST_EMAIL
        assert login(client).status_code == status.HTTP_401_UNAUTHORIZED
        assert login(client, password=TEST_NEW_PASSWORD).status_code == status.HTTP_200_OK
        replay = client.post(
            "/api/auth/refresh",
            json={"refresh_token": old_refresh},
            headers=csrf_headers(client),
        )
        assert replay.status_code == status.HTTP_401_UNAUTHORIZED

    def test_reset_token_is_single_use(self, client, container):
        signup(client)
        client.post(
            "/api/auth/password/reset-request",
            json={"email": TEST_EMAIL},
            headers=csrf_headers(client),
        )
        body = {
            "token": container.email_service.last_token("password_reset"),
            "new_password": TEST_NEW_PASSWORD,
        }
        client.post("/api/auth/password/reset", json=body, headers=csrf_headers(client))

        response = client.post("/api/auth/password/reset", json=body, headers=csrf_headers(client))

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "token_invalid_or_expired"


@pytest.mark.api
class TestEmailVerificationEndpoint:
    """Test POST /api/auth/email/verify."""

    def test_debug_token_verifies_email(self, client):
        token = signup(client).json()["debug"]["email_verification_token"]

        response = client.post(
            "/api/auth/email/verify", json={"token": token}, headers=csrf_headers(client)
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["user"]["email_verified"] is True
        assert login(client).json()["email_verified"] is True

    def test_unknown_token_is_rejected(self, client):
        response = client.post(
            "/api/auth/email/verify",
            json={"token": "unknown-token-value-0123456789"},
            headers=csrf_headers(client),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["code"] == "token_invalid_or_expired"


@pytest.mark.api
class TestTwoFactorEndpoints:
    """Test two-factor enrollment and login completion."""

    def _enroll(self, client) -> list[str]:
        access_token = signup(client).json()["tokens"]["access_token"]
        headers = {**csrf_headers(client), "Authorization": f"Bearer {access_token}"}

        started = client.post("/api/auth/two-factor/enrollment", headers=headers)
        assert started.status_code == status.HTTP_200_OK
        secret = started.json()["secret"]
        assert started.json()["provisioning_uri"].startswith("otpauth://totp/")

        code = pyotp.TOTP(secret).now()
        if code == "000000":
            pytest.skip("placeholder collision")
        confirmed = client.post(
            "/api/auth/two-factor/enrollment/confirm", json={"code": code}, headers=headers
        )
        assert confirmed.status_code == status.HTTP_200_OK
        assert confirmed.json()["user"]["two_factor_enrolled"] is True
        return confirmed.json()["backup_codes"]

    def test_enrollment_requires_bearer_token(self, client):
        response = client.post("/api/auth/two-factor/enrollment", headers=csrf_headers(client))

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.headers["www-authenticate"] == "Bearer"
        assert response.json()["status"] == 401

    def test_enrollment_rejects_invalid_bearer_token(self, client):
        response = client.post(
            "/api/auth/two-factor/enrollment",
            headers={**csrf_headers(client), "Authorization": "Bearer not-a-jwt"},
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_login_with_two_factor_needs_second_step(self, client):
        """Test password login defers tokens until a backup code is given."""
        # Arrange
        backup_codes = self._enroll(client)
        client.post("/api/auth/logout", headers=csrf_headers(client))

        # Act
        challenge = login(client)
        completed = client.post(
            "/api/auth/two-factor",
            json={
                "challenge_id": challenge.json()["challenge_id"],
                "mode": "backup",
                "backup_code": backup_codes[0],
            },
            headers=csrf_headers(client),
        )

        # Assert
        assert challenge.status_code == status.HTTP_202_ACCEPTED
        assert challenge.json()["status"] == "needs_two_factor"
        assert "tokens" not in challenge.json()
        assert completed.status_code == status.HTTP_200_OK
        assert completed.json()["status"] == "authenticated"
        assert client.cookies.get(REFRESH_COOKIE_NAME) == completed.json()["tokens"][
            "refresh_token"
        ]

    def test_invalid_code_is_unauthorized(self, client):
        self._enroll(client)
        challenge_id = login(client).json()["challenge_id"]

        response = client.post(
            "/api/auth/two-factor",
            json={"challenge_id": challenge_id, "mode": "code", "code": "000000"},
            headers=csrf_headers(client),
        )

        assert response.status_code == status.HTTP_401_UNAUTHORIZED
        assert response.json()["code"] == "two_factor_invalid"

    def test_unknown_mode_is_validation_error(self, client):
        response = client.post(
            "/api/auth/two-factor",
            json={
                "challenge_id": "01890a5d-ac96-774b-bcce-b302099a8057",
                "mode": "sms",
                "code": "123456",
            },
            headers=csrf_headers(client),
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST


@pytest.mark.api
class TestSessionEndpoints:
    """Test the demo session and session lookup."""

    def test_no_session(self, client):
        response = client.get("/api/auth/session")

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"authenticated": False, "session": None}

    def test_demo_session(self, client):
        response = client.post("/api/auth/demo", headers=csrf_headers(client))

        assert response.status_code == status.HTTP_200_OK
        session = response.json()["session"]
        assert session["kind"] == "demo"
        assert session["user"]["displayName"] == "Alex Demo"
        assert session["metadata"]["featureFlags"] == ["demo-mode"]
        assert client.get("/api/auth/session").json()["session"]["kind"] == "demo"

    def test_demo_session_with_custom_name(self, client):
        response = client.post(
            "/api/auth/demo", json={"display_name": "Sam"}, headers=csrf_headers(client)
        )

        assert response.json()["session"]["user"]["displayName"] == "Sam"

    def test_signed_in_session_snapshot(self, client):
        signup(client)

        session = client.get("/api/auth/session").json()["session"]

        assert session["kind"] == "authenticated"
        assert session["user"]["email"] == TEST_EMAIL
        assert session["user"]["roles"] == ["member"]
        assert session["metadata"]["isTwoFactorEnrolled"] is False
        assert session["expiresAt"].endswith("Z")
