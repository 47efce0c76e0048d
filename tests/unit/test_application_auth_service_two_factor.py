"""Unit tests for two-factor enrollment and two-factor login.

Tests cover:
- Enrollment: start, confirm with a live code, backup codes returned once
- Enrollment state errors
- Login with two-factor enrolled returns a challenge and no tokens
- Completing a challenge with a TOTP code or a backup code
- Single-use challenges and backup codes
- The all-zero placeholder code is always refused
"""

import asyncio
from uuid import UUID

import pytest
from uuid_extensions import uuid7

from finauth.application.commands import (
    LoginInput,
    TwoFactorBackupSubmission,
    TwoFactorCodeSubmission,
)
from finauth.application.dtos import LoginResult, TwoFactorChallengeResult
from finauth.core.enums import ErrorCode
from finauth.core.result import Success
from finauth.domain.enums import AuditAction
from finauth.domain.errors import (
    InvalidTokenError,
    InvalidTwoFactorCodeError,
    TwoFactorEnrollmentError,
    UserNotFoundError,
)
from tests.conftest import TEST_EMAIL, TEST_PASSWORD


async def enrolled_user(auth_service, totp_service, signup_input, context):
    """Sign up and complete two-factor enrollment.

    Returns:
        (user_id, totp_secret, backup_codes)
    """
    signup = await auth_service.signup(signup_input, context)
    user_id = signup.value.user.id
    start = await auth_service.start_two_factor_enrollment(user_id)
    secret = start.value.secret
    confirm = await auth_service.confirm_two_factor_enrollment(
        user_id, totp_service.current_code(secret), context
    )
    return user_id, secret, confirm.value.backup_codes


async def password_step(auth_service, context, remember_me=False) -> TwoFactorChallengeResult:
    result = await auth_service.login(
        LoginInput(email=TEST_EMAIL, password=TEST_PASSWORD, remember_me=remember_me), context
    )
    return result.value


@pytest.mark.unit
class TestTwoFactorEnrollment:
    """Test enrolling an authenticator."""

    @pytest.mark.asyncio
    async def test_start_returns_secret_and_provisioning_uri(
        self, auth_service, repository, signup_input, context
    ):
        """Test enrollment start stores a pending secret."""
        signup = await auth_service.signup(signup_input, context)

        result = await auth_service.start_two_factor_enrollment(signup.value.user.id)

        assert isinstance(result, Success)
        assert result.value.provisioning_uri.startswith("otpauth://totp/")
        assert "Finance%20Manager" in result.value.provisioning_uri
        stored = await repository.find_user_by_id(signup.value.user.id)
        assert stored.totp_secret == result.value.secret
        assert stored.two_factor_enrolled is False

    @pytest.mark.asyncio
    async def test_confirm_enables_two_factor_and_returns_backup_codes(
        self, auth_service, repository, totp_service, settings, signup_input, context
    ):
        """Test a live code activates two-factor and yields the backup codes."""
        user_id, _, backup_codes = await enrolled_user(
            auth_service, totp_service, signup_input, context
        )

        stored = await repository.find_user_by_id(user_id)
        assert stored.two_factor_enrolled is True
        assert len(backup_codes) == settings.backup_code_count
        assert len(set(backup_codes)) == len(backup_codes)
        assert all(len(code) == 11 and code[5] == "-" for code in backup_codes)
        assert AuditAction.TWO_FACTOR_ENROLLED in [e.action for e in repository.audit_events]

    @pytest.mark.asyncio
    async def test_backup_codes_are_stored_as_digests(
        self, auth_service, repository, totp_service, signup_input, context
    ):
        """Test plaintext backup codes are never persisted."""
        user_id, _, backup_codes = await enrolled_user(
            auth_service, totp_service, signup_input, context
        )

        stored = {code.code_hash for code in repository._backup_codes[user_id]}
        assert stored.isdisjoint(backup_codes)
        assert stored == {totp_service.hash_backup_code(code) for code in backup_codes}

    @pytest.mark.asyncio
    async def test_confirm_with_wrong_code_fails(
        self, auth_service, repository, signup_input, context
    ):
        """Test the placeholder code cannot confirm enrollment."""
        signup = await auth_service.signup(signup_input, context)
        await auth_service.start_two_factor_enrollment(signup.value.user.id)

        result = await auth_service.confirm_two_factor_enrollment(
            signup.value.user.id, "000000", context
        )

        assert isinstance(result.error, InvalidTwoFactorCodeError)
        assert (await repository.find_user_by_id(signup.value.user.id)).two_factor_enrolled is False

    @pytest.mark.asyncio
    async def test_confirm_before_start_fails(self, auth_service, signup_input, context):
        """Test confirmation requires a pending secret."""
        signup = await auth_service.signup(signup_input, context)

        result = await auth_service.confirm_two_factor_enrollment(
            signup.value.user.id, "123456", context
        )

        assert isinstance(result.error, TwoFactorEnrollmentError)
        assert result.error.code == ErrorCode.TWO_FACTOR_NOT_ENROLLED

    @pytest.mark.asyncio
    async def test_start_when_enrolled_fails(
        self, auth_service, totp_service, signup_input, context
    ):
        """Test an enrolled user cannot silently replace the secret."""
        user_id, _, _ = await enrolled_user(auth_service, totp_service, signup_input, context)

        result = await auth_service.start_two_factor_enrollment(user_id)

        assert isinstance(result.error, TwoFactorEnrollmentError)
        assert result.error.code == ErrorCode.TWO_FACTOR_ALREADY_ENROLLED

    @pytest.mark.asyncio
    async def test_unknown_user_fails(self, auth_service):
        """Test enrollment for a user that does not exist."""
        result = await auth_service.start_two_factor_enrollment(uuid7())

        assert isinstance(result.error, UserNotFoundError)


@pytest.mark.unit
class TestTwoFactorLogin:
    """Test the second login step."""

    @pytest.mark.asyncio
    async def test_password_step_returns_challenge_without_tokens(
        self, auth_service, repository, totp_service, signup_input, context
    ):
        """Test tokens are withheld until the second factor is presented."""
        # Arrange
        await enrolled_user(auth_service, totp_service, signup_input, context)
        tokens_before = len(repository._refresh_tokens)

        # Act
        challenge = await password_step(auth_service, context)

        # Assert
        assert isinstance(challenge, TwoFactorChallengeResult)
        assert challenge.status == "needs_two_factor"
        assert isinstance(challenge.challenge_id, UUID)
        assert set(challenge.methods) == {"code", "backup"}
        assert len(repository._refresh_tokens) == tokens_before

    @pytest.mark.asyncio
    async def test_totp_code_completes_login(
        self, auth_service, repository, totp_service, signup_input, context
    ):
        """Test a current authenticator code yields the deferred tokens."""
        _, secret, _ = await enrolled_user(auth_service, totp_service, signup_input, context)
        challenge = await password_step(auth_service, context)

        result = await auth_service.complete_two_factor(
            TwoFactorCodeSubmission(
                challenge_id=challenge.challenge_id, code=totp_service.current_code(secret)
            ),
            context,
        )

        assert isinstance(result.value, LoginResult)
        assert result.value.tokens.refresh_token
        assert result.value.user.last_login_at is not None
        assert AuditAction.LOGIN_TWO_FACTOR in [e.action for e in repository.audit_events]

    @pytest.mark.asyncio
    async def test_challenge_is_single_use(
        self, auth_service, totp_service, signup_input, context
    ):
        """Test a completed challenge cannot be completed again."""
        _, secret, _ = await enrolled_user(auth_service, totp_service, signup_input, context)
        challenge = await password_step(auth_service, context)
        submission = TwoFactorCodeSubmission(
            challenge_id=challenge.challenge_id, code=totp_service.current_code(secret)
        )

        first = await auth_service.complete_two_factor(submission, context)
        second = await auth_service.complete_two_factor(submission, context)

        assert isinstance(first, Success)
        assert isinstance(second.error, InvalidTokenError)

    @pytest.mark.asyncio
    async def test_placeholder_code_is_refused(
        self, auth_service, totp_service, signup_input, context
    ):
        """Test the all-zero code never completes a challenge."""
        await enrolled_user(auth_service, totp_service, signup_input, context)
        challenge = await password_step(auth_service, context)

        result = await auth_service.complete_two_factor(
            TwoFactorCodeSubmission(challenge_id=challenge.challenge_id, code="000000"),
            context,
        )

        assert isinstance(result.error, InvalidTwoFactorCodeError)

    @pytest.mark.asyncio
    async def test_rejected_code_leaves_challenge_open(
        self, auth_service, totp_service, signup_input, context
    ):
        """Test a typo does not burn the challenge."""
        _, secret, _ = await enrolled_user(auth_service, totp_service, signup_input, context)
        challenge = await password_step(auth_service, context)

        await auth_service.complete_two_factor(
            TwoFactorCodeSubmission(challenge_id=challenge.challenge_id, code="12345"),
            context,
        )
        retry = await auth_service.complete_two_factor(
            TwoFactorCodeSubmission(
                challenge_id=challenge.challenge_id, code=totp_service.current_code(secret)
            ),
            context,
        )

        assert isinstance(retry, Success)

    @pytest.mark.asyncio
    async def test_unknown_challenge_is_invalid(self, auth_service, context):
        """Test a challenge id that was never issued."""
        result = await auth_service.complete_two_factor(
            TwoFactorCodeSubmission(challenge_id=uuid7(), code="123456"), context
        )

        assert isinstance(result.error, InvalidTokenError)

    @pytest.mark.asyncio
    async def test_backup_code_completes_login_once(
        self, auth_service, totp_service, signup_input, context
    ):
        """Test a backup code works exactly once."""
        # Arrange
        _, _, backup_codes = await enrolled_user(
            auth_service, totp_service, signup_input, context
        )
        code = backup_codes[0]
        first_challenge = await password_step(auth_service, context)
        second_challenge = await password_step(auth_service, context)

        # Act
        first = await auth_service.complete_two_factor(
            TwoFactorBackupSubmission(
                challenge_id=first_challenge.challenge_id, backup_code=code
            ),
            context,
        )
        second = await auth_service.complete_two_factor(
            TwoFactorBackupSubmission(
                challenge_id=second_challenge.challenge_id, backup_code=code
            ),
            context,
        )

        # Assert
        assert isinstance(first, Success)
        assert isinstance(second.error, InvalidTwoFactorCodeError)

    @pytest.mark.asyncio
    async def test_racing_backup_codes_spend_only_the_winner(
        self, auth_service, totp_service, repository, signup_input, context
    ):
        """Test two backup codes submitted together on one challenge burn one code."""
        # Arrange
        user_id, _, backup_codes = await enrolled_user(
            auth_service, totp_service, signup_input, context
        )
        challenge = await password_step(auth_service, context)

        # Act
        results = await asyncio.gather(
            *(
                auth_service.complete_two_factor(
                    TwoFactorBackupSubmission(
                        challenge_id=challenge.challenge_id, backup_code=code
                    ),
                    context,
                )
                for code in backup_codes[:2]
            )
        )

        # Assert
        assert sum(isinstance(result, Success) for result in results) == 1
        used = [code for code in repository._backup_codes[user_id] if code.used_at]
        assert len(used) == 1

    @pytest.mark.asyncio
    async def test_spent_challenge_keeps_backup_code(
        self, auth_service, totp_service, signup_input, context
    ):
        """Test a backup code sent on a completed challenge stays usable."""
        _, secret, backup_codes = await enrolled_user(
            auth_service, totp_service, signup_input, context
        )
        challenge = await password_step(auth_service, context)
        await auth_service.complete_two_factor(
            TwoFactorCodeSubmission(
                challenge_id=challenge.challenge_id, code=totp_service.current_code(secret)
            ),
            context,
        )

        late = await auth_service.complete_two_factor(
            TwoFactorBackupSubmission(
                challenge_id=challenge.challenge_id, backup_code=backup_codes[0]
            ),
            context,
        )
        fresh = await password_step(auth_service, context)
        retry = await auth_service.complete_two_factor(
            TwoFactorBackupSubmission(
                challenge_id=fresh.challenge_id, backup_code=backup_codes[0]
            ),
            context,
        )

        assert isinstance(late.error, InvalidTokenError)
        assert isinstance(retry, Success)

    @pytest.mark.asyncio
    async def test_backup_code_ignores_case_and_separators(
        self, auth_service, totp_service, signup_input, context
    ):
        """Test a backup code typed in upper case with a space is accepted."""
        _, _, backup_codes = await enrolled_user(
            auth_service, totp_service, signup_input, context
        )
        typed = backup_codes[1].upper().replace("-", " ")
        challenge = await password_step(auth_service, context)

        result = await auth_service.complete_two_factor(
            TwoFactorBackupSubmission(challenge_id=challenge.challenge_id, backup_code=typed),
            context,
        )

        assert isinstance(result, Success)

    @pytest.mark.asyncio
    async def test_remember_me_is_carried_through_challenge(
        self, auth_service, totp_service, settings, signup_input, context
    ):
        """Test the refresh lifetime chosen at the password step is honoured."""
        _, secret, _ = await enrolled_user(auth_service, totp_service, signup_input, context)
        challenge = await password_step(auth_service, context, remember_me=True)

        result = await auth_service.complete_two_factor(
            TwoFactorCodeSubmission(
                challenge_id=challenge.challenge_id, code=totp_service.current_code(secret)
            ),
            context,
        )

        tokens = result.value.tokens
        lifetime = tokens.refresh_token_expires_at - tokens.access_token_expires_at
        assert lifetime.days >= settings.refresh_token_expire_days - 1
