"""AuthService - orchestration core of the authentication flows.

Flows:
    signup            -> user + verification token + token pair
    login             -> token pair, or a two-factor challenge
    complete_two_factor -> token pair deferred from login
    refresh_session   -> rotated token pair
    logout            -> refresh token revoked
    request_password_reset / reset_password
    verify_email
    start_two_factor_enrollment / confirm_two_factor_enrollment

Every operation returns ``Result``. Expected failures are AuthError values;
only unexpected faults (storage down, hashing library failure) raise.

Architecture:
    - Application layer imports domain protocols and entities
    - Repository, email, password hashing and token services are injected
    - Settings are injected; nothing is read from module globals
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import UUID

from uuid_extensions import uuid7

from finauth.application.commands.auth_commands import (
    LoginInput,
    PasswordResetConfirmInput,
    PasswordResetRequestInput,
    RequestContext,
    SignupInput,
    TwoFactorBackupSubmission,
    TwoFactorCodeSubmission,
    TwoFactorSubmission,
    VerifyEmailInput,
)
from finauth.application.dtos.auth_dtos import (
    AuthTokens,
    LoginResult,
    PasswordResetRequestResult,
    PasswordResetResult,
    RefreshResult,
    SignupDebug,
    SignupResult,
    TwoFactorChallengeResult,
    TwoFactorEnrollmentResult,
    TwoFactorEnrollmentStart,
    VerifyEmailResult,
)
from finauth.core.config import Settings
from finauth.core.enums import ErrorCode
from finauth.core.result import Failure, Result, Success
from finauth.domain.entities import (
    AuditEvent,
    EmailVerificationToken,
    PasswordResetToken,
    RefreshToken,
    TwoFactorChallenge,
    User,
    build_display_name,
)
from finauth.domain.enums import AuditAction, UserStatus
from finauth.domain.errors import (
    AccountSuspendedError,
    AuthError,
    EmailInUseError,
    InvalidCredentialsError,
    InvalidOrExpiredTokenError,
    InvalidTokenError,
    InvalidTwoFactorCodeError,
    TermsNotAcceptedError,
    TwoFactorEnrollmentError,
    UserNotFoundError,
)
from finauth.domain.protocols import (
    AuthRepository,
    EmailServiceProtocol,
    LoggerProtocol,
    PasswordHashingProtocol,
)
from finauth.domain.validators import normalize_optional_string
from finauth.infrastructure.security import (
    IssuedRefreshToken,
    JWTService,
    RefreshTokenService,
    TotpService,
    generate_opaque_token,
    hash_opaque_token,
)

VERIFICATION_TOKEN_BYTES = 32
RESET_TOKEN_BYTES = 40


class AuthService:
    """Authentication state machine.

    Usage:
        service = AuthService(
            repository=repository,
            password_hasher=BcryptPasswordService(settings.bcrypt_rounds),
            token_service=jwt_service,
            refresh_token_service=refresh_token_service,
            totp_service=totp_service,
            email_service=email_service,
            logger=logger,
            settings=settings,
        )
        result = await service.login(LoginInput(email=..., password=...), context)
        match result:
            case Success(value=LoginResult() as login):
                ...
            case Success(value=TwoFactorChallengeResult() as challenge):
                ...
            case Failure(error=error):
                ...
    """

    def __init__(
        self,
        *,
        repository: AuthRepository,
        password_hasher: PasswordHashingProtocol,
        token_service: JWTService,
        refresh_token_service: RefreshTokenService,
        totp_service: TotpService,
        email_service: EmailServiceProtocol,
        logger: LoggerProtocol,
        settings: Settings,
    ) -> None:
        self._repository = repository
        self._password_hasher = password_hasher
        self._token_service = token_service
        self._refresh_token_service = refresh_token_service
        self._totp_service = totp_service
        self._email_service = email_service
        self._logger = logger
        self._settings = settings

    # ------------------------------------------------------------------
    # Signup / login
    # ------------------------------------------------------------------

    async def signup(
        self, data: SignupInput, context: RequestContext
    ) -> Result[SignupResult, AuthError]:
        """Create an account and sign the new user in.

        Order:
            1. Email already registered -> EmailInUseError
            2. Terms not accepted -> TermsNotAcceptedError
            3. Hash password, create unverified user
            4. Issue verification token, send verification email (soft-fail)
            5. Issue token pair

        Returns:
            Success(SignupResult). ``debug.email_verification_token`` is only
            populated outside production.
        """
        email = self._normalize_email(data.email)

        if await self._repository.find_user_by_email(email) is not None:
            self._logger.info("signup_rejected", reason="email_in_use")
            return Failure(error=EmailInUseError())

        if not data.accept_terms:
            return Failure(error=TermsNotAcceptedError())

        password_hash = await asyncio.to_thread(
            self._password_hasher.hash_password, data.password
        )

        now = self._now()
        first_name = normalize_optional_string(data.first_name)
        last_name = normalize_optional_string(data.last_name)
        user = User(
            id=uuid7(),
            email=email,
            password_hash=password_hash,
            display_name=build_display_name(email, first_name, last_name),
            status=UserStatus.ACTIVE,
            plan_tier=data.plan_tier,
            created_at=now,
            updated_at=now,
            first_name=first_name,
            last_name=last_name,
            timezone=normalize_optional_string(data.timezone),
        )

        created = await self._repository.create_user(user)
        if created is None:
            # Lost a race with a concurrent signup for the same email
            return Failure(error=EmailInUseError())

        verification_token = generate_opaque_token(VERIFICATION_TOKEN_BYTES)
        verification_expires_at = now + timedelta(
            hours=self._settings.email_verification_token_ttl_hours
        )
        await self._repository.save_email_verification_token(
            EmailVerificationToken(
                id=uuid7(),
                user_id=created.id,
                token_hash=hash_opaque_token(verification_token),
                expires_at=verification_expires_at,
                created_at=now,
            )
        )

        await self._audit(
            AuditAction.SIGNUP,
            user_id=created.id,
            context=context,
            marketing_opt_in=data.marketing_opt_in,
            plan_tier=created.plan_tier.value,
        )

        tokens = await self._issue_tokens(created, context)

        await self._dispatch_email(
            "verification",
            created,
            lambda: self._email_service.send_verification_email(
                created, verification_token, verification_expires_at
            ),
        )

        self._logger.info("signup_succeeded", user_id=str(created.id))

        debug = None
        if not self._settings.is_production:
            debug = SignupDebug(email_verification_token=verification_token)

        return Success(
            value=SignupResult(
                user=created,
                tokens=tokens,
                requires_email_verification=True,
                debug=debug,
            )
        )

    async def login(
        self, data: LoginInput, context: RequestContext
    ) -> Result[LoginResult | TwoFactorChallengeResult, AuthError]:
        """Password login.

        Unknown email and wrong password produce the same
        InvalidCredentialsError, and both spend one bcrypt verification.
        Suspension is only revealed after the password checks out.

        Returns:
            Success(LoginResult), Success(TwoFactorChallengeResult) when the
            account has two-factor enrolled, or Failure.
        """
        email = self._normalize_email(data.email)
        user = await self._repository.find_user_by_email(email)

        if user is None:
            await asyncio.to_thread(self._password_hasher.verify_dummy, data.password)
            self._logger.info("login_failed", reason="invalid_credentials")
            return Failure(error=InvalidCredentialsError())

        password_valid = await asyncio.to_thread(
            self._password_hasher.verify_password, data.password, user.password_hash
        )
        if not password_valid:
            self._logger.info(
                "login_failed", reason="invalid_credentials", user_id=str(user.id)
            )
            return Failure(error=InvalidCredentialsError())

        if user.is_suspended():
            self._logger.warning("login_blocked_suspended", user_id=str(user.id))
            return Failure(error=AccountSuspendedError())

        if user.two_factor_enrolled:
            now = self._now()
            challenge = TwoFactorChallenge(
                id=uuid7(),
                user_id=user.id,
                expires_at=now
                + timedelta(minutes=self._settings.two_factor_challenge_ttl_minutes),
                created_at=now,
                remember_me=data.remember_me,
            )
            await self._repository.save_two_factor_challenge(challenge)
            await self._audit(
                AuditAction.LOGIN_TWO_FACTOR_CHALLENGE,
                user_id=user.id,
                context=context,
                challenge_id=str(challenge.id),
            )
            return Success(
                value=TwoFactorChallengeResult(
                    challenge_id=challenge.id,
                    expires_at=challenge.expires_at,
                )
            )

        login = await self._complete_login(
            user, context, remember_me=data.remember_me, action=AuditAction.LOGIN
        )
        return Success(value=login)

    async def complete_two_factor(
        self, submission: TwoFactorSubmission, context: RequestContext
    ) -> Result[LoginResult, AuthError]:
        """Finish a login that returned a two-factor challenge.

        Args:
            submission: Authenticator code or backup code plus challenge id.
            context: Client context.

        Returns:
            Success(LoginResult) with the deferred tokens.
            Failure(InvalidTokenError) if the challenge is unknown, used or expired.
            Failure(InvalidTwoFactorCodeError) if the code is rejected.
        """
        now = self._now()
        challenge = await self._repository.find_two_factor_challenge(submission.challenge_id)
        if challenge is None or not challenge.is_pending(now):
            return Failure(error=InvalidTokenError())

        user = await self._repository.find_user_by_id(challenge.user_id)
        if user is None or not user.two_factor_enrolled:
            return Failure(error=InvalidTokenError())
        if user.is_suspended():
            return Failure(error=AccountSuspendedError())

        # A backup code is spent together with the challenge, never on its own
        match submission:
            case TwoFactorCodeSubmission(code=code):
                valid = user.totp_secret is not None and self._totp_service.verify_code(
                    user.totp_secret, code
                )
            case TwoFactorBackupSubmission(backup_code=backup_code):
                valid = await self._repository.redeem_backup_code(
                    challenge.id,
                    user.id,
                    self._totp_service.hash_backup_code(backup_code),
                    now,
                )

        if not valid:
            self._logger.warning(
                "two_factor_rejected", user_id=str(user.id), mode=submission.mode
            )
            return Failure(error=InvalidTwoFactorCodeError())

        if isinstance(
            submission, TwoFactorCodeSubmission
        ) and not await self._repository.consume_two_factor_challenge(challenge.id, now):
            return Failure(error=InvalidTokenError())

        login = await self._complete_login(
            user,
            context,
            remember_me=challenge.remember_me,
            action=AuditAction.LOGIN_TWO_FACTOR,
            mode=submission.mode,
        )
        return Success(value=login)

    # ------------------------------------------------------------------
    # Refresh / logout
    # ------------------------------------------------------------------

    async def refresh_session(
        self, refresh_token: str, context: RequestContext
    ) -> Result[RefreshResult, AuthError]:
        """Rotate a refresh token.

        The presented token is revoked and linked to its successor in the
        same transaction that stores the successor. Two concurrent calls
        with the same token: exactly one wins, the other gets
        InvalidTokenError.

        A revoked token presented again with a valid secret is a replay. It
        is always rejected and audited; with ``refresh_reuse_revokes_chain``
        every token rotated out of it is revoked as well.

        Returns:
            Success(RefreshResult), Failure(InvalidTokenError) or
            Failure(AccountSuspendedError).
        """
        parsed = self._refresh_token_service.parse(refresh_token)
        if parsed is None:
            return Failure(error=InvalidTokenError())
        token_id, secret = parsed

        record = await self._repository.find_refresh_token_by_id(token_id)
        if record is None:
            return Failure(error=InvalidTokenError())

        now = self._now()
        secret_valid = self._refresh_token_service.verify_secret(secret, record.token_hash)

        if record.is_revoked:
            if secret_valid:
                await self._handle_refresh_reuse(record, context, now)
            return Failure(error=InvalidTokenError())

        if record.is_expired(now) or not secret_valid:
            await self._repository.revoke_refresh_token(record.id, now)
            self._logger.info(
                "refresh_rejected",
                token_id=str(record.id),
                reason="expired" if secret_valid else "secret_mismatch",
            )
            return Failure(error=InvalidTokenError())

        user = await self._repository.find_user_by_id(record.user_id)
        if user is None:
            await self._repository.revoke_refresh_token(record.id, now)
            return Failure(error=InvalidTokenError())
        if user.is_suspended():
            await self._repository.revoke_refresh_token(record.id, now)
            self._logger.warning("refresh_blocked_suspended", user_id=str(user.id))
            return Failure(error=AccountSuspendedError())

        # Keep the lifetime class of the original login (remember me or not)
        remember_me = (
            record.expires_at - record.issued_at
        ) > timedelta(days=self._settings.refresh_token_short_expire_days)
        issued, successor = self._build_refresh_token(user, context, remember_me)

        rotated = await self._repository.rotate_refresh_token(record.id, successor, now)
        if not rotated:
            self._logger.info("refresh_rotation_lost", token_id=str(record.id))
            return Failure(error=InvalidTokenError())

        tokens = self._token_pair(user, issued)
        await self._audit(
            AuditAction.REFRESH,
            user_id=user.id,
            context=context,
            refresh_token_id=str(record.id),
            replaced_by_token_id=str(successor.id),
        )
        return Success(value=RefreshResult(user=user, tokens=tokens))

    async def logout(
        self, refresh_token: str | None, context: RequestContext
    ) -> Result[None, AuthError]:
        """Revoke the presented refresh token. Never fails.

        Malformed, unknown or already revoked tokens are ignored so that
        logout always clears the client state.
        """
        parsed = self._refresh_token_service.parse(refresh_token)
        if parsed is None:
            return Success(value=None)
        token_id, secret = parsed

        record = await self._repository.find_refresh_token_by_id(token_id)
        if record is None or not self._refresh_token_service.verify_secret(
            secret, record.token_hash
        ):
            return Success(value=None)

        await self._repository.revoke_refresh_token(record.id, self._now())
        await self._audit(
            AuditAction.LOGOUT,
            user_id=record.user_id,
            context=context,
            refresh_token_id=str(record.id),
        )
        return Success(value=None)

    # ------------------------------------------------------------------
    # Password reset / email verification
    # ------------------------------------------------------------------

    async def request_password_reset(
        self,
        data: PasswordResetRequestInput,
        context: RequestContext,
        *,
        schedule: Callable[..., Any] | None = None,
    ) -> Result[PasswordResetRequestResult, AuthError]:
        """Send a reset email if the account exists.

        The result is identical whether or not the email is registered. With
        ``schedule`` (e.g. ``BackgroundTasks.add_task``) the token write, audit
        and email for a known account run after the caller has answered, so
        response time does not depend on whether the account exists.
        """
        email = self._normalize_email(data.email)
        user = await self._repository.find_user_by_email(email)

        if user is None:
            self._logger.info("password_reset_requested_unknown_email")
        elif schedule is not None:
            schedule(self._issue_password_reset, user, context)
        else:
            await self._issue_password_reset(user, context)
        return Success(value=PasswordResetRequestResult(requested=True))

    async def _issue_password_reset(self, user: User, context: RequestContext) -> None:
        now = self._now()
        reset_token = generate_opaque_token(RESET_TOKEN_BYTES)
        expires_at = now + timedelta(minutes=self._settings.password_reset_token_ttl_minutes)
        await self._repository.save_password_reset_token(
            PasswordResetToken(
                id=uuid7(),
                user_id=user.id,
                token_hash=hash_opaque_token(reset_token),
                expires_at=expires_at,
                created_at=now,
            )
        )

        await self._audit(AuditAction.PASSWORD_RESET_REQUEST, user_id=user.id, context=context)

        await self._dispatch_email(
            "password_reset",
            user,
            lambda: self._email_service.send_password_reset_email(user, reset_token, expires_at),
        )

        now = self._now()
        reset_token = generate_opaque_token(RESET_TOKEN_BYTES)
        expires_at = now + timedelta(minutes=self._settings.password_reset_token_ttl_minutes)
        await self._repository.save_password_reset_token(
            PasswordResetToken(
                id=uuid7(),
                user_id=user.id,
                token_hash=hash_opaque_token(reset_token),
                expires_at=expires_at,
                created_at=now,
            )
        )

        await self._audit(AuditAction.PASSWORD_RESET_REQUEST, user_id=user.id, context=context)

        await self._dispatch_email(
            "password_reset",
            user,
            lambda: self._email_service.send_password_reset_email(user, reset_token, expires_at),
        )
        return Success(value=PasswordResetRequestResult(requested=True))

    async def reset_password(
        self, data: PasswordResetConfirmInput, context: RequestContext
    ) -> Result[PasswordResetResult, AuthError]:
        """Set a new password and end every existing session.

        Consuming the token, storing the new hash and revoking all refresh
        tokens of the user happen in one repository transaction.

        Returns:
            Success(PasswordResetResult) or Failure(InvalidOrExpiredTokenError).
        """
        token_hash = hash_opaque_token(data.token)

        # Cheap pre-check so invalid tokens don't cost a bcrypt hash
        record = await self._repository.find_password_reset_token(token_hash)
        if record is None or not record.is_usable(self._now()):
            return Failure(error=InvalidOrExpiredTokenError())

        password_hash = await asyncio.to_thread(
            self._password_hasher.hash_password, data.new_password
        )

        user = await self._repository.complete_password_reset(
            token_hash, password_hash, self._now()
        )
        if user is None:
            return Failure(error=InvalidOrExpiredTokenError())

        await self._audit(AuditAction.PASSWORD_RESET, user_id=user.id, context=context)
        self._logger.info("password_reset_completed", user_id=str(user.id))
        return Success(value=PasswordResetResult(user=user))

    async def verify_email(
        self, data: VerifyEmailInput, context: RequestContext
    ) -> Result[VerifyEmailResult, AuthError]:
        """Consume a verification token and mark the email verified.

        Returns:
            Success(VerifyEmailResult) or Failure(InvalidOrExpiredTokenError).
        """
        user = await self._repository.complete_email_verification(
            hash_opaque_token(data.token), self._now()
        )
        if user is None:
            return Failure(error=InvalidOrExpiredTokenError())

        await self._audit(AuditAction.VERIFY_EMAIL, user_id=user.id, context=context)
        return Success(value=VerifyEmailResult(user=user))

    # ------------------------------------------------------------------
    # Two-factor enrollment
    # ------------------------------------------------------------------

    async def start_two_factor_enrollment(
        self, user_id: UUID
    ) -> Result[TwoFactorEnrollmentStart, AuthError]:
        """Generate a TOTP secret for the user to load into an authenticator app.

        Starting again before confirming replaces the pending secret.
        """
        user = await self._repository.find_user_by_id(user_id)
        if user is None:
            return Failure(error=UserNotFoundError())
        if user.two_factor_enrolled:
            return Failure(
                error=TwoFactorEnrollmentError(
                    code=ErrorCode.TWO_FACTOR_ALREADY_ENROLLED,
                    message="Two-factor authentication is already enabled.",
                )
            )

        enrollment = self._totp_service.create_enrollment(user.email)
        await self._repository.set_totp_secret(user.id, enrollment.secret, self._now())
        return Success(
            value=TwoFactorEnrollmentStart(
                secret=enrollment.secret,
                provisioning_uri=enrollment.provisioning_uri,
            )
        )

    async def confirm_two_factor_enrollment(
        self, user_id: UUID, code: str, context: RequestContext
    ) -> Result[TwoFactorEnrollmentResult, AuthError]:
        """Activate two-factor once the user proves the authenticator works.

        Returns:
            Success(TwoFactorEnrollmentResult) with freshly generated backup
            codes in plaintext. They are not retrievable later.
        """
        user = await self._repository.find_user_by_id(user_id)
        if user is None:
            return Failure(error=UserNotFoundError())
        if user.two_factor_enrolled:
            return Failure(
                error=TwoFactorEnrollmentError(
                    code=ErrorCode.TWO_FACTOR_ALREADY_ENROLLED,
                    message="Two-factor authentication is already enabled.",
                )
            )
        if user.totp_secret is None:
            return Failure(
                error=TwoFactorEnrollmentError(
                    code=ErrorCode.TWO_FACTOR_NOT_ENROLLED,
                    message="Start two-factor enrollment first.",
                )
            )
        if not self._totp_service.verify_code(user.totp_secret, code):
            return Failure(error=InvalidTwoFactorCodeError())

        backup_codes = self._totp_service.generate_backup_codes(
            self._settings.backup_code_count
        )
        now = self._now()
        await self._repository.enable_two_factor(
            user.id,
            [self._totp_service.hash_backup_code(code) for code in backup_codes],
            now,
        )
        await self._audit(AuditAction.TWO_FACTOR_ENROLLED, user_id=user.id, context=context)

        enrolled = replace(user, two_factor_enrolled=True, updated_at=now)
        return Success(value=TwoFactorEnrollmentResult(user=enrolled, backup_codes=backup_codes))

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    @staticmethod
    def _normalize_email(raw: str) -> str:
        return raw.strip().lower()

    async def _complete_login(
        self,
        user: User,
        context: RequestContext,
        *,
        remember_me: bool,
        action: AuditAction,
        **metadata: Any,
    ) -> LoginResult:
        tokens = await self._issue_tokens(user, context, remember_me=remember_me)
        logged_in_at = self._now()
        await self._repository.update_last_login(user.id, logged_in_at)
        await self._audit(
            action,
            user_id=user.id,
            context=context,
            remember_me=remember_me,
            **metadata,
        )
        self._logger.info("login_succeeded", user_id=str(user.id))
        user = replace(user, last_login_at=logged_in_at, updated_at=logged_in_at)
        return LoginResult(user=user, tokens=tokens, email_verified=user.is_email_verified)

    def _build_refresh_token(
        self, user: User, context: RequestContext, remember_me: bool
    ) -> tuple[IssuedRefreshToken, RefreshToken]:
        issued = self._refresh_token_service.generate(remember_me=remember_me)
        record = RefreshToken(
            id=issued.id,
            user_id=user.id,
            token_hash=issued.secret_hash,
            issued_at=issued.issued_at,
            expires_at=issued.expires_at,
            ip_address=context.ip_address,
            user_agent=context.user_agent,
        )
        return issued, record

    def _token_pair(self, user: User, issued: IssuedRefreshToken) -> AuthTokens:
        access = self._token_service.generate_access_token(user)
        return AuthTokens(
            access_token=access.token,
            access_token_expires_at=access.expires_at,
            refresh_token=issued.token,
            refresh_token_expires_at=issued.expires_at,
        )

    async def _issue_tokens(
        self, user: User, context: RequestContext, *, remember_me: bool = False
    ) -> AuthTokens:
        issued, record = self._build_refresh_token(user, context, remember_me)
        await self._repository.save_refresh_token(record)
        return self._token_pair(user, issued)

    async def _handle_refresh_reuse(
        self, record: RefreshToken, context: RequestContext, now: datetime
    ) -> None:
        revoked = 0
        if self._settings.refresh_reuse_revokes_chain:
            revoked = await self._repository.revoke_refresh_token_chain(record.id, now)
        self._logger.warning(
            "refresh_token_reuse_detected",
            token_id=str(record.id),
            user_id=str(record.user_id),
            revoked_descendants=revoked,
            ip_address=context.ip_address,
        )
        await self._audit(
            AuditAction.REFRESH_TOKEN_REUSE,
            user_id=record.user_id,
            context=context,
            refresh_token_id=str(record.id),
            revoked_descendants=revoked,
        )

    async def _dispatch_email(
        self, kind: str, user: User, send: Callable[[], Awaitable[None]]
    ) -> None:
        """Await an email send, bounded by the configured timeout.

        Delivery failures are logged and do not fail the calling flow.
        """
        try:
            await asyncio.wait_for(send(), timeout=self._settings.email_timeout_seconds)
        except TimeoutError:
            self._logger.warning(
                "email_dispatch_timeout",
                kind=kind,
                user_id=str(user.id),
                timeout_seconds=self._settings.email_timeout_seconds,
            )
        except Exception as e:
            self._logger.error(
                "email_dispatch_failed",
                error=e,
                kind=kind,
                user_id=str(user.id),
            )

    async def _audit(
        self,
        action: AuditAction,
        *,
        user_id: UUID | None,
        context: RequestContext,
        actor: str | None = None,
        **metadata: Any,
    ) -> None:
        await self._repository.create_audit_event(
            AuditEvent(
                action=action,
                actor=actor or (str(user_id) if user_id else "system"),
                user_id=user_id,
                ip_address=context.ip_address,
                user_agent=context.user_agent,
                metadata=metadata,
                created_at=self._now(),
            )
        )
