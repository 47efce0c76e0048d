"""SqlAlchemyAuthRepository - SQLAlchemy implementation of AuthRepository.

Each public method runs in its own transaction (``Database.transaction``) and
returns only after the commit, so a reported success is durable.

Consuming operations use conditional updates, e.g.

    UPDATE refresh_tokens SET revoked_at = :now, replaced_by_token_id = :new
    WHERE id = :old AND revoked_at IS NULL

and inspect the affected row count. Under concurrent callers the database's
row lock makes exactly one of them see ``rowcount == 1``.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError

from finauth.domain.entities import (
    AuditEvent,
    EmailVerificationToken,
    PasswordResetToken,
    RefreshToken,
    TwoFactorChallenge,
    User,
)
from finauth.domain.enums import PlanTier, UserStatus
from finauth.infrastructure.persistence.database import Database
from finauth.infrastructure.persistence.models import (
    AuditLogModel,
    BackupCodeModel,
    EmailVerificationTokenModel,
    PasswordResetTokenModel,
    RefreshTokenModel,
    TwoFactorChallengeModel,
    UserModel,
)


def _to_user(model: UserModel) -> User:
    """Convert database model to domain entity."""
    return User(
        id=model.id,
        email=model.email,
        password_hash=model.password_hash,
        display_name=model.display_name,
        status=UserStatus(model.status),
        plan_tier=PlanTier(model.plan_tier),
        created_at=model.created_at,
        updated_at=model.updated_at,
        roles=list(model.roles or []),
        first_name=model.first_name,
        last_name=model.last_name,
        timezone=model.timezone,
        email_verified_at=model.email_verified_at,
        last_login_at=model.last_login_at,
        two_factor_enrolled=model.two_factor_enrolled,
        totp_secret=model.totp_secret,
    )


def _to_refresh_token(model: RefreshTokenModel) -> RefreshToken:
    return RefreshToken(
        id=model.id,
        user_id=model.user_id,
        token_hash=model.token_hash,
        issued_at=model.issued_at,
        expires_at=model.expires_at,
        revoked_at=model.revoked_at,
        replaced_by_token_id=model.replaced_by_token_id,
        ip_address=model.ip_address,
        user_agent=model.user_agent,
    )


def _refresh_token_model(token: RefreshToken) -> RefreshTokenModel:
    return RefreshTokenModel(
        id=token.id,
        user_id=token.user_id,
        token_hash=token.token_hash,
        issued_at=token.issued_at,
        created_at=token.issued_at,
        expires_at=token.expires_at,
        revoked_at=token.revoked_at,
        replaced_by_token_id=token.replaced_by_token_id,
        ip_address=token.ip_address,
        user_agent=token.user_agent,
    )


class SqlAlchemyAuthRepository:
    """SQLAlchemy implementation of the AuthRepository port.

    Attributes:
        db: Database providing transactional sessions.

    Example:
        >>> repository = SqlAlchemyAuthRepository(Database(settings.database_url))
        >>> user = await repository.find_user_by_email("Casey@Example.com")
    """

    def __init__(self, db: Database) -> None:
        """Initialize repository.

        Args:
            db: Database providing transactional sessions.
        """
        self.db = db

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_user(self, user: User) -> User | None:
        model = UserModel(
            id=user.id,
            email=user.email.lower(),
            password_hash=user.password_hash,
            display_name=user.display_name,
            first_name=user.first_name,
            last_name=user.last_name,
            timezone=user.timezone,
            roles=list(user.roles),
            status=user.status.value,
            plan_tier=user.plan_tier.value,
            email_verified_at=user.email_verified_at,
            last_login_at=user.last_login_at,
            two_factor_enrolled=user.two_factor_enrolled,
            totp_secret=user.totp_secret,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )
        try:
            async with self.db.transaction() as session:
                session.add(model)
        except IntegrityError:
            # Unique violation on lower(email)
            return None
        return _to_user(model)

    async def find_user_by_email(self, email: str) -> User | None:
        async with self.db.transaction() as session:
            result = await session.execute(
                select(UserModel).where(func.lower(UserModel.email) == email.strip().lower())
            )
            model = result.scalar_one_or_none()
            return _to_user(model) if model else None

    async def find_user_by_id(self, user_id: UUID) -> User | None:
        async with self.db.transaction() as session:
            model = await session.get(UserModel, user_id)
            return _to_user(model) if model else None

    async def update_last_login(self, user_id: UUID, logged_in_at: datetime) -> None:
        async with self.db.transaction() as session:
            await session.execute(
                update(UserModel)
                .where(UserModel.id == user_id)
                .values(last_login_at=logged_in_at, updated_at=logged_in_at)
            )

    async def set_totp_secret(self, user_id: UUID, secret: str, now: datetime) -> None:
        async with self.db.transaction() as session:
            await session.execute(
                update(UserModel)
                .where(UserModel.id == user_id)
                .values(totp_secret=secret, updated_at=now)
            )

    async def enable_two_factor(
        self, user_id: UUID, backup_code_hashes: list[str], now: datetime
    ) -> None:
        async with self.db.transaction() as session:
            await session.execute(delete(BackupCodeModel).where(BackupCodeModel.user_id == user_id))
            session.add_all(
                BackupCodeModel(user_id=user_id, code_hash=code_hash, created_at=now)
                for code_hash in backup_code_hashes
            )
            await session.execute(
                update(UserModel)
                .where(UserModel.id == user_id)
                .values(two_factor_enrolled=True, updated_at=now)
            )

    # ------------------------------------------------------------------
    # Refresh tokens
    # ------------------------------------------------------------------

    async def save_refresh_token(self, token: RefreshToken) -> None:
        async with self.db.transaction() as session:
            session.add(_refresh_token_model(token))

    async def find_refresh_token_by_id(self, token_id: UUID) -> RefreshToken | None:
        async with self.db.transaction() as session:
            model = await session.get(RefreshTokenModel, token_id)
            return _to_refresh_token(model) if model else None

    async def rotate_refresh_token(
        self, old_token_id: UUID, new_token: RefreshToken, now: datetime
    ) -> bool:
        async with self.db.transaction() as session:
            result = await session.execute(
                update(RefreshTokenModel)
                .where(
                    RefreshTokenModel.id == old_token_id,
                    RefreshTokenModel.revoked_at.is_(None),
                )
                .values(revoked_at=now, replaced_by_token_id=new_token.id)
            )
            if result.rowcount != 1:
                return False
            session.add(_refresh_token_model(new_token))
        return True

    async def revoke_refresh_token(
        self,
        token_id: UUID,
        revoked_at: datetime,
        replaced_by_token_id: UUID | None = None,
    ) -> None:
        values: dict[str, object] = {"revoked_at": revoked_at}
        if replaced_by_token_id is not None:
            values["replaced_by_token_id"] = replaced_by_token_id
        async with self.db.transaction() as session:
            await session.execute(
                update(RefreshTokenModel)
                .where(
                    RefreshTokenModel.id == token_id,
                    RefreshTokenModel.revoked_at.is_(None),
                )
                .values(**values)
            )

    async def revoke_refresh_token_chain(self, token_id: UUID, revoked_at: datetime) -> int:
        revoked = 0
        seen: set[UUID] = set()
        async with self.db.transaction() as session:
            current: UUID | None = token_id
            while current is not None and current not in seen:
                seen.add(current)
                model = await session.get(RefreshTokenModel, current, with_for_update=True)
                if model is None:
                    break
                if model.revoked_at is None:
                    model.revoked_at = revoked_at
                    revoked += 1
                current = model.replaced_by_token_id
        return revoked

    # ------------------------------------------------------------------
    # Single-use tokens
    # ------------------------------------------------------------------

    async def save_email_verification_token(self, token: EmailVerificationToken) -> None:
        async with self.db.transaction() as session:
            session.add(
                EmailVerificationTokenModel(
                    id=token.id,
                    user_id=token.user_id,
                    token_hash=token.token_hash,
                    expires_at=token.expires_at,
                    created_at=token.created_at,
                    consumed_at=token.consumed_at,
                )
            )

    async def complete_email_verification(
        self, token_hash: str, now: datetime
    ) -> User | None:
        async with self.db.transaction() as session:
            result = await session.execute(
                update(EmailVerificationTokenModel)
                .where(
                    EmailVerificationTokenModel.token_hash == token_hash,
                    EmailVerificationTokenModel.consumed_at.is_(None),
                    EmailVerificationTokenModel.expires_at > now,
                )
                .values(consumed_at=now)
                .returning(EmailVerificationTokenModel.user_id)
            )
            user_id = result.scalar_one_or_none()
            if user_id is None:
                return None

            user = await session.get(UserModel, user_id)
            if user is None:
                return None
            if user.email_verified_at is None:
                user.email_verified_at = now
            user.updated_at = now
            return _to_user(user)

    async def save_password_reset_token(self, token: PasswordResetToken) -> None:
        async with self.db.transaction() as session:
            session.add(
                PasswordResetTokenModel(
                    id=token.id,
                    user_id=token.user_id,
                    token_hash=token.token_hash,
                    expires_at=token.expires_at,
                    created_at=token.created_at,
                    consumed_at=token.consumed_at,
                )
            )

    async def find_password_reset_token(self, token_hash: str) -> PasswordResetToken | None:
        async with self.db.transaction() as session:
            result = await session.execute(
                select(PasswordResetTokenModel).where(
                    PasswordResetTokenModel.token_hash == token_hash
                )
            )
            model = result.scalar_one_or_none()
            if model is None:
                return None
            return PasswordResetToken(
                id=model.id,
                user_id=model.user_id,
                token_hash=model.token_hash,
                expires_at=model.expires_at,
                created_at=model.created_at,
                consumed_at=model.consumed_at,
            )

    async def complete_password_reset(
        self, token_hash: str, password_hash: str, now: datetime
    ) -> User | None:
        async with self.db.transaction() as session:
            result = await session.execute(
                update(PasswordResetTokenModel)
                .where(
                    PasswordResetTokenModel.token_hash == token_hash,
                    PasswordResetTokenModel.consumed_at.is_(None),
                    PasswordResetTokenModel.expires_at > now,
                )
                .values(consumed_at=now)
                .returning(PasswordResetTokenModel.user_id)
            )
            user_id = result.scalar_one_or_none()
            if user_id is None:
                return None

            user = await session.get(UserModel, user_id)
            if user is None:
                return None
            user.password_hash = password_hash
            user.updated_at = now

            await session.execute(
                update(RefreshTokenModel)
                .where(
                    RefreshTokenModel.user_id == user_id,
                    RefreshTokenModel.revoked_at.is_(None),
                )
                .values(revoked_at=now)
            )
            return _to_user(user)

    # ------------------------------------------------------------------
    # Two-factor
    # ------------------------------------------------------------------

    async def save_two_factor_challenge(self, challenge: TwoFactorChallenge) -> None:
        async with self.db.transaction() as session:
            session.add(
                TwoFactorChallengeModel(
                    id=challenge.id,
                    user_id=challenge.user_id,
                    expires_at=challenge.expires_at,
                    created_at=challenge.created_at,
                    remember_me=challenge.remember_me,
                    consumed_at=challenge.consumed_at,
                )
            )

    async def find_two_factor_challenge(
        self, challenge_id: UUID
    ) -> TwoFactorChallenge | None:
        async with self.db.transaction() as session:
            model = await session.get(TwoFactorChallengeModel, challenge_id)
            if model is None:
                return None
            return TwoFactorChallenge(
                id=model.id,
                user_id=model.user_id,
                expires_at=model.expires_at,
                created_at=model.created_at,
                remember_me=model.remember_me,
                consumed_at=model.consumed_at,
            )

    async def consume_two_factor_challenge(self, challenge_id: UUID, now: datetime) -> bool:
        async with self.db.transaction() as session:
            result = await session.execute(
                update(TwoFactorChallengeModel)
                .where(
                    TwoFactorChallengeModel.id == challenge_id,
                    TwoFactorChallengeModel.consumed_at.is_(None),
                    TwoFactorChallengeModel.expires_at > now,
                )
                .values(consumed_at=now)
            )
            return result.rowcount == 1

    async def redeem_backup_code(
        self, challenge_id: UUID, user_id: UUID, code_hash: str, now: datetime
    ) -> bool:
        async with self.db.transaction() as session:
            # Row lock serializes concurrent submissions on one challenge
            locked = await session.execute(
                select(TwoFactorChallengeModel.id)
                .where(
                    TwoFactorChallengeModel.id == challenge_id,
                    TwoFactorChallengeModel.user_id == user_id,
                    TwoFactorChallengeModel.consumed_at.is_(None),
                    TwoFactorChallengeModel.expires_at > now,
                )
                .with_for_update()
            )
            if locked.scalar_one_or_none() is None:
                return False

            result = await session.execute(
                update(BackupCodeModel)
                .where(
                    BackupCodeModel.user_id == user_id,
                    BackupCodeModel.code_hash == code_hash,
                    BackupCodeModel.used_at.is_(None),
                )
                .values(used_at=now)
            )
            if result.rowcount != 1:
                return False

            await session.execute(
                update(TwoFactorChallengeModel)
                .where(TwoFactorChallengeModel.id == challenge_id)
                .values(consumed_at=now)
            )
            return True

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    async def create_audit_event(self, event: AuditEvent) -> None:
        model = AuditLogModel(
            action=event.action.value,
            actor=event.actor,
            user_id=event.user_id,
            ip_address=event.ip_address,
            user_agent=event.user_agent,
            context=dict(event.metadata),
        )
        if event.created_at is not None:
            model.created_at = event.created_at
        async with self.db.transaction() as session:
            session.add(model)
