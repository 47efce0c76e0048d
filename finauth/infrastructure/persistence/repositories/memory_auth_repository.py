"""InMemoryAuthRepository - process-local implementation of AuthRepository.

Used for local development without a database and throughout the test suite.
A single asyncio.Lock serializes every operation, which gives each method the
same all-or-nothing behaviour as a database transaction. Records are copied on
the way in and out so callers never hold references into the store.
"""

import asyncio
from dataclasses import replace
from datetime import datetime
from uuid import UUID

from uuid_extensions import uuid7

from finauth.domain.entities import (
    AuditEvent,
    BackupCode,
    EmailVerificationToken,
    PasswordResetToken,
    RefreshToken,
    TwoFactorChallenge,
    User,
)


class InMemoryAuthRepository:
    """Dictionary-backed AuthRepository.

    Example:
        >>> repository = InMemoryAuthRepository()
        >>> await repository.create_user(user)
        >>> (await repository.find_user_by_email("CASEY@example.com")).email
        'casey@example.com'
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._users: dict[UUID, User] = {}
        self._refresh_tokens: dict[UUID, RefreshToken] = {}
        self._verification_tokens: dict[str, EmailVerificationToken] = {}
        self._reset_tokens: dict[str, PasswordResetToken] = {}
        self._challenges: dict[UUID, TwoFactorChallenge] = {}
        self._backup_codes: dict[UUID, list[BackupCode]] = {}
        self.audit_events: list[AuditEvent] = []

    def _user_by_email(self, email: str) -> User | None:
        needle = email.strip().lower()
        for user in self._users.values():
            if user.email.lower() == needle:
                return user
        return None

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def create_user(self, user: User) -> User | None:
        async with self._lock:
            if self._user_by_email(user.email) is not None:
                return None
            stored = replace(user, email=user.email.lower(), roles=list(user.roles))
            self._users[stored.id] = stored
            return replace(stored)

    async def find_user_by_email(self, email: str) -> User | None:
        async with self._lock:
            user = self._user_by_email(email)
            return replace(user) if user else None

    async def find_user_by_id(self, user_id: UUID) -> User | None:
        async with self._lock:
            user = self._users.get(user_id)
            return replace(user) if user else None

    async def update_last_login(self, user_id: UUID, logged_in_at: datetime) -> None:
        async with self._lock:
            user = self._users.get(user_id)
            if user is not None:
                user.last_login_at = logged_in_at
                user.updated_at = logged_in_at

    async def set_totp_secret(self, user_id: UUID, secret: str, now: datetime) -> None:
        async with self._lock:
            user = self._users.get(user_id)
            if user is not None:
                user.totp_secret = secret
                user.updated_at = now

    async def enable_two_factor(
        self, user_id: UUID, backup_code_hashes: list[str], now: datetime
    ) -> None:
        async with self._lock:
            user = self._users.get(user_id)
            if user is None:
                return
            self._backup_codes[user_id] = [
                BackupCode(id=uuid7(), user_id=user_id, code_hash=code_hash, created_at=now)
                for code_hash in backup_code_hashes
            ]
            user.two_factor_enrolled = True
            user.updated_at = now

    # ------------------------------------------------------------------
    # Refresh tokens
    # ------------------------------------------------------------------

    async def save_refresh_token(self, token: RefreshToken) -> None:
        async with self._lock:
            self._refresh_tokens[token.id] = replace(token)

    async def find_refresh_token_by_id(self, token_id: UUID) -> RefreshToken | None:
        async with self._lock:
            token = self._refresh_tokens.get(token_id)
            return replace(token) if token else None

    async def rotate_refresh_token(
        self, old_token_id: UUID, new_token: RefreshToken, now: datetime
    ) -> bool:
        async with self._lock:
            old = self._refresh_tokens.get(old_token_id)
            if old is None or old.revoked_at is not None:
                return False
            old.revoked_at = now
            old.replaced_by_token_id = new_token.id
            self._refresh_tokens[new_token.id] = replace(new_token)
            return True

    async def revoke_refresh_token(
        self,
        token_id: UUID,
        revoked_at: datetime,
        replaced_by_token_id: UUID | None = None,
    ) -> None:
        async with self._lock:
            token = self._refresh_tokens.get(token_id)
            if token is None or token.revoked_at is not None:
                return
            token.revoked_at = revoked_at
            if replaced_by_token_id is not None:
                token.replaced_by_token_id = replaced_by_token_id

    async def revoke_refresh_token_chain(self, token_id: UUID, revoked_at: datetime) -> int:
        async with self._lock:
            revoked = 0
            seen: set[UUID] = set()
            current: UUID | None = token_id
            while current is not None and current not in seen:
                seen.add(current)
                token = self._refresh_tokens.get(current)
                if token is None:
                    break
                if token.revoked_at is None:
                    token.revoked_at = revoked_at
                    revoked += 1
                current = token.replaced_by_token_id
            return revoked

    def _revoke_all_for_user(self, user_id: UUID, revoked_at: datetime) -> int:
        revoked = 0
        for token in self._refresh_tokens.values():
            if token.user_id == user_id and token.revoked_at is None:
                token.revoked_at = revoked_at
                revoked += 1
        return revoked

    # ------------------------------------------------------------------
    # Single-use tokens
    # ------------------------------------------------------------------

    async def save_email_verification_token(self, token: EmailVerificationToken) -> None:
        async with self._lock:
            self._verification_tokens[token.token_hash] = replace(token)

    async def complete_email_verification(
        self, token_hash: str, now: datetime
    ) -> User | None:
        async with self._lock:
            token = self._verification_tokens.get(token_hash)
            if token is None or not token.is_usable(now):
                return None
            user = self._users.get(token.user_id)
            if user is None:
                return None
            token.consumed_at = now
            if user.email_verified_at is None:
                user.email_verified_at = now
            user.updated_at = now
            return replace(user)

    async def save_password_reset_token(self, token: PasswordResetToken) -> None:
        async with self._lock:
            self._reset_tokens[token.token_hash] = replace(token)

    async def find_password_reset_token(self, token_hash: str) -> PasswordResetToken | None:
        async with self._lock:
            token = self._reset_tokens.get(token_hash)
            return replace(token) if token else None

    async def complete_password_reset(
        self, token_hash: str, password_hash: str, now: datetime
    ) -> User | None:
        async with self._lock:
            token = self._reset_tokens.get(token_hash)
            if token is None or not token.is_usable(now):
                return None
            user = self._users.get(token.user_id)
            if user is None:
                return None
            token.consumed_at = now
            user.password_hash = password_hash
            user.updated_at = now
            self._revoke_all_for_user(user.id, now)
            return replace(user)

    # ------------------------------------------------------------------
    # Two-factor
    # ------------------------------------------------------------------

    async def save_two_factor_challenge(self, challenge: TwoFactorChallenge) -> None:
        async with self._lock:
            self._challenges[challenge.id] = replace(challenge)

    async def find_two_factor_challenge(
        self, challenge_id: UUID
    ) -> TwoFactorChallenge | None:
        async with self._lock:
            challenge = self._challenges.get(challenge_id)
            return replace(challenge) if challenge else None

    async def consume_two_factor_challenge(self, challenge_id: UUID, now: datetime) -> bool:
        async with self._lock:
            challenge = self._challenges.get(challenge_id)
            if challenge is None or not challenge.is_pending(now):
                return False
            challenge.consumed_at = now
            return True

    async def redeem_backup_code(
        self, challenge_id: UUID, user_id: UUID, code_hash: str, now: datetime
    ) -> bool:
        async with self._lock:
            challenge = self._challenges.get(challenge_id)
            if (
                challenge is None
                or challenge.user_id != user_id
                or not challenge.is_pending(now)
            ):
                return False
            for code in self._backup_codes.get(user_id, []):
                if code.code_hash == code_hash and code.used_at is None:
                    code.used_at = now
                    challenge.consumed_at = now
                    return True
            return False

    # ------------------------------------------------------------------
    # Audit
    # ------------------------------------------------------------------

    async def create_audit_event(self, event: AuditEvent) -> None:
        async with self._lock:
            self.audit_events.append(
                replace(event, id=event.id or uuid7(), metadata=dict(event.metadata))
            )
