"""Two-factor database models."""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from finauth.infrastructure.persistence.base import BaseModel


class TwoFactorChallengeModel(BaseModel):
    """Pending second login step."""

    __tablename__ = "two_factor_challenges"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    consumed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    remember_me: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class BackupCodeModel(BaseModel):
    """One-time recovery code (SHA-256 digest)."""

    __tablename__ = "backup_codes"

    user_id: Mapped[UUID] = mapped_column(
        ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    code_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    used_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (UniqueConstraint("user_id", "code_hash", name="uq_backup_codes_user_hash"),)
