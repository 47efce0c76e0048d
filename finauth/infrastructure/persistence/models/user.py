"""User database model."""

from datetime import datetime

from sqlalchemy import JSON, Boolean, DateTime, Index, String, func
from sqlalchemy.orm import Mapped, mapped_column

from finauth.infrastructure.persistence.base import BaseMutableModel


class UserModel(BaseMutableModel):
    """User account row.

    Emails are stored lower-cased, and a unique index on ``lower(email)``
    keeps uniqueness case-insensitive even for rows written by other tools.

    Indexes:
        - uq_users_email_lower: unique (lower(email))
    """

    __tablename__ = "users"

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Lower-cased email address",
    )
    password_hash: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        comment="Bcrypt hash (never plaintext)",
    )
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    first_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    last_name: Mapped[str | None] = mapped_column(String(100), nullable=True)
    timezone: Mapped[str | None] = mapped_column(String(64), nullable=True)
    roles: Mapped[list[str]] = mapped_column(
        JSON,
        nullable=False,
        default=list,
        comment="Role names granted to the user",
    )
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="active",
        comment="active | invited | suspended",
    )
    plan_tier: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default="free",
        comment="free | pro | family",
    )
    email_verified_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    last_login_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    two_factor_enrolled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    totp_secret: Mapped[str | None] = mapped_column(
        String(64),
        nullable=True,
        comment="Base32 TOTP secret",
    )


# Case-insensitive uniqueness
Index("uq_users_email_lower", func.lower(UserModel.email), unique=True)
