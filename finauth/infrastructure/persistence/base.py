"""Base model and mixins for all database entities.

- BaseModel: Base class for ALL models (provides id, created_at)
- TimestampMixin: Adds updated_at
- BaseMutableModel: Base for mutable models (combines above)

Domain entities do NOT inherit from these; repositories map between the two.

Architecture:
    BaseModel (id, created_at)
        ├── BaseMutableModel (+ updated_at)
        │   └── UserModel
        └── RefreshTokenModel, PasswordResetTokenModel, ... (append-mostly)
"""

from datetime import datetime
from uuid import UUID as PythonUUID

from sqlalchemy import DateTime, Uuid, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from uuid_extensions import uuid7


class BaseModel(DeclarativeBase):
    """Base class for all database models.

    Provides common fields that ALL database models need:
    - id: UUID primary key (UUIDv7, time-ordered)
    - created_at: Timestamp when record was created (UTC)
    """

    # Every model gets a UUID primary key
    id: Mapped[PythonUUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid7,
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
    )

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(id={self.id})>"


class TimestampMixin:
    """Mixin for mutable models that track updates."""

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


class BaseMutableModel(TimestampMixin, BaseModel):
    """Base for models that are updated after insert (id, created_at, updated_at)."""

    __abstract__ = True
