"""Audit log database model (append-only)."""

from typing import Any
from uuid import UUID

from sqlalchemy import JSON, String, Text, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from finauth.infrastructure.persistence.base import BaseModel


class AuditLogModel(BaseModel):
    """Auth audit event. Rows are never updated."""

    __tablename__ = "audit_logs"

    action: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    actor: Mapped[str] = mapped_column(String(64), nullable=False)
    user_id: Mapped[UUID | None] = mapped_column(
        Uuid,
        nullable=True,
        index=True,
        comment="No foreign key: audit rows outlive deleted users",
    )
    ip_address: Mapped[str | None] = mapped_column(String(45), nullable=True)
    user_agent: Mapped[str | None] = mapped_column(Text, nullable=True)
    context: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
    )
