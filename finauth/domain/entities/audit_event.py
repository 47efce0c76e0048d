"""Audit trail entry."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any
from uuid import UUID

from finauth.domain.enums import AuditAction


@dataclass
class AuditEvent:
    """Immutable record of an auth state transition.

    Attributes:
        action: What happened.
        actor: Who did it (user id, or "system" for anonymous calls).
        user_id: Affected user, when known.
        ip_address: Client address.
        user_agent: Client user agent.
        metadata: Action-specific context (never secrets).
        created_at: When the event was recorded (set by the repository).
        id: Row identifier (set by the repository).
    """

    action: AuditAction
    actor: str
    user_id: UUID | None = None
    ip_address: str | None = None
    user_agent: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    id: UUID | None = None
