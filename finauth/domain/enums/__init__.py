"""Domain enums.

Available Enums:
    - AuditAction: Auth audit trail action types
    - PlanTier: Subscription plan (free, pro, family)
    - UserStatus: Account lifecycle (active, invited, suspended)
"""

from finauth.domain.enums.audit_action import AuditAction
from finauth.domain.enums.plan_tier import PlanTier
from finauth.domain.enums.user_status import UserStatus

__all__ = [
    "AuditAction",
    "PlanTier",
    "UserStatus",
]
