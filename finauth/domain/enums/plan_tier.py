"""Subscription plan tiers."""

from enum import Enum


class PlanTier(str, Enum):
    """Subscription plan chosen at signup."""

    FREE = "free"
    PRO = "pro"
    FAMILY = "family"
