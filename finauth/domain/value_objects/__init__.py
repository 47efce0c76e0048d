"""Domain value objects."""

from finauth.domain.value_objects.composite_token import CompositeToken

__all__ = ["CompositeToken"]
