"""AuthRepository implementations."""

from finauth.infrastructure.persistence.repositories.memory_auth_repository import (
    InMemoryAuthRepository,
)
from finauth.infrastructure.persistence.repositories.sqlalchemy_auth_repository import (
    SqlAlchemyAuthRepository,
)

__all__ = ["InMemoryAuthRepository", "SqlAlchemyAuthRepository"]
