"""Persistence: SQLAlchemy models, database management and repositories."""

from finauth.infrastructure.persistence.database import Database

__all__ = ["Database"]
