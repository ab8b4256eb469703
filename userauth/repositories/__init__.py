"""Thin record-storage layer over the SQLAlchemy models."""
from .auth import AuthRepository
from .users import UserRepository

__all__ = ["AuthRepository", "UserRepository"]
