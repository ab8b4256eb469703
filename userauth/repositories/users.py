"""User store - plain CRUD over the users table."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from userauth.core.exceptions import StoreError, UserNotFoundError
from userauth.database.models import User

logger = logging.getLogger(__name__)


class UserRepository:
    """Persists user records created by direct signup.

    Every method runs in its own transaction; SQLAlchemy failures surface as
    StoreError.
    """

    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get_all_users(self) -> list[User]:
        try:
            with self._session_factory() as session:
                return list(session.scalars(select(User).order_by(User.id)))
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to list users: {exc}") from exc

    def insert_user(self, email: str, name: str, password_hash: Optional[str] = None) -> User:
        user = User(email=email, name=name, password_hash=password_hash)
        try:
            with self._session_factory.begin() as session:
                session.add(user)
                session.flush()
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to insert user: {exc}") from exc
        logger.info(f"Inserted user id={user.id}")
        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        try:
            with self._session_factory() as session:
                return session.scalars(select(User).where(User.email == email)).first()
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to get user by email: {exc}") from exc

    def get_user_by_id(self, user_id: int) -> Optional[User]:
        try:
            with self._session_factory() as session:
                return session.get(User, user_id)
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to get user: {exc}") from exc

    def update_user(
        self,
        user_id: int,
        email: Optional[str] = None,
        name: Optional[str] = None,
        password_hash: Optional[str] = None,
    ) -> User:
        """Update the given fields; None leaves a field unchanged.

        Raises:
            UserNotFoundError: If no user has ``user_id``
        """
        try:
            with self._session_factory.begin() as session:
                user = session.get(User, user_id)
                if user is None:
                    raise UserNotFoundError(f"user {user_id} not found")
                if email is not None:
                    user.email = email
                if name is not None:
                    user.name = name
                if password_hash is not None:
                    user.password_hash = password_hash
                session.flush()
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to update user: {exc}") from exc
        return user

    def delete_user(self, user_id: int) -> User:
        """Delete a user and return the removed record.

        Raises:
            UserNotFoundError: If no user has ``user_id``
        """
        try:
            with self._session_factory.begin() as session:
                user = session.get(User, user_id)
                if user is None:
                    raise UserNotFoundError(f"user {user_id} not found")
                session.delete(user)
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to delete user: {exc}") from exc
        logger.info(f"Deleted user id={user_id}")
        return user
