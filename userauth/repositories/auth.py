"""Auth store - users keyed by their OAuth (provider, external id) identity."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from userauth.core.exceptions import StoreError, UserNotFoundError
from userauth.database.models import User

logger = logging.getLogger(__name__)


class AuthRepository:
    def __init__(self, session_factory: sessionmaker[Session]):
        self._session_factory = session_factory

    def get_user_by_oauth(self, provider: str, oauth_id: str) -> Optional[User]:
        try:
            with self._session_factory() as session:
                stmt = select(User).where(User.oauth_provider == provider, User.oauth_id == oauth_id)
                return session.scalars(stmt).first()
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to get user by oauth identity: {exc}") from exc

    def insert_oauth_user(self, email: str, name: str, provider: str, oauth_id: str) -> User:
        user = User(email=email, name=name, oauth_provider=provider, oauth_id=oauth_id)
        try:
            with self._session_factory.begin() as session:
                session.add(user)
                session.flush()
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to insert oauth user: {exc}") from exc
        logger.info(f"Inserted oauth user id={user.id} provider={provider}")
        return user

    def link_oauth_identity(self, user_id: int, provider: str, oauth_id: str) -> User:
        """Attach an OAuth identity to an existing (signup-created) account.

        Raises:
            UserNotFoundError: If no user has ``user_id``
        """
        try:
            with self._session_factory.begin() as session:
                user = session.get(User, user_id)
                if user is None:
                    raise UserNotFoundError(f"user {user_id} not found")
                user.oauth_provider = provider
                user.oauth_id = oauth_id
                session.flush()
        except SQLAlchemyError as exc:
            raise StoreError(f"failed to link oauth identity: {exc}") from exc
        logger.info(f"Linked {provider} identity to user id={user_id}")
        return user
