"""OAuth2 authorization-code login flow.

Flow:
    GET /auth/login/<provider>           -> begin_login()       -> redirect to IdP
    GET /auth/login/<provider>/callback  -> validate_callback() -> complete_login()
    GET /auth/user                       -> current_session()

This module holds no HTTP or cookie handling; the auth blueprint reads and
writes the session cookies and hands the decoded payloads in.
"""
from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Optional

from userauth.config.settings import ProviderConfig
from userauth.database.models import User
from userauth.repositories import AuthRepository, UserRepository

from .exceptions import (
    AuthenticationError,
    InvalidCallbackError,
    MalformedSessionError,
    SessionExpiredError,
    StoreError,
    UnknownProviderError,
)
from .oauth import IdentityProviderClient, OAuthUserInfo, generate_state
from .sessions import OAuthState, SessionData

logger = logging.getLogger(__name__)

ClientFactory = Callable[[ProviderConfig, float], IdentityProviderClient]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OAuthFlow:
    """Orchestrates login redirect, callback validation, user upsert and session issuance.

    Args:
        providers: Static provider lookup (name -> ProviderConfig)
        users: User store (email lookups for identity linking)
        auth: Auth store (OAuth identity lookups and inserts)
        client_factory: Builds the provider client; replaced in tests
        clock: Returns the current aware datetime; replaced in tests
        http_timeout: Timeout for token and user-info calls
    """

    def __init__(
        self,
        providers: Mapping[str, ProviderConfig],
        users: UserRepository,
        auth: AuthRepository,
        client_factory: ClientFactory = IdentityProviderClient,
        clock: Callable[[], datetime] = utcnow,
        http_timeout: float = 10.0,
    ):
        self._providers = dict(providers)
        self._users = users
        self._auth = auth
        self._client_factory = client_factory
        self._clock = clock
        self._http_timeout = http_timeout

    def provider_client(self, provider: str) -> IdentityProviderClient:
        """Resolve ``provider`` to a client.

        Raises:
            UnknownProviderError: If the provider is not configured
        """
        config = self._providers.get(provider)
        if config is None:
            raise UnknownProviderError(provider)
        return self._client_factory(config, self._http_timeout)

    def begin_login(self, provider: str) -> tuple[str, OAuthState]:
        """Start a login attempt.

        Returns:
            (authorization URL, state to store in the transient session)
        """
        client = self.provider_client(provider)
        oauth_state = OAuthState(state=generate_state(), provider=provider)
        return client.authorization_url(oauth_state.state), oauth_state

    def validate_callback(
        self,
        provider: str,
        stored: Optional[Any],
        state: Optional[str],
        code: Optional[str],
    ) -> str:
        """Check a callback against the stored transient state.

        Returns:
            The authorization code

        Raises:
            InvalidCallbackError: On missing/foreign session, state or code
        """
        try:
            saved = OAuthState.from_dict(stored) if stored is not None else None
        except MalformedSessionError:
            saved = None

        if saved is None or not saved.state:
            raise InvalidCallbackError("invalid session state")
        if saved.provider != provider:
            raise InvalidCallbackError("invalid session provider")
        if state != saved.state:
            raise InvalidCallbackError("invalid state parameter")
        if not code:
            raise InvalidCallbackError("code parameter is required")
        return code

    def complete_login(self, provider: str, code: str) -> SessionData:
        """Exchange the code, resolve the local user and build the session.

        Raises:
            UnknownProviderError: If the provider is not configured
            UpstreamError: If the token exchange or user-info fetch fails
            StoreError: If the user cannot be found or created
        """
        client = self.provider_client(provider)
        access_token = client.exchange_code(code)
        info = client.fetch_user_info(access_token)
        user = self._resolve_user(provider, info)

        logger.info(f"Login completed: provider={provider} user_id={user.id}")
        return SessionData.issue(
            token=access_token,
            user_id=user.id,
            email=user.email,
            name=user.name,
            provider=provider,
            now=self._clock(),
        )

    def _resolve_user(self, provider: str, info: OAuthUserInfo) -> User:
        """Find the user for an OAuth identity, linking or creating as needed.

        An existing signup account with the same email and no OAuth identity
        is linked instead of duplicated.
        """
        user = self._auth.get_user_by_oauth(provider, info.external_id)
        if user is not None:
            return user

        try:
            existing = self._users.get_user_by_email(info.email)
            if existing is not None and existing.oauth_id is None:
                return self._auth.link_oauth_identity(existing.id, provider, info.external_id)
            return self._auth.insert_oauth_user(info.email, info.name, provider, info.external_id)
        except StoreError as exc:
            logger.error(f"Failed to create user for {provider} identity: {exc}")
            raise StoreError(f"failed to create user: {exc.message}") from exc

    def current_session(self, stored: Optional[Any]) -> SessionData:
        """Decode and check the long-lived session.

        Raises:
            AuthenticationError: If there is no well-formed session
            SessionExpiredError: If the session is past its expiry
        """
        if stored is None:
            raise AuthenticationError("not authenticated")
        try:
            data = SessionData.from_dict(stored)
        except MalformedSessionError as exc:
            logger.info(f"Rejecting malformed user session: {exc}")
            raise AuthenticationError("not authenticated") from exc

        if data.is_expired(self._clock()):
            raise SessionExpiredError("session expired")
        return data
