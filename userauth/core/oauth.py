"""OAuth2 authorization-code client for a single identity provider.

Authorization URLs and the code-for-token exchange go through authlib's
requests integration; the user-info call is a plain bearer-authenticated GET.
"""
from __future__ import annotations

import base64
import logging
import secrets
from dataclasses import dataclass

import requests
from authlib.common.errors import AuthlibBaseError
from authlib.integrations.requests_client import OAuth2Session

from userauth.config.settings import ProviderConfig

from .exceptions import UpstreamError

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 10
STATE_BYTES = 32


def generate_state() -> str:
    """Generate the anti-forgery state token (32 random bytes, base64url)."""
    return base64.urlsafe_b64encode(secrets.token_bytes(STATE_BYTES)).decode("ascii")


@dataclass(frozen=True)
class OAuthUserInfo:
    """Subset of the provider's user-info response used to find or create a user."""
    external_id: str
    email: str
    name: str

    @classmethod
    def from_claims(cls, claims) -> "OAuthUserInfo":
        """Build from the user-info JSON (``sub``, ``email``, ``name``).

        Raises:
            UpstreamError: If the response is not an object or has no ``sub``
                or ``email``
        """
        if not isinstance(claims, dict):
            raise UpstreamError("failed to fetch user info: response is not a JSON object")
        subject = claims.get("sub")
        if not subject:
            raise UpstreamError("failed to fetch user info: response has no 'sub' claim")
        # Same normalization as signup emails, so both paths match on lookup
        email = str(claims.get("email") or "").strip().lower()
        if not email:
            raise UpstreamError("failed to fetch user info: response has no 'email' claim")
        return cls(
            external_id=str(subject),
            email=email,
            name=str(claims.get("name") or ""),
        )


class IdentityProviderClient:
    """Talks to one provider's authorization, token and user-info endpoints.

    Usage:
        client = IdentityProviderClient(provider_config)
        url = client.authorization_url(state)
        access_token = client.exchange_code(code)
        info = client.fetch_user_info(access_token)
    """

    def __init__(self, config: ProviderConfig, timeout: float = REQUEST_TIMEOUT):
        self.config = config
        self.timeout = timeout

    def _session(self) -> OAuth2Session:
        return OAuth2Session(
            client_id=self.config.client_id,
            client_secret=self.config.client_secret,
            scope=" ".join(self.config.scopes),
            redirect_uri=self.config.redirect_url,
        )

    def authorization_url(self, state: str) -> str:
        """Build the provider's authorization URL with ``state`` attached."""
        with self._session() as session:
            url, _ = session.create_authorization_url(self.config.auth_url, state=state)
        return url

    def exchange_code(self, code: str) -> str:
        """Exchange an authorization code for an access token.

        Raises:
            UpstreamError: On transport failure, an error response, or a
                token response without ``access_token``
        """
        try:
            with self._session() as session:
                token = session.fetch_token(self.config.token_url, code=code, timeout=self.timeout)
        except (AuthlibBaseError, requests.RequestException, ValueError) as exc:
            logger.warning(f"Token exchange with {self.config.name} failed: {exc}")
            raise UpstreamError(f"failed to exchange token: {exc}") from exc

        access_token = token.get("access_token") if token else None
        if not access_token:
            raise UpstreamError("failed to exchange token: no access_token in response")
        return access_token

    def fetch_user_info(self, access_token: str) -> OAuthUserInfo:
        """Fetch the user's profile with the access token as bearer credential.

        Raises:
            UpstreamError: On transport failure, non-200 status or bad JSON
        """
        try:
            response = requests.get(
                self.config.userinfo_url,
                headers={"Authorization": f"Bearer {access_token}"},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise UpstreamError(f"failed to fetch user info: {exc}") from exc

        if response.status_code != 200:
            raise UpstreamError(f"failed to fetch user info: status {response.status_code}")

        try:
            claims = response.json()
        except ValueError as exc:
            raise UpstreamError(f"failed to fetch user info: invalid JSON ({exc})") from exc

        return OAuthUserInfo.from_claims(claims)
