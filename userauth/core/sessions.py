"""Signed cookie sessions with typed, versioned payloads.

Two cookie-scoped bags are used:

- ``oauth-session``: transient ``OAuthState`` between the login redirect and
  the callback (single-use).
- ``user-session``: long-lived ``SessionData`` identifying the logged-in user.

Values are signed and timestamped with itsdangerous (the same serializer
Flask uses for its own session cookie), with one salt per cookie name so a
value can never be replayed into the other cookie.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Mapping, Optional

from itsdangerous import BadSignature, URLSafeTimedSerializer

from .exceptions import MalformedSessionError, SessionStoreError

logger = logging.getLogger(__name__)

OAUTH_SESSION = "oauth-session"
USER_SESSION = "user-session"

SESSION_LIFETIME = timedelta(days=7)
SESSION_MAX_AGE = int(SESSION_LIFETIME.total_seconds())

SESSION_PAYLOAD_VERSION = 1


def _require_str(payload: Mapping[str, Any], key: str) -> str:
    value = payload.get(key)
    if not isinstance(value, str):
        raise MalformedSessionError(f"session field '{key}' missing or not a string")
    return value


def _require_datetime(payload: Mapping[str, Any], key: str) -> datetime:
    raw = _require_str(payload, key)
    try:
        value = datetime.fromisoformat(raw)
    except ValueError as exc:
        raise MalformedSessionError(f"session field '{key}' is not a timestamp") from exc
    if value.tzinfo is None:
        raise MalformedSessionError(f"session field '{key}' has no timezone")
    return value


def _check_version(payload: Any) -> Mapping[str, Any]:
    if not isinstance(payload, Mapping):
        raise MalformedSessionError("session payload is not an object")
    if payload.get("v") != SESSION_PAYLOAD_VERSION:
        raise MalformedSessionError(f"unsupported session payload version: {payload.get('v')!r}")
    return payload


@dataclass(frozen=True)
class OAuthState:
    """Anti-forgery state bound to one login attempt."""
    state: str
    provider: str

    def to_dict(self) -> dict:
        return {"v": SESSION_PAYLOAD_VERSION, "state": self.state, "provider": self.provider}

    @classmethod
    def from_dict(cls, payload: Any) -> "OAuthState":
        """Decode a stored payload.

        Raises:
            MalformedSessionError: On a legacy or corrupt payload
        """
        payload = _check_version(payload)
        return cls(state=_require_str(payload, "state"), provider=_require_str(payload, "provider"))


@dataclass(frozen=True)
class SessionData:
    """Identity carried by the user-session cookie."""
    token: str
    user_id: int
    email: str
    name: str
    provider: str
    issued_at: datetime
    expires_at: datetime

    @classmethod
    def issue(cls, token: str, user_id: int, email: str, name: str, provider: str, now: datetime) -> "SessionData":
        return cls(
            token=token,
            user_id=user_id,
            email=email,
            name=name,
            provider=provider,
            issued_at=now,
            expires_at=now + SESSION_LIFETIME,
        )

    def is_expired(self, now: datetime) -> bool:
        return now > self.expires_at

    def to_json(self) -> dict:
        """Response body form (GET /auth/user)."""
        return {
            "token": self.token,
            "user_id": self.user_id,
            "email": self.email,
            "name": self.name,
            "provider": self.provider,
            "issued_at": self.issued_at.isoformat(),
            "expires_at": self.expires_at.isoformat(),
        }

    def to_dict(self) -> dict:
        """Cookie payload form."""
        return {"v": SESSION_PAYLOAD_VERSION, **self.to_json()}

    @classmethod
    def from_dict(cls, payload: Any) -> "SessionData":
        """Decode a stored payload.

        Raises:
            MalformedSessionError: On a legacy or corrupt payload
        """
        payload = _check_version(payload)
        user_id = payload.get("user_id")
        # bool is an int subclass; reject it explicitly
        if not isinstance(user_id, int) or isinstance(user_id, bool):
            raise MalformedSessionError("session field 'user_id' missing or not an integer")
        return cls(
            token=_require_str(payload, "token"),
            user_id=user_id,
            email=_require_str(payload, "email"),
            name=_require_str(payload, "name"),
            provider=_require_str(payload, "provider"),
            issued_at=_require_datetime(payload, "issued_at"),
            expires_at=_require_datetime(payload, "expires_at"),
        )


class CookieSessionStore:
    """Reads and writes signed session bags on request/response cookies.

    The signing key is fixed at construction and never changes afterwards.
    """

    def __init__(self, secret_key: str, secure: bool = False, max_age: int = SESSION_MAX_AGE, path: str = "/"):
        if not secret_key:
            raise ValueError("secret_key is required")
        self._secret_key = secret_key
        self.secure = secure
        self.max_age = max_age
        self.path = path

    def _serializer(self, name: str) -> URLSafeTimedSerializer:
        return URLSafeTimedSerializer(self._secret_key, salt=f"userauth.{name}")

    def load(self, request, name: str) -> Optional[Any]:
        """Return the decoded bag for cookie ``name``, or None.

        A missing cookie, a bad signature and a signature older than
        ``max_age`` all read as "no session".
        """
        return self.loads(name, request.cookies.get(name))

    def loads(self, name: str, raw: Optional[str]) -> Optional[Any]:
        """Decode a raw cookie value for cookie ``name`` (see load())."""
        if not raw:
            return None
        try:
            return self._serializer(name).loads(raw, max_age=self.max_age)
        except BadSignature:
            logger.info(f"Ignoring {name} cookie with invalid or expired signature")
            return None

    def save(self, response, name: str, values: Mapping[str, Any]) -> None:
        """Sign ``values`` into cookie ``name``, replacing any prior value.

        Raises:
            SessionStoreError: If the values cannot be serialized
        """
        try:
            value = self._serializer(name).dumps(dict(values))
        except (TypeError, ValueError) as exc:
            raise SessionStoreError(f"failed to save session {name}: {exc}") from exc
        response.set_cookie(
            name,
            value,
            max_age=self.max_age,
            path=self.path,
            secure=self.secure,
            httponly=True,
            samesite="Lax",
        )

    def expire(self, response, name: str) -> None:
        """Expire cookie ``name`` immediately (Max-Age=0)."""
        response.delete_cookie(
            name,
            path=self.path,
            secure=self.secure,
            httponly=True,
            samesite="Lax",
        )
