"""Pytest shared fixtures."""
import os
import pathlib
import sys
from datetime import datetime, timedelta, timezone

# Add project root to Python path
ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Configure test environment BEFORE any app imports
os.environ.setdefault("ENVIRONMENT", "development")
os.environ.setdefault("TRACING_ENABLED", "false")
os.environ.setdefault("ENV_FILE", str(ROOT / "tests" / "nonexistent.env"))

import pytest
import requests
from opentelemetry.trace import NoOpTracer

from userauth.config.settings import AppConfig, ProviderConfig
from userauth.core.exceptions import UpstreamError
from userauth.core.oauth import IdentityProviderClient, OAuthUserInfo
from userauth.core.sessions import CookieSessionStore
from userauth.database import create_db_engine, init_schema, make_session_factory
from userauth.flask_app import create_app
from userauth.repositories import AuthRepository, UserRepository

TEST_SECRET = "test-session-secret"
FRONTEND_URL = "http://localhost:3000"

AUTHENTIK = ProviderConfig(
    name="authentik",
    client_id="userauth-client",
    client_secret="userauth-secret",
    redirect_url="http://localhost:8080/auth/login/authentik/callback",
    auth_url="https://idp.example.com/application/o/authorize/",
    token_url="https://idp.example.com/application/o/token/",
    userinfo_url="https://idp.example.com/application/o/userinfo/",
)


def make_config(**overrides) -> AppConfig:
    base = dict(
        session_secret=TEST_SECRET,
        environment="test",
        production=False,
        frontend_url=FRONTEND_URL,
        database_url="sqlite:///:memory:",
        providers={"authentik": AUTHENTIK},
        oauth_http_timeout=5.0,
        tracing_enabled=False,
    )
    base.update(overrides)
    return AppConfig(**base)


# ─────────────────────────────────────────────────────────────────────────────
# Test Doubles
# ─────────────────────────────────────────────────────────────────────────────
class FrozenClock:
    """Controllable clock for session expiry tests."""

    def __init__(self, now: datetime | None = None):
        self.now = now or datetime(2026, 1, 5, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)


class FakeIdentityProvider(IdentityProviderClient):
    """Identity provider stub: real authorization URLs, canned token and user info."""

    def __init__(self):
        super().__init__(AUTHENTIK)
        self.access_token = "idp-access-token"
        self.user_info = {"sub": "ext-123", "email": "alice@example.com", "name": "Alice"}
        self.exchange_error = None
        self.userinfo_error = None
        self.exchanged_codes = []

    def factory(self, config, timeout):
        self.config = config
        self.timeout = timeout
        return self

    def exchange_code(self, code):
        self.exchanged_codes.append(code)
        if self.exchange_error:
            raise UpstreamError(f"failed to exchange token: {self.exchange_error}")
        return self.access_token

    def fetch_user_info(self, access_token):
        assert access_token == self.access_token
        if self.userinfo_error:
            raise UpstreamError(f"failed to fetch user info: {self.userinfo_error}")
        return OAuthUserInfo.from_claims(self.user_info)


# ─────────────────────────────────────────────────────────────────────────────
# Network Guard Rails
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture(autouse=True)
def _block_network(monkeypatch):
    """Prevent unit tests from reaching a live identity provider.

    Tests that exercise the real provider client install their own stubs on top.
    """
    def _unexpected(url, *args, **kwargs):
        raise RuntimeError(f"Unexpected network access in tests: {url}")

    monkeypatch.setattr(requests, "get", _unexpected)
    monkeypatch.setattr(requests, "post", _unexpected)


# ─────────────────────────────────────────────────────────────────────────────
# Storage
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def engine():
    engine = create_db_engine("sqlite:///:memory:")
    init_schema(engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def user_repo(engine):
    return UserRepository(make_session_factory(engine))


@pytest.fixture()
def auth_repo(engine):
    return AuthRepository(make_session_factory(engine))


# ─────────────────────────────────────────────────────────────────────────────
# Flask Test Client
# ─────────────────────────────────────────────────────────────────────────────
@pytest.fixture()
def clock():
    return FrozenClock()


@pytest.fixture()
def idp():
    return FakeIdentityProvider()


@pytest.fixture()
def app_config():
    return make_config()


@pytest.fixture()
def flask_app(app_config, engine, idp, clock):
    app = create_app(
        app_config,
        engine=engine,
        tracer=NoOpTracer(),
        client_factory=idp.factory,
        clock=clock,
    )
    app.config.update(TESTING=True)
    return app


@pytest.fixture()
def client(flask_app):
    with flask_app.test_client() as client:
        yield client


@pytest.fixture()
def session_store():
    """Store with the test secret, for decoding cookies issued by the app."""
    return CookieSessionStore(TEST_SECRET)


# ─────────────────────────────────────────────────────────────────────────────
# Pytest Configuration
# ─────────────────────────────────────────────────────────────────────────────
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line(
        "markers", "integration: end-to-end flows through the full application"
    )
