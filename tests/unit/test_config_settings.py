import base64
import os

import pytest

from userauth.config import settings
from userauth.config.settings import DEFAULT_DATABASE_URL, DEFAULT_FRONTEND_URL, load_settings

MANAGED_VARS = (
    "SESSION_SECRET",
    "ENVIRONMENT",
    "PRODUCTION",
    "FRONTEND_URL",
    "DATABASE_URL",
    "OAUTH_HTTP_TIMEOUT",
    "TRACING_ENABLED",
    "SERVICE_NAME",
    "SERVICE_VERSION",
    "PORT",
    "AUTHENTIK_CLIENT_ID",
    "AUTHENTIK_CLIENT_SECRET",
    "AUTHENTIK_REDIRECT_URL",
    "AUTHENTIK_AUTH_URL",
    "AUTHENTIK_TOKEN_URL",
    "AUTHENTIK_USERINFO_URL",
)


@pytest.fixture(autouse=True)
def secrets_dir(monkeypatch, tmp_path):
    """Isolate from the real environment, .env files and /run/secrets."""
    for var in MANAGED_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.setenv("ENV_FILE", str(tmp_path / "missing.env"))

    run_secrets = tmp_path / "run-secrets"
    run_secrets.mkdir()
    real_path = settings.Path

    def fake_path(target):
        if str(target) == "/run/secrets":
            return run_secrets
        return real_path(target)

    monkeypatch.setattr(settings, "Path", fake_path)
    return run_secrets


def test_missing_secret_outside_development_is_fatal():
    with pytest.raises(RuntimeError, match="SESSION_SECRET"):
        load_settings()


def test_missing_secret_in_production_environment_is_fatal(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "production")
    with pytest.raises(RuntimeError, match="SESSION_SECRET"):
        load_settings()


def test_development_generates_random_secret(monkeypatch):
    monkeypatch.setenv("ENVIRONMENT", "development")

    first = load_settings().session_secret
    second = load_settings().session_secret

    assert len(base64.b64decode(first)) == 32
    assert first != second


def test_secret_from_environment(monkeypatch):
    monkeypatch.setenv("SESSION_SECRET", "env-secret")
    assert load_settings().session_secret == "env-secret"


def test_secret_from_run_secrets_wins_over_environment(monkeypatch, secrets_dir):
    (secrets_dir / "session_secret").write_text("file-secret\n")
    monkeypatch.setenv("SESSION_SECRET", "env-secret")
    assert load_settings().session_secret == "file-secret"


def test_defaults(monkeypatch):
    monkeypatch.setenv("SESSION_SECRET", "s")
    cfg = load_settings()

    assert cfg.production is False
    assert cfg.session_cookie_secure is False
    assert cfg.frontend_url == DEFAULT_FRONTEND_URL
    assert cfg.login_success_url == "http://localhost:3000/auth/success"
    assert cfg.database_url == DEFAULT_DATABASE_URL
    assert cfg.port == 8080
    assert cfg.tracing_enabled is True
    assert set(cfg.providers) == {"authentik"}


@pytest.mark.parametrize(
    "raw, expected",
    [("true", True), ("false", False), ("yes", False), ("1", False), ("", False)],
)
def test_production_flag_only_accepts_true_false(monkeypatch, raw, expected):
    monkeypatch.setenv("SESSION_SECRET", "s")
    monkeypatch.setenv("PRODUCTION", raw)
    cfg = load_settings()
    assert cfg.production is expected
    assert cfg.session_cookie_secure is expected


def test_frontend_url_override(monkeypatch):
    monkeypatch.setenv("SESSION_SECRET", "s")
    monkeypatch.setenv("FRONTEND_URL", "https://app.example.com/")
    cfg = load_settings()
    assert cfg.frontend_url == "https://app.example.com/"
    assert cfg.login_success_url == "https://app.example.com/auth/success"


def test_provider_loaded_from_environment(monkeypatch):
    monkeypatch.setenv("SESSION_SECRET", "s")
    monkeypatch.setenv("AUTHENTIK_CLIENT_ID", "cid")
    monkeypatch.setenv("AUTHENTIK_CLIENT_SECRET", "csecret")
    monkeypatch.setenv("AUTHENTIK_REDIRECT_URL", "http://localhost:8080/auth/login/authentik/callback")
    monkeypatch.setenv("AUTHENTIK_AUTH_URL", "https://idp/authorize/")
    monkeypatch.setenv("AUTHENTIK_TOKEN_URL", "https://idp/token/")
    monkeypatch.setenv("AUTHENTIK_USERINFO_URL", "https://idp/userinfo/")

    provider = load_settings().providers["authentik"]

    assert provider.client_id == "cid"
    assert provider.client_secret == "csecret"
    assert provider.redirect_url.endswith("/auth/login/authentik/callback")
    assert provider.auth_url == "https://idp/authorize/"
    assert provider.token_url == "https://idp/token/"
    assert provider.userinfo_url == "https://idp/userinfo/"
    assert provider.scopes == ("openid", "profile", "email")


def test_dotenv_file_does_not_override_environment(monkeypatch, tmp_path):
    env_file = tmp_path / "service.env"
    env_file.write_text("SESSION_SECRET=from-file\nFRONTEND_URL=https://from-file.example.com\n")
    monkeypatch.setenv("ENV_FILE", str(env_file))
    monkeypatch.setenv("SESSION_SECRET", "from-env")
    # Record FRONTEND_URL so the value loaded from the file is removed on teardown
    monkeypatch.setenv("FRONTEND_URL", "placeholder")
    monkeypatch.delenv("FRONTEND_URL")

    cfg = load_settings()

    assert cfg.session_secret == "from-env"
    assert cfg.frontend_url == "https://from-file.example.com"
    assert os.environ["FRONTEND_URL"] == "https://from-file.example.com"
