"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, middleware, and configuration.
Every collaborator (config, engine, tracer, identity provider client factory,
clock) can be injected; anything not passed in is built from the settings.
"""
from __future__ import annotations
from typing import Callable, Optional

from flask import Flask, request
from sqlalchemy.engine import Engine

from userauth.config import AppConfig, load_settings
from userauth.context import EXTENSION_KEY, ServiceContext
from userauth.core.login_flow import ClientFactory, OAuthFlow, utcnow
from userauth.core.oauth import IdentityProviderClient
from userauth.core.sessions import CookieSessionStore
from userauth.core.telemetry import build_tracer
from userauth.database import create_db_engine, init_schema, make_session_factory
from userauth.repositories import AuthRepository, UserRepository

CORS_ALLOWED_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
CORS_ALLOWED_HEADERS = "Content-Type, Authorization"


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(
    cfg: Optional[AppConfig] = None,
    *,
    engine: Optional[Engine] = None,
    tracer=None,
    client_factory: Optional[ClientFactory] = None,
    clock: Optional[Callable] = None,
) -> Flask:
    """Create and configure Flask application."""
    # Load configuration
    cfg = cfg or load_settings()

    app = Flask(__name__)
    app.config["APP_CONFIG"] = cfg

    # Storage
    if engine is None:
        engine = create_db_engine(cfg.database_url)
    init_schema(engine)
    session_factory = make_session_factory(engine)
    users = UserRepository(session_factory)
    auth_repo = AuthRepository(session_factory)

    # Telemetry
    tracer_provider = None
    if tracer is None:
        tracer, tracer_provider = build_tracer(cfg)
    app.config["TRACER_PROVIDER"] = tracer_provider

    oauth_flow = OAuthFlow(
        providers=cfg.providers,
        users=users,
        auth=auth_repo,
        client_factory=client_factory or IdentityProviderClient,
        clock=clock or utcnow,
        http_timeout=cfg.oauth_http_timeout,
    )

    app.extensions[EXTENSION_KEY] = ServiceContext(
        config=cfg,
        session_store=CookieSessionStore(cfg.session_secret, secure=cfg.session_cookie_secure),
        users=users,
        auth=auth_repo,
        oauth_flow=oauth_flow,
        tracer=tracer,
    )

    # Register blueprints
    from userauth.api import auth, errors, users as users_routes

    app.register_blueprint(auth.bp)
    app.register_blueprint(users_routes.bp)

    # Register error handlers
    errors.register_error_handlers(app)

    # Register middleware
    _register_middleware(app, cfg)

    print(f"[flask_app] Providers={','.join(sorted(cfg.providers)) or 'none'}")
    print(f"[flask_app] CORS origin={cfg.frontend_url}")
    if not cfg.production:
        print("[flask_app] WARNING: PRODUCTION=false - session cookies are sent without Secure")

    return app


def _register_middleware(app: Flask, cfg: AppConfig):
    """Register CORS handling for every request."""

    @app.before_request
    def short_circuit_preflight():
        """Answer every OPTIONS request with a bare 200 before routing."""
        if request.method == "OPTIONS":
            return app.response_class(status=200)
        return None

    @app.after_request
    def apply_cors_headers(response):
        """Set CORS headers on every response, error responses included."""
        response.headers["Access-Control-Allow-Origin"] = cfg.frontend_url
        response.headers["Access-Control-Allow-Methods"] = CORS_ALLOWED_METHODS
        response.headers["Access-Control-Allow-Headers"] = CORS_ALLOWED_HEADERS
        response.headers["Access-Control-Allow-Credentials"] = "true"
        return response
