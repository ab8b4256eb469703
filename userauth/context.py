"""Per-application service wiring, built once by create_app()."""
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from opentelemetry.trace import Tracer

from userauth.config.settings import AppConfig
from userauth.core.login_flow import OAuthFlow
from userauth.core.sessions import CookieSessionStore
from userauth.repositories import AuthRepository, UserRepository

EXTENSION_KEY = "userauth"


@dataclass(frozen=True)
class ServiceContext:
    config: AppConfig
    session_store: CookieSessionStore
    users: UserRepository
    auth: AuthRepository
    oauth_flow: OAuthFlow
    tracer: Tracer


def get_context() -> ServiceContext:
    """Return the ServiceContext of the current Flask app."""
    return current_app.extensions[EXTENSION_KEY]
