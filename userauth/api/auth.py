"""Authentication routes: OAuth2 login, callback, logout and session lookup.

Cookies:
- oauth-session: {state, provider} between /login/<provider> and its callback
- user-session: SessionData after a successful callback
"""
from __future__ import annotations

from flask import Blueprint, after_this_request, jsonify, redirect, request

from userauth.context import get_context
from userauth.core.sessions import OAUTH_SESSION, USER_SESSION

bp = Blueprint("auth", __name__, url_prefix="/auth")


@bp.route("/login/<provider>", methods=["GET"])
def login(provider: str):
    """Redirect to the provider's authorization endpoint with a fresh state token."""
    ctx = get_context()
    with ctx.tracer.start_as_current_span("auth.login") as span:
        span.set_attribute("oauth.provider", provider)

        auth_url, oauth_state = ctx.oauth_flow.begin_login(provider)

        response = redirect(auth_url, code=307)
        ctx.session_store.save(response, OAUTH_SESSION, oauth_state.to_dict())
        return response


@bp.route("/login/<provider>/callback", methods=["GET"])
def callback(provider: str):
    """Validate the callback, log the user in and redirect to the frontend."""
    ctx = get_context()
    with ctx.tracer.start_as_current_span("auth.callback") as span:
        span.set_attribute("oauth.provider", provider)

        stored = ctx.session_store.load(request, OAUTH_SESSION)
        code = ctx.oauth_flow.validate_callback(
            provider,
            stored,
            request.args.get("state"),
            request.args.get("code"),
        )

        # The state is single-use: drop it whatever the outcome of the exchange
        @after_this_request
        def _consume_state(response):
            ctx.session_store.expire(response, OAUTH_SESSION)
            return response

        session_data = ctx.oauth_flow.complete_login(provider, code)
        span.set_attribute("user.id", session_data.user_id)

        response = redirect(ctx.config.login_success_url, code=307)
        ctx.session_store.save(response, USER_SESSION, session_data.to_dict())
        return response


@bp.route("/logout", methods=["POST"])
def logout():
    """Expire the user session (idempotent)."""
    ctx = get_context()
    with ctx.tracer.start_as_current_span("auth.logout"):
        response = jsonify({"message": "logout successful"})
        ctx.session_store.expire(response, USER_SESSION)
        return response


@bp.route("/user", methods=["GET"])
def current_user():
    """Return the current session data, or 401."""
    ctx = get_context()
    with ctx.tracer.start_as_current_span("auth.current_user"):
        stored = ctx.session_store.load(request, USER_SESSION)
        session_data = ctx.oauth_flow.current_session(stored)
        return jsonify(session_data.to_json())
