"""User CRUD endpoints."""
from __future__ import annotations

from flask import Blueprint, jsonify, request
from werkzeug.security import generate_password_hash

from userauth.context import get_context
from userauth.core.exceptions import BadRequestError
from userauth.core.validators import validate_user_payload

bp = Blueprint("users", __name__)


@bp.route("/users", methods=["GET"])
def list_users():
    """Return every stored user."""
    ctx = get_context()
    with ctx.tracer.start_as_current_span("users.list"):
        users = ctx.users.get_all_users()
        return jsonify([user.to_dict() for user in users]), 200


@bp.route("/users", methods=["POST"])
def create_user():
    """Create a user from a JSON body {email, name, password?}."""
    ctx = get_context()
    with ctx.tracer.start_as_current_span("users.create"):
        # Decode regardless of Content-Type; None means the body is not JSON
        payload = request.get_json(force=True, silent=True)
        if payload is None:
            raise BadRequestError("malformed JSON body")

        try:
            fields = validate_user_payload(payload)
        except ValueError as exc:
            raise BadRequestError(str(exc)) from exc

        password_hash = generate_password_hash(fields["password"]) if fields["password"] else None
        user = ctx.users.insert_user(fields["email"], fields["name"], password_hash)
        return jsonify(user.to_dict()), 201
