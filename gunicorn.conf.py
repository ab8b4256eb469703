"""Gunicorn configuration file with shared session secret handling.

Secret Loading Priority (on_starting hook, runs once in the master):
1. SESSION_SECRET environment variable
2. /run/secrets/session_secret (Docker secrets) -> read by each worker in load_settings()
3. ENVIRONMENT=development only: a random key generated here, before forking,
   so every worker signs cookies with the same key

Without step 3 each worker would generate its own development key and a
cookie issued by one worker would be rejected by the others.
"""
import base64
import os
import secrets
from pathlib import Path

bind = f"{os.environ.get('HOST', '0.0.0.0')}:{os.environ.get('PORT', '8080')}"
workers = int(os.environ.get("GUNICORN_WORKERS", "2"))
accesslog = "-"
errorlog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()


def on_starting(server):
    """Called in the master before workers are forked."""
    if os.environ.get("SESSION_SECRET"):
        server.log.info("SESSION_SECRET provided via environment")
        return

    secret_file = Path("/run/secrets") / "session_secret"
    if secret_file.is_file():
        server.log.info("SESSION_SECRET will be read from /run/secrets")
        return

    if os.environ.get("ENVIRONMENT", "").lower() != "development":
        # load_settings() in the worker raises and startup aborts
        server.log.error("SESSION_SECRET is required outside ENVIRONMENT=development")
        return

    os.environ["SESSION_SECRET"] = base64.b64encode(secrets.token_bytes(32)).decode("ascii")
    server.log.warning("Generated a development SESSION_SECRET shared by all workers")
