"""WSGI entry point (gunicorn userauth.wsgi:app) and development server.

A missing SESSION_SECRET outside development makes load_settings() raise,
which aborts startup here.
"""
from __future__ import annotations

import atexit
import logging
import sys

from userauth.config import load_settings
from userauth.flask_app import create_app

cfg = load_settings()

logging.basicConfig(
    level=getattr(logging, cfg.log_level, logging.INFO),
    format="%(asctime)s  %(levelname)-8s  %(name)s - %(message)s",
    stream=sys.stdout,
)
for _noisy in ("urllib3", "authlib"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)

app = create_app(cfg)

_tracer_provider = app.config.get("TRACER_PROVIDER")
if _tracer_provider is not None:
    atexit.register(_tracer_provider.shutdown)


if __name__ == "__main__":
    app.run(host=cfg.host, port=cfg.port, debug=cfg.environment == "development")
