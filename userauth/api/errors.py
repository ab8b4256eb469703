"""Error handlers for the application."""
from flask import jsonify, request
from werkzeug.http import HTTP_STATUS_CODES
from werkzeug.exceptions import HTTPException

from userauth.core.exceptions import ServiceError


def register_error_handlers(app):
    """Register error handlers with the Flask app."""

    @app.errorhandler(ServiceError)
    def service_error(error: ServiceError):
        """Render service errors with their own status and message."""
        if error.status >= 500:
            app.logger.error(f"{type(error).__name__}: {error.message}")
        return _error_response(error.status, error.message)

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        """Handle routing and werkzeug errors (404, 405, ...)."""
        return _error_response(error.code or 500, error.description or error.name)

    @app.errorhandler(Exception)
    def handle_exception(error):
        """Handle uncaught exceptions."""
        if isinstance(error, HTTPException):
            return http_error(error)

        app.logger.error(f"Unhandled exception: {error}", exc_info=True)
        return _error_response(500, str(error) or "internal server error")


def _error_response(status: int, message: str):
    """Plain-text error body, or JSON for clients that ask for it."""
    if _wants_json():
        return jsonify({"error": _reason(status), "message": message}), status
    return (f"{message}\n", status, {"Content-Type": "text/plain; charset=utf-8"})


def _reason(status: int) -> str:
    return HTTP_STATUS_CODES.get(status, "Error")


def _wants_json():
    """Check if the client wants a JSON response."""
    return request.accept_mimetypes.accept_json and \
           not request.accept_mimetypes.accept_html
