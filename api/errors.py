from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
import logging

from services.errors import AuthError

logger = logging.getLogger(__name__)


def error_response(error: str, message: str, status: int, details: dict | None = None):
    payload = {"success": False, "error": error, "message": message, "status": status}
    if details:
        payload["details"] = details
    return jsonify(payload), status


def _http_error_code(err: HTTPException) -> str:
    # "Unauthorized" -> "UNAUTHORIZED", "Not Found" -> "NOT_FOUND"
    return (err.name or "Bad Request").upper().replace(" ", "_")


def register_error_handlers(app):
    # Domain errors carry their own code and status
    @app.errorhandler(AuthError)
    def handle_auth_error(err: AuthError):
        if current_app and current_app.debug:
            logger.debug("Auth error %s: %s", err.code, err.message)
        return error_response(err.code, err.message, err.status)

    # 404 Not Found
    @app.errorhandler(404)
    def not_found(e):
        return error_response("NOT_FOUND", "Resource not found", 404)

    # Marshmallow validation errors map to 422
    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        # err.messages contains field-level details
        return error_response("VALIDATION_ERROR", "Invalid input", 422, details=err.messages)

    # Werkzeug HTTPExceptions map to their status codes
    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        return error_response(_http_error_code(err), err.description, err.code or 400)

    # 500 Internal Error (catch-all): never leak details outside debug
    @app.errorhandler(Exception)
    def internal_error(err: Exception):
        logger.exception("Unhandled exception", exc_info=err)
        details = None
        if current_app and current_app.debug:
            details = {"type": err.__class__.__name__, "message": str(err)}
        return error_response("INTERNAL_ERROR", "An unexpected error occurred", 500, details=details)
