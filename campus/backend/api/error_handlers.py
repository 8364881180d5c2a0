"""
App-wide error responses. Backend error details are logged, never returned.
"""
from flask import jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from shared.modules.errors.exceptions import CampusError, InvalidIdentifier
from shared.modules.log.logger import get_logger

logger = get_logger(__name__)


def validation_error_response(message, error: ValidationError):
    """400 response listing which fields failed and why."""
    details = [
        {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
        for err in error.errors(include_url=False)
    ]
    return jsonify({"error": message, "details": details}), 400


def register_error_handlers(app):
    @app.errorhandler(InvalidIdentifier)
    def handle_invalid_identifier(e):
        return jsonify({"error": f"Invalid id: {e.record_id}"}), 400

    @app.errorhandler(CampusError)
    def handle_campus_error(e):
        logger.error(f"Request failed: {e}", exc_info=e)
        return jsonify({"error": "Internal server error"}), 500

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        # Let Flask render its own 404/405/...
        if isinstance(e, HTTPException):
            return e
        logger.error(f"Unhandled error: {e}", exc_info=e)
        return jsonify({"error": "Internal server error"}), 500
