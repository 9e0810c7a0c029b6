# Overview: Maps service-layer errors to JSON responses for every blueprint.

from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException

from ..validation import POSError


def error_response(exc: POSError):
    return jsonify({"error": str(exc), "details": exc.details}), exc.status_code


def register_error_handlers(app) -> None:
    """
    Services raise; this is the one place that turns errors into HTTP.

    - POSError subclasses -> their status_code with {"error", "details"}
    - werkzeug HTTP errors (404 route, 405, bad JSON) -> their code
    - anything else -> logged with traceback, generic 500
    """
    @app.errorhandler(POSError)
    def handle_pos_error(exc: POSError):
        return error_response(exc)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"error": exc.description or exc.name, "details": {}}), exc.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(exc: Exception):
        current_app.logger.exception("Unhandled error")
        return jsonify({"error": "Internal server error", "details": {}}), 500
