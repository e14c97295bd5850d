"""
JSON error bodies for every failure path.

Each error response is ``{"error": <message>, "code": "ERR_...", "details"?}``.
Services raise the types in ``tracker.core.exceptions``; werkzeug's own
HTTP errors (404 for unknown routes, 405, 413, 415, 429) and anything
unexpected are rendered the same way.
"""

from __future__ import annotations

import logging

from flask import jsonify, request
from werkzeug.exceptions import HTTPException

from tracker.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    DependencyConflictError,
    NotFoundError,
    TransitionError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class E:
    """``ERR_*`` codes clients can branch on."""

    VALIDATION_INVALID = "ERR_VALIDATION_INVALID"
    UNAUTHORIZED = "ERR_UNAUTHORIZED"
    FORBIDDEN = "ERR_FORBIDDEN"
    NOT_FOUND = "ERR_NOT_FOUND"
    CONFLICT_DUPLICATE = "ERR_CONFLICT_DUPLICATE"
    CONFLICT_STATE = "ERR_CONFLICT_STATE"
    CONFLICT_DEPENDENCY = "ERR_CONFLICT_DEPENDENCY"
    METHOD_NOT_ALLOWED = "ERR_METHOD_NOT_ALLOWED"
    PAYLOAD_TOO_LARGE = "ERR_PAYLOAD_TOO_LARGE"
    UNSUPPORTED_MEDIA = "ERR_UNSUPPORTED_MEDIA"
    RATE_LIMITED = "ERR_RATE_LIMITED"
    INTERNAL = "ERR_INTERNAL"


# werkzeug status -> code; unlisted statuses fall back to INTERNAL
_HTTP_CODES = {
    400: E.VALIDATION_INVALID,
    401: E.UNAUTHORIZED,
    403: E.FORBIDDEN,
    404: E.NOT_FOUND,
    405: E.METHOD_NOT_ALLOWED,
    413: E.PAYLOAD_TOO_LARGE,
    415: E.UNSUPPORTED_MEDIA,
    429: E.RATE_LIMITED,
}


def api_error(code: str, message: str, status: int, details: list | None = None):
    body = {"error": message, "code": code}
    if details:
        body["details"] = details
    return jsonify(body), status


def _conflict_code(error: ConflictError) -> str:
    if isinstance(error, TransitionError):
        return E.CONFLICT_STATE
    if isinstance(error, DependencyConflictError):
        return E.CONFLICT_DEPENDENCY
    return E.CONFLICT_DUPLICATE


def register_error_handlers(app) -> None:

    @app.errorhandler(ValidationError)
    def _validation(error):
        logger.info("Rejected input on %s: %s", request.path, error.message)
        return api_error(E.VALIDATION_INVALID, error.message, 400, error.details)

    @app.errorhandler(AuthenticationError)
    def _unauthenticated(error):
        return api_error(E.UNAUTHORIZED, error.message, 401)

    @app.errorhandler(AuthorizationError)
    def _forbidden(error):
        logger.info("Denied %s %s: %s", request.method, request.path, error.message)
        return api_error(E.FORBIDDEN, error.message, 403)

    @app.errorhandler(NotFoundError)
    def _missing(error):
        logger.debug("%s", error)
        return api_error(E.NOT_FOUND, f"{error.resource} not found", 404)

    @app.errorhandler(ConflictError)
    def _conflict(error):
        logger.info("Conflict on %s: %s", request.path, error.message)
        return api_error(_conflict_code(error), error.message, error.status_code, error.details)

    @app.errorhandler(HTTPException)
    def _http(error):
        code = _HTTP_CODES.get(error.code, E.INTERNAL)
        return api_error(code, error.description or error.name, error.code)

    @app.errorhandler(Exception)
    def _unexpected(error):
        logger.exception("Unhandled error on %s %s", request.method, request.path)
        return api_error(E.INTERNAL, "Internal server error", 500)
