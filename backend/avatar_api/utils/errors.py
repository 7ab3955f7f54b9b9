from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError, TimeoutError as PoolTimeoutError
import logging

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Base error rendered as a JSON body with an HTTP status and an error kind."""
    status_code = 500
    kind = "internal"

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self):
        body = {"error": self.message, "kind": self.kind}
        body.update(self.details)
        return body


class ValidationError(ApiError):
    status_code = 400
    kind = "validation"


class AuthError(ApiError):
    status_code = 401
    kind = "unauthorized"


class ForbiddenError(ApiError):
    status_code = 403
    kind = "forbidden"


class NotFoundError(ApiError):
    status_code = 404
    kind = "not_found"


class ConflictError(ApiError):
    status_code = 409
    kind = "conflict"


class ConfigError(ApiError):
    status_code = 500
    kind = "config"


class UpstreamError(ApiError):
    """The remote assistant API rejected or failed a call."""
    status_code = 502
    kind = "upstream"


class StorageError(ApiError):
    """A local copy under UPLOAD_FOLDER could not be written."""
    status_code = 500
    kind = "storage"


class PartialFailureError(ApiError):
    """
    Remote side effects happened but the matching local state could not be
    written (or undone). `details` names the dangling remote resources.
    """
    status_code = 500
    kind = "partial_failure"


def register_error_handlers(app):
    from avatar_api import db

    @app.errorhandler(ApiError)
    def handle_api_error(e):
        if isinstance(e, PartialFailureError):
            logger.error(f"Inconsistent state: {e.message} {e.details}")
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(e):
        db.session.rollback()
        if isinstance(e, PoolTimeoutError):
            # Pool exhausted: fail fast, the caller may retry
            logger.error(f"Database pool exhausted: {e}")
            response = jsonify({
                "error": "Database is busy, please retry",
                "kind": "unavailable",
                "retryable": True
            })
            response.headers["Retry-After"] = "1"
            return response, 503

        # Driver messages stay in the log
        logger.error(f"Database error: {e}")
        return jsonify({"error": "Database operation failed", "kind": "persistence"}), 500

    @app.errorhandler(413)
    def handle_too_large(e):
        return jsonify({"error": "Upload too large", "kind": "validation"}), 413
