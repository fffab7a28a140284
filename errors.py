"""
Error types for the quiz service and their JSON rendering.
"""

from flask import jsonify, current_app
from typing import Optional, Dict, Any


class QuizError(Exception):
    """Base exception carrying an HTTP status and a machine-readable code."""

    def __init__(
        self,
        message: str,
        code: str = "UNKNOWN_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict:
        return {
            "error": self.message,
            "code": self.code,
            "details": self.details
        }


class ValidationError(QuizError):
    """Malformed input, rejected before the core runs."""

    def __init__(self, message: str = "Invalid request", errors=None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            details={"errors": errors} if errors else None
        )


class NotFound(QuizError):
    """Unknown user or question."""

    def __init__(self, message: str = "Resource not found", resource: str = None):
        super().__init__(
            message=message,
            code="NOT_FOUND",
            status_code=404,
            details={"resource": resource} if resource else None
        )


class VersionConflict(QuizError):
    """The caller's state version is stale; re-fetch and retry."""

    def __init__(self, expected_version: int, current_version: Optional[int] = None):
        self.expected_version = expected_version
        self.current_version = current_version
        super().__init__(
            message="State version conflict. Please refresh and try again.",
            code="VERSION_CONFLICT",
            status_code=409,
            details={
                "expectedVersion": expected_version,
                "currentVersion": current_version,
            }
        )


class PersistenceFailure(QuizError):
    """Storage unavailable. Safe for the caller to retry."""

    def __init__(self, message: str = "Storage temporarily unavailable"):
        super().__init__(
            message=message,
            code="PERSISTENCE_FAILURE",
            status_code=503,
            details={"retryable": True}
        )


def register_error_handlers(app):
    """Register JSON error handlers with the Flask app."""

    @app.errorhandler(QuizError)
    def handle_quiz_error(error):
        if error.status_code >= 500:
            current_app.logger.error("%s: %s", error.code, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({"error": "Not found", "code": "NOT_FOUND"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({"error": "Method not allowed", "code": "METHOD_NOT_ALLOWED"}), 405

    @app.errorhandler(500)
    def handle_internal_error(error):
        current_app.logger.exception("Internal server error")
        return jsonify({"error": "Internal server error", "code": "SERVER_ERROR"}), 500
