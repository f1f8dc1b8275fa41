from __future__ import annotations

import logging
from typing import Any, Optional

from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from .extensions import db

logger = logging.getLogger(__name__)


class ApiError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(
        self,
        message: Optional[str] = None,
        errors: Optional[dict[str, Any]] = None,
        status_code: Optional[int] = None,
    ) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message
        if status_code is not None:
            self.status_code = status_code
        self.errors = errors

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"message": self.message}
        if self.errors:
            body["errors"] = self.errors
        return body


class Unauthenticated(ApiError):
    status_code = 401
    message = "Unauthorized"


class Forbidden(ApiError):
    status_code = 403
    message = "Not allowed"


class NotFound(ApiError):
    status_code = 404
    message = "Not found"


class ValidationFailed(ApiError):
    status_code = 400
    message = "Invalid request"


class Conflict(ApiError):
    status_code = 409
    message = "Already exists"


class AdminLeaveBlocked(ApiError):
    status_code = 400
    message = "An admin cannot leave the family while other members remain"


def register_error_handlers(app: Flask) -> None:
    @app.errorhandler(ApiError)
    def _api_error(exc: ApiError):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(HTTPException)
    def _http_error(exc: HTTPException):
        return jsonify({"message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def _unexpected(exc: Exception):
        db.session.rollback()
        logger.exception("Unhandled error: %s", exc)
        return jsonify({"message": "Internal server error"}), 500
