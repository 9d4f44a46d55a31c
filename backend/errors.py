# errors.py
from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

from flask import jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

log = logging.getLogger(__name__)


class ServiceError(Exception):
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        self.message = message or self.message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class ValidationFailed(ServiceError):
    status_code = 400
    message = "Invalid request"

    def __init__(self, message: Optional[str] = None, fields: Optional[List[Dict[str, str]]] = None):
        super().__init__(message)
        self.fields = fields or []

    @classmethod
    def from_pydantic(cls, exc: ValidationError) -> "ValidationFailed":
        fields = []
        for err in exc.errors():
            loc = ".".join(str(p) for p in err.get("loc", ()))
            fields.append({"field": loc or "body", "message": err.get("msg", "invalid value")})
        return cls("Invalid request", fields)

    def to_dict(self) -> Dict[str, Any]:
        out = super().to_dict()
        if self.fields:
            out["fields"] = self.fields
        return out


class AccessDenied(ServiceError):
    status_code = 403
    message = "Access denied"


class NotFound(ServiceError):
    status_code = 404
    message = "Not found"


class InvalidTransition(ServiceError):
    status_code = 409
    message = "Invalid status transition"


class AIServiceError(ServiceError):
    """Any failure talking to the LLM. The upstream detail is logged, never returned."""
    status_code = 500
    message = "AI operation failed. Please try again."


class DuplicateRecordError(Exception):
    """A storage-level uniqueness constraint was violated."""


def register_error_handlers(app):
    @app.errorhandler(ServiceError)
    def _service_error(e: ServiceError):
        if e.status_code >= 500:
            log.error("%s: %s", type(e).__name__, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(ValidationError)
    def _pydantic_error(e: ValidationError):
        err = ValidationFailed.from_pydantic(e)
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(HTTPException)
    def _http_error(e: HTTPException):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def _unhandled(e: Exception):
        log.exception("Unhandled error: %s", e)
        return jsonify({"error": "Internal server error"}), 500
