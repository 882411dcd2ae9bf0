"""
Project: Restaurant Back-Office (RBO)

Description:
Domain errors raised by the catalog and order services, and the Flask
handlers that turn them into JSON responses.
"""

from flask import jsonify
from loguru import logger
from werkzeug.exceptions import HTTPException


class AppError(Exception):
    status_code = 500
    kind = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self):
        return {"error": self.kind, "message": self.message}


class NotFound(AppError):
    status_code = 404
    kind = "not_found"

    def __init__(self, entity: str, entity_id=None):
        message = f"{entity} not found" if entity_id is None else f"{entity} {entity_id} not found"
        super().__init__(message)
        self.entity = entity
        self.entity_id = entity_id


class ValidationFailure(AppError):
    status_code = 400
    kind = "validation_failed"


class InvalidStatusTransition(AppError):
    status_code = 409
    kind = "invalid_status_transition"

    def __init__(self, current: str, target: str, allowed):
        allowed_text = ", ".join(allowed) if allowed else "none"
        super().__init__(f"Cannot move order from {current} to {target} (allowed: {allowed_text})")
        self.current = current
        self.target = target
        self.allowed = list(allowed)

    def to_dict(self):
        data = super().to_dict()
        data["allowed"] = self.allowed
        return data


class ConcurrencyConflict(AppError):
    status_code = 409
    kind = "conflict"


class TransactionFailure(AppError):
    status_code = 500
    kind = "transaction_failed"


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(exc: AppError):
        if exc.status_code >= 500:
            logger.error(f"{exc.kind}: {exc.message}")
        else:
            logger.info(f"{exc.kind}: {exc.message}")
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        kind = (exc.name or "error").lower().replace(" ", "_")
        return jsonify({"error": kind, "message": exc.description}), exc.code
