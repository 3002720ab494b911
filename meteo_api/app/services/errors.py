"""Service-layer exceptions shared by the auth, station and measurement services.

Each exception carries the HTTP status the routes should answer with, so the
blueprints only need :func:`error_response` to turn them into JSON.
"""

from __future__ import annotations

from typing import Dict, Optional

from flask import jsonify


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, message: str, *, status: int = 400) -> None:
        super().__init__(message)
        self.message = message
        self.status = status

    def to_dict(self) -> Dict[str, object]:
        return {"error": self.message}


class ValidationError(ServiceError):
    """Raised when incoming data fails validation."""

    def __init__(self, message: str, errors: Optional[Dict[str, str]] = None) -> None:
        super().__init__(message, status=400)
        self.errors = errors or {}

    def to_dict(self) -> Dict[str, object]:
        body = super().to_dict()
        if self.errors:
            body["errors"] = self.errors
        return body


class NotFoundError(ServiceError):
    """Raised when a record does not exist."""

    def __init__(self, message: str = "Not found") -> None:
        super().__init__(message, status=404)


class UnauthorizedError(ServiceError):
    """Raised when a caller cannot be authenticated."""

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message, status=401)


class InvalidCredentialsError(UnauthorizedError):
    """Unknown username or wrong password; the two are not distinguished."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


def error_response(error: ServiceError):
    return jsonify(error.to_dict()), error.status
