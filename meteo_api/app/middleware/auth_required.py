"""Bearer token gate for protected API endpoints.

Validates the ``Authorization: Bearer <token>`` header before route handlers
run. Signature/expiry checks and the user lookup are delegated to
flask-jwt-extended; the JSON error bodies come from the loaders registered in
``extensions.init_extensions``.
"""

from __future__ import annotations

import logging

from flask import current_app, request
from flask_jwt_extended import verify_jwt_in_request
from flask_jwt_extended.exceptions import InvalidHeaderError, NoAuthorizationError

logger = logging.getLogger(__name__)


def require_token() -> None:
    """Reject the current request unless it carries a valid bearer token.

    Registered as ``before_request`` on every protected blueprint. On success
    the resolved user is available as ``flask_jwt_extended.current_user``.
    """
    if request.method == 'OPTIONS':
        return None
    header = request.headers.get('Authorization', '')
    parts = header.split()
    if len(parts) < 2:
        logger.debug("Rejected request without bearer token", extra={"path": request.path})
        raise NoAuthorizationError("Access token required")
    header_type = current_app.config["JWT_HEADER_TYPE"]
    if parts[0] != header_type:
        logger.debug("Rejected request with %s authorization scheme", parts[0], extra={"path": request.path})
        raise InvalidHeaderError(f"Authorization scheme must be {header_type}")
    verify_jwt_in_request()
    return None
