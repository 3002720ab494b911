"""Authentication blueprint: login returning a JWT bearer token."""
from flask import Blueprint, request, jsonify
import logging

from meteo_api.app.services.auth import auth_service
from meteo_api.app.services.errors import ServiceError, error_response

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
def login():
    """Authenticate user and return a JWT access token.

    Expected JSON body: ``{"username": "...", "password": "..."}``.
    Unknown usernames and wrong passwords get the same 401 response.
    """
    try:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
        result = auth_service.authenticate(data.get('username'), data.get('password'))
        return jsonify(result), 200

    except ServiceError as error:
        return error_response(error)
    except Exception as e:
        logger.exception(f"Login error: {e}")
        return jsonify({"error": "Internal server error"}), 500
