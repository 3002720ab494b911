"""Flask extensions initialization (PyMongo connection, JWT).

The JWT loaders below shape every authentication failure into the
``{"error": ...}`` bodies used by the rest of the API and resolve the token
subject to a user document on each protected request.
"""
import logging

from flask import jsonify
from flask_jwt_extended import JWTManager

from . import db
from .config import DEFAULT_SECRET
from .services.auth import auth_service

logger = logging.getLogger(__name__)

# Initialize Flask extensions
jwt = JWTManager()

MISSING_TOKEN_MESSAGE = "Access token required"
INVALID_TOKEN_MESSAGE = "Invalid token"
USER_NOT_FOUND_MESSAGE = "User not found"


def init_extensions(app):
    """Initialize Flask extensions with app context.

    Args:
        app: Flask application instance
    """
    if app.config.get('JWT_SECRET_KEY') in (None, '', DEFAULT_SECRET) and not app.config.get('TESTING'):
        logger.warning("JWT_SECRET_KEY is not set; tokens are signed with the development default")

    jwt.init_app(app)

    @jwt.unauthorized_loader
    def missing_token_callback(reason):
        logger.debug("Missing bearer token: %s", reason)
        return jsonify({"error": MISSING_TOKEN_MESSAGE}), 401

    @jwt.invalid_token_loader
    def invalid_token_callback(reason):
        logger.debug("Invalid bearer token: %s", reason)
        return jsonify({"error": INVALID_TOKEN_MESSAGE}), 401

    @jwt.expired_token_loader
    def expired_token_callback(jwt_header, jwt_payload):
        logger.debug("Expired bearer token for subject %s", jwt_payload.get("sub"))
        return jsonify({"error": INVALID_TOKEN_MESSAGE}), 401

    @jwt.user_lookup_loader
    def user_lookup_callback(jwt_header, jwt_payload):
        return auth_service.load_user(jwt_payload)

    @jwt.user_lookup_error_loader
    def user_lookup_error_callback(jwt_header, jwt_payload):
        logger.info("Token subject %s no longer resolves to a user", jwt_payload.get("sub"))
        return jsonify({"error": USER_NOT_FOUND_MESSAGE}), 401

    # Initialize MongoDB connection using db module
    db.init_app(app)
