"""Flask application factory and initialization."""
import logging

from flask import Flask, jsonify
from pymongo.errors import PyMongoError

from meteo_api.app.config import Config
from meteo_api.app.db import DatabaseError
from meteo_api.app.extensions import init_extensions

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def create_app(config_class=Config):
    """Create and configure the Flask application.

    Args:
        config_class: Configuration class to use

    Returns:
        Flask: Configured Flask application instance
    """
    app = Flask(__name__)
    app.config.from_object(config_class)

    configure_logging(app)

    # Initialize Flask extensions (JWT, MongoDB)
    init_extensions(app)

    # Register blueprints
    register_blueprints(app)
    register_error_handlers(app)

    # Add CORS headers
    @app.after_request
    def after_request(response):
        """Add CORS headers to all responses."""
        response.headers['Access-Control-Allow-Origin'] = '*'
        response.headers['Access-Control-Allow-Methods'] = 'GET, POST, PUT, PATCH, DELETE, OPTIONS'
        response.headers['Access-Control-Allow-Headers'] = 'Content-Type, Authorization'
        return response

    logger.info("Application created (environment=%s)", app.config.get('APP_ENV'))
    return app


def configure_logging(app):
    """Configure the root logger once, using ``LOG_LEVEL``."""
    level = getattr(logging, str(app.config.get('LOG_LEVEL', 'INFO')).upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    app.logger.setLevel(level)


def register_blueprints(app):
    """Register Flask blueprints with the application.

    Args:
        app: Flask application instance
    """
    # Import API blueprints here to avoid circular imports
    from meteo_api.app.blueprints.api.auth.routes import auth_bp
    from meteo_api.app.blueprints.api.stations.routes import stations_bp
    from meteo_api.app.blueprints.api.measurements.routes import measurements_bp
    from meteo_api.app.blueprints.api.status.routes import status_bp
    from meteo_api.app.blueprints.docs.routes import docs_bp

    app.register_blueprint(auth_bp, url_prefix='/auth')
    app.register_blueprint(stations_bp, url_prefix='/stations')
    app.register_blueprint(measurements_bp, url_prefix='/measurements')
    app.register_blueprint(docs_bp, url_prefix='/api-docs')
    # Status and health live at the root (no prefix)
    app.register_blueprint(status_bp)


def register_error_handlers(app):
    """JSON bodies for errors raised outside the route try/except blocks."""

    @app.errorhandler(DatabaseError)
    @app.errorhandler(PyMongoError)
    def handle_storage_error(error):
        logger.error(f"Storage error: {error}")
        return jsonify({"error": "Internal server error"}), 500

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({"error": "Not found"}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({"error": "Method not allowed"}), 405
