"""Configuration settings and environment variables.

This module loads values from environment variables (including a .env file)
and provides small helpers to safely parse integers and booleans while
stripping inline comments. This avoids crashes when a .env value contains
an inline comment like:

    JWT_EXPIRES_HOURS=24 # one day

The helpers fall back to defaults and emit warnings when parsing fails.
"""

import os
import logging
from datetime import timedelta
from typing import Optional
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(os.environ.get('DOTENV_PATH') or None)

_logger = logging.getLogger(__name__)

DEFAULT_SECRET = 'dev-secret-key-change-in-production'


def _strip_inline_comment(val: str) -> str:
    """Strip an inline comment from a string and trim whitespace/quotes.

    Example: "24 # one day" -> "24"
    """
    if val is None:
        return ''
    # Split on first '#' to remove inline comments
    val = val.split('#', 1)[0]
    val = val.strip()
    # Remove surrounding single/double quotes if present
    if (val.startswith('"') and val.endswith('"')) or (
        val.startswith("'") and val.endswith("'")
    ):
        val = val[1:-1]
    return val


def _get_env(name: str, default: Optional[str] = None) -> Optional[str]:
    raw = os.environ.get(name)
    if raw is None:
        return default
    stripped = _strip_inline_comment(raw)
    return stripped if stripped != '' else default


def _get_first_env(*names: str, default: Optional[str] = None) -> Optional[str]:
    """Return the first non-empty value among several variable names."""
    for name in names:
        value = _get_env(name)
        if value is not None:
            return value
    return default


def _get_int_env(name: str, default: int) -> int:
    raw = _get_env(name)
    if raw is None:
        return default
    try:
        return int(raw)
    except (ValueError, TypeError):
        _logger.warning("Invalid integer for %s: %r, falling back to %s", name, raw, default)
        return default


def _get_bool_env(name: str, default: bool) -> bool:
    raw = _get_env(name)
    if raw is None:
        return default
    return raw.lower() in ['true', '1', 'on', 'yes']


class Config:
    """Base configuration class with default settings."""

    # Flask settings
    SECRET_KEY = _get_env('SECRET_KEY') or DEFAULT_SECRET

    # JWT settings: stateless bearer tokens, one access token per login
    JWT_SECRET_KEY = _get_first_env('JWT_SECRET', 'JWT_SECRET_KEY') or SECRET_KEY
    JWT_ACCESS_TOKEN_EXPIRES = timedelta(hours=_get_int_env('JWT_EXPIRES_HOURS', 24))
    JWT_TOKEN_LOCATION = ['headers']
    JWT_HEADER_NAME = 'Authorization'
    JWT_HEADER_TYPE = 'Bearer'
    JWT_ERROR_MESSAGE_KEY = 'error'

    # Password hashing cost (bcrypt log rounds)
    BCRYPT_ROUNDS = _get_int_env('BCRYPT_ROUNDS', 10)

    # MongoDB settings
    MONGO_URI = _get_env('MONGO_URI') or 'mongodb://localhost:27017/'
    MONGO_DB = _get_env('MONGO_DB') or 'meteo_stations'
    MONGO_CONNECT_ON_STARTUP = _get_bool_env('MONGO_CONNECT_ON_STARTUP', True)

    # Initial administrator, consumed once by scripts/create_admin.py
    ADMIN_USERNAME = _get_env('ADMIN_USERNAME') or 'admin'
    ADMIN_PASSWORD = _get_env('ADMIN_PASSWORD') or 'admin123'

    # Serving
    PORT = _get_int_env('PORT', 3000)
    APP_ENV = _get_first_env('APP_ENV', 'FLASK_ENV') or 'production'
    APP_VERSION = _get_env('APP_VERSION') or '1.0.0'
    LOG_LEVEL = (_get_env('LOG_LEVEL') or 'INFO').upper()


class DevelopmentConfig(Config):
    """Development configuration with debug mode enabled."""
    DEBUG = True
    TESTING = False
    APP_ENV = 'development'


class ProductionConfig(Config):
    """Production configuration with security settings."""
    DEBUG = False
    TESTING = False


class TestingConfig(Config):
    """Testing configuration with test database."""
    TESTING = True
    APP_ENV = 'testing'
    MONGO_DB = 'meteo_stations_test'
    MONGO_CONNECT_ON_STARTUP = False
    JWT_SECRET_KEY = 'testing-secret-key-with-enough-entropy-1234567890'
    BCRYPT_ROUNDS = 4


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}


def get_config(name: Optional[str] = None):
    """Resolve a configuration class by name, falling back to APP_ENV.

    Unknown names resolve to the development configuration; no name at all
    resolves to the base Config.
    """
    key = name or _get_first_env('APP_ENV', 'FLASK_ENV')
    if not key:
        return Config
    return config.get(key.lower(), config['default'])
