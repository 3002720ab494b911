"""Database connection and utility functions for MongoDB.

This module provides a centralized MongoDB client with connection management,
error handling, and common database operations for the stations API.

One pooled ``MongoClient`` is kept per application (in ``app.extensions``)
and shared by every request served by that process.
"""

from __future__ import annotations

import atexit
import logging
from pymongo import ASCENDING, MongoClient
from pymongo.errors import ConnectionFailure, PyMongoError, ServerSelectionTimeoutError
from flask import current_app

logger = logging.getLogger(__name__)

STATIONS_COLLECTION = 'stations'
MEASUREMENTS_COLLECTION = 'measurements'
USERS_COLLECTION = 'users'

_CLIENT_KEY = 'mongo_client'


class DatabaseError(Exception):
    """Custom exception for database-related errors."""
    pass


def _discard_client(client) -> None:
    # A client that failed its ping still owns monitor threads and a pool
    if client is not None:
        client.close()


def get_mongo_client() -> MongoClient:
    """Get or create MongoDB client instance.

    Returns:
        MongoClient: Configured MongoDB client instance

    Raises:
        DatabaseError: If connection cannot be established
    """
    client = current_app.extensions.get(_CLIENT_KEY)
    if client is not None:
        return client

    client = None
    try:
        mongo_uri = current_app.config['MONGO_URI']
        client = MongoClient(
            mongo_uri,
            serverSelectionTimeoutMS=5000,  # 5 second timeout
            connectTimeoutMS=10000,         # 10 second connection timeout
            socketTimeoutMS=20000,          # 20 second socket timeout
            maxPoolSize=50,                 # Maximum connection pool size
            retryWrites=True
        )

        # Test the connection
        client.admin.command('ping')
        logger.info("MongoDB connection established successfully")

    except (ConnectionFailure, ServerSelectionTimeoutError) as e:
        logger.error(f"Failed to connect to MongoDB: {e}")
        _discard_client(client)
        raise DatabaseError(f"Database connection failed: {e}")
    except PyMongoError as e:
        logger.error(f"Unexpected error connecting to MongoDB: {e}")
        _discard_client(client)
        raise DatabaseError(f"Unexpected database error: {e}")

    current_app.extensions[_CLIENT_KEY] = client
    return client


def get_db():
    """Get database instance for the current application.

    The database named in the connection string wins over ``MONGO_DB`` so a
    single ``MONGO_URI`` such as ``mongodb://host/stations_dev`` is enough.

    Raises:
        DatabaseError: If database connection fails
    """
    client = get_mongo_client()
    return client.get_default_database(current_app.config['MONGO_DB'])


def close_client(app) -> None:
    """Close the application's MongoDB client if one was opened."""
    client = app.extensions.pop(_CLIENT_KEY, None)
    if client is not None:
        client.close()
        logger.debug("Database connection closed successfully")


def init_app(app) -> None:
    """Initialize database connection with Flask app.

    Args:
        app: Flask application instance
    """
    atexit.register(close_client, app)

    if not app.config.get('MONGO_CONNECT_ON_STARTUP', True):
        return

    # Test initial connection during app startup
    with app.app_context():
        try:
            db = get_db()
            collections = db.list_collection_names()
            logger.info(f"Database initialization successful. Found {len(collections)} collections.")
            ensure_indexes(db)
        except (DatabaseError, PyMongoError) as e:
            # Don't raise here - allow app to start even if DB is temporarily unavailable
            logger.error(f"Database initialization failed: {e}")


def health_check() -> dict:
    """Perform database health check.

    Returns:
        dict: Health check results with status and details
    """
    try:
        client = get_mongo_client()
        db = get_db()

        # Ping the database
        client.admin.command('ping')
        server_info = client.server_info()
        collection_count = len(db.list_collection_names())

        return {
            'status': 'healthy',
            'database': db.name,
            'server_version': server_info.get('version', 'unknown'),
            'collections': collection_count,
            'message': 'Database connection is operational'
        }

    except DatabaseError as e:
        return {
            'status': 'unhealthy',
            'error': str(e),
            'message': 'Database connection failed'
        }
    except PyMongoError as e:
        logger.error(f"Health check failed with unexpected error: {e}")
        return {
            'status': 'unhealthy',
            'error': f"Unexpected error: {str(e)}",
            'message': 'Database health check failed'
        }


def ensure_indexes(database=None) -> bool:
    """Ensure all required indexes are created.

    Args:
        database: Optional database handle; defaults to the app database.

    Returns:
        bool: True if all indexes were created/verified successfully
    """
    try:
        db = database if database is not None else get_db()

        stations = db[STATIONS_COLLECTION]
        stations.create_index([('code', ASCENDING)], name='uq_code', unique=True)
        stations.create_index([('name', ASCENDING)], name='idx_name')
        stations.create_index([('type', ASCENDING)], name='idx_type')

        measurements = db[MEASUREMENTS_COLLECTION]
        measurements.create_index([('station_id', ASCENDING)], name='idx_station_id')

        users = db[USERS_COLLECTION]
        users.create_index([('username', ASCENDING)], name='uq_username', unique=True)

        logger.info("Database indexes created/verified successfully")
        return True

    except PyMongoError as e:
        logger.error(f"Failed to create indexes: {e}")
        return False
