"""Stations blueprint: CRUD endpoints for meteorological stations.

Every route requires a bearer token. Filtering is exact match on ``name``
and ``type`` query parameters.
"""
from flask import Blueprint, request, jsonify
import logging

from meteo_api.app.middleware.auth_required import require_token
from meteo_api.app.services.errors import ServiceError, error_response
from meteo_api.app.services.stations import station_service as svc

logger = logging.getLogger(__name__)

stations_bp = Blueprint('stations', __name__)
stations_bp.before_request(require_token)


def _request_body():
    return request.get_json(silent=True)


@stations_bp.route('', methods=['GET'])
def list_stations():
    """List stations, optionally filtered by ``?name=`` and ``?type=``."""
    try:
        return jsonify(svc.list_stations(request.args)), 200
    except ServiceError as error:
        return error_response(error)
    except Exception as e:
        logger.exception(f"Get stations error: {e}")
        return jsonify({"error": "Internal server error"}), 500


@stations_bp.route('/<station_id>', methods=['GET'])
def get_station(station_id: str):
    try:
        return jsonify(svc.get_station(station_id)), 200
    except ServiceError as error:
        return error_response(error)
    except Exception as e:
        logger.exception(f"Get station {station_id} error: {e}")
        return jsonify({"error": "Internal server error"}), 500


@stations_bp.route('', methods=['POST'])
def create_station():
    try:
        return jsonify(svc.create_station(_request_body())), 201
    except ServiceError as error:
        return error_response(error)
    except Exception as e:
        logger.exception(f"Create station error: {e}")
        return jsonify({"error": "Internal server error"}), 500


@stations_bp.route('/<station_id>', methods=['PUT'])
def replace_station(station_id: str):
    """Replace an entire station; every field must be supplied."""
    try:
        return jsonify(svc.replace_station(station_id, _request_body())), 200
    except ServiceError as error:
        return error_response(error)
    except Exception as e:
        logger.exception(f"Replace station {station_id} error: {e}")
        return jsonify({"error": "Internal server error"}), 500


@stations_bp.route('/<station_id>', methods=['PATCH'])
def patch_station(station_id: str):
    """Update only the supplied station fields."""
    try:
        return jsonify(svc.patch_station(station_id, _request_body())), 200
    except ServiceError as error:
        return error_response(error)
    except Exception as e:
        logger.exception(f"Patch station {station_id} error: {e}")
        return jsonify({"error": "Internal server error"}), 500


@stations_bp.route('/<station_id>', methods=['DELETE'])
def delete_station(station_id: str):
    try:
        svc.delete_station(station_id)
        return jsonify({"message": "Station deleted successfully"}), 200
    except ServiceError as error:
        return error_response(error)
    except Exception as e:
        logger.exception(f"Delete station {station_id} error: {e}")
        return jsonify({"error": "Internal server error"}), 500
