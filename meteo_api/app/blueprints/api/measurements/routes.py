"""Measurements blueprint: CRUD endpoints for station measurements.

Every route requires a bearer token. ``GET`` responses embed the referenced
station under ``station_id``.
"""
from flask import Blueprint, request, jsonify
import logging

from meteo_api.app.middleware.auth_required import require_token
from meteo_api.app.services.errors import ServiceError, error_response
from meteo_api.app.services.measurements import measurement_service as svc

logger = logging.getLogger(__name__)

measurements_bp = Blueprint('measurements', __name__)
measurements_bp.before_request(require_token)


@measurements_bp.route('', methods=['GET'])
def get_measurements():
    """List measurements.

    Query parameters:
    - station_id: only measurements of this station
    """
    try:
        return jsonify(svc.list_measurements(request.args)), 200
    except ServiceError as error:
        return error_response(error)
    except Exception as e:
        logger.exception(f"Get measurements error: {e}")
        return jsonify({"error": "Internal server error"}), 500


@measurements_bp.route('/<measurement_id>', methods=['GET'])
def get_measurement(measurement_id: str):
    try:
        return jsonify(svc.get_measurement(measurement_id)), 200
    except ServiceError as error:
        return error_response(error)
    except Exception as e:
        logger.exception(f"Get measurement error: {e}")
        return jsonify({"error": "Internal server error"}), 500


@measurements_bp.route('', methods=['POST'])
def create_measurement():
    """Create a measurement.

    Expected JSON body: ``{"value": 21.5, "station_id": "<station id>"}``
    """
    try:
        return jsonify(svc.create_measurement(request.get_json(silent=True))), 201
    except ServiceError as error:
        return error_response(error)
    except Exception as e:
        logger.exception(f"Create measurement error: {e}")
        return jsonify({"error": "Internal server error"}), 500


@measurements_bp.route('/<measurement_id>', methods=['PUT'])
def replace_measurement(measurement_id: str):
    try:
        return jsonify(svc.replace_measurement(measurement_id, request.get_json(silent=True))), 200
    except ServiceError as error:
        return error_response(error)
    except Exception as e:
        logger.exception(f"Replace measurement error: {e}")
        return jsonify({"error": "Internal server error"}), 500


@measurements_bp.route('/<measurement_id>', methods=['PATCH'])
def patch_measurement(measurement_id: str):
    try:
        return jsonify(svc.patch_measurement(measurement_id, request.get_json(silent=True))), 200
    except ServiceError as error:
        return error_response(error)
    except Exception as e:
        logger.exception(f"Patch measurement error: {e}")
        return jsonify({"error": "Internal server error"}), 500


@measurements_bp.route('/<measurement_id>', methods=['DELETE'])
def delete_measurement(measurement_id: str):
    try:
        svc.delete_measurement(measurement_id)
        return jsonify({"message": "Measurement deleted successfully"}), 200
    except ServiceError as error:
        return error_response(error)
    except Exception as e:
        logger.exception(f"Delete measurement error: {e}")
        return jsonify({"error": "Internal server error"}), 500
