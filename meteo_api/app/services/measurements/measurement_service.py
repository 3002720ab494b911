"""Measurement service layer.

Measurements reference a station through ``station_id``. Writes check that
the station exists; reads resolve the reference and embed the station
document in place of the id (``None`` when the station has been deleted).
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

from meteo_api.app.repositories import measurements_repo, stations_repo, to_object_id
from meteo_api.app.serialization import sanitize_for_json
from meteo_api.app.services.errors import NotFoundError, ValidationError
from meteo_api.app.services.validation import parse_object_id, validate_measurement

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Measurement not found"
UNKNOWN_STATION_MESSAGE = "station_id does not reference an existing station"


def _ensure_station_exists(station_oid) -> None:
    if stations_repo.find_by_id(station_oid) is None:
        raise ValidationError(UNKNOWN_STATION_MESSAGE, {'station_id': UNKNOWN_STATION_MESSAGE})


def populate_stations(measurements: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Replace each ``station_id`` with the referenced station document.

    All referenced stations are fetched with a single ``$in`` query.
    """
    station_ids = [m.get('station_id') for m in measurements if m.get('station_id') is not None]
    stations = {doc['_id']: doc for doc in stations_repo.find_by_ids(station_ids)}
    populated = []
    for measurement in measurements:
        doc = dict(measurement)
        doc['station_id'] = stations.get(to_object_id(measurement.get('station_id')))
        populated.append(doc)
    return populated


def list_measurements(args: Mapping[str, Any]) -> List[Dict[str, Any]]:
    station_filter = args.get('station_id')
    if station_filter:
        docs = measurements_repo.find_by_station(parse_object_id(station_filter, 'station_id'))
    else:
        docs = measurements_repo.find_many({})
    return sanitize_for_json(populate_stations(docs))


def get_measurement(measurement_id: str) -> Dict[str, Any]:
    doc = measurements_repo.find_by_id(measurement_id)
    if not doc:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return sanitize_for_json(populate_stations([doc])[0])


def create_measurement(payload: Any) -> Dict[str, Any]:
    document = validate_measurement(payload)
    _ensure_station_exists(document['station_id'])

    now = datetime.now(timezone.utc)
    document['createdAt'] = now
    document['updatedAt'] = now
    document['_id'] = measurements_repo.insert_one(document)
    logger.debug("Measurement created", extra={"measurement_id": str(document['_id'])})
    return sanitize_for_json(document)


def replace_measurement(measurement_id: str, payload: Any) -> Dict[str, Any]:
    """Overwrite every field of a measurement (PUT)."""
    oid = to_object_id(measurement_id)
    existing = measurements_repo.find_by_id(oid) if oid else None
    if not existing:
        raise NotFoundError(NOT_FOUND_MESSAGE)

    document = validate_measurement(payload)
    _ensure_station_exists(document['station_id'])

    document['createdAt'] = existing.get('createdAt')
    document['updatedAt'] = datetime.now(timezone.utc)
    updated = measurements_repo.replace_by_id(oid, document)
    if not updated:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return sanitize_for_json(updated)


def patch_measurement(measurement_id: str, payload: Any) -> Dict[str, Any]:
    """Change only the supplied fields of a measurement (PATCH)."""
    oid = to_object_id(measurement_id)
    if oid is None or not measurements_repo.find_by_id(oid):
        raise NotFoundError(NOT_FOUND_MESSAGE)

    changes = validate_measurement(payload, partial=True)
    if 'station_id' in changes:
        _ensure_station_exists(changes['station_id'])

    changes['updatedAt'] = datetime.now(timezone.utc)
    updated = measurements_repo.update_by_id(oid, changes)
    if not updated:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return sanitize_for_json(updated)


def delete_measurement(measurement_id: str) -> None:
    if not measurements_repo.delete_by_id(measurement_id):
        raise NotFoundError(NOT_FOUND_MESSAGE)
