"""Station service layer.

Wraps repository access for the station endpoints, validates request bodies
and enforces the unique station ``code``.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from pymongo.errors import DuplicateKeyError

from meteo_api.app.repositories import stations_repo, to_object_id
from meteo_api.app.serialization import sanitize_for_json
from meteo_api.app.services.errors import NotFoundError, ValidationError
from meteo_api.app.services.validation import validate_station

logger = logging.getLogger(__name__)

FILTER_FIELDS = ('name', 'type')
NOT_FOUND_MESSAGE = "Station not found"
DUPLICATE_CODE_MESSAGE = "Station code already exists"


def _duplicate_code_error() -> ValidationError:
    return ValidationError(DUPLICATE_CODE_MESSAGE, {'code': DUPLICATE_CODE_MESSAGE})


def _ensure_code_available(code: Optional[str], exclude_id: Any = None) -> None:
    if code is None:
        return
    existing = stations_repo.find_by_code(code)
    if existing and existing.get('_id') != exclude_id:
        raise _duplicate_code_error()


def build_filter(args: Mapping[str, Any]) -> Dict[str, Any]:
    """Keep only whitelisted, non-empty equality filters."""
    return {field: args[field] for field in FILTER_FIELDS if args.get(field)}


def serialize_station(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    return sanitize_for_json(doc) if doc else None


def list_stations(args: Mapping[str, Any]) -> List[Dict[str, Any]]:
    return [serialize_station(doc) for doc in stations_repo.find_many(build_filter(args))]


def get_station(station_id: str) -> Dict[str, Any]:
    doc = stations_repo.find_by_id(station_id)
    if not doc:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return serialize_station(doc)


def create_station(payload: Any) -> Dict[str, Any]:
    document = validate_station(payload)
    _ensure_code_available(document['code'])

    now = datetime.now(timezone.utc)
    document['createdAt'] = now
    document['updatedAt'] = now
    try:
        document['_id'] = stations_repo.insert_one(document)
    except DuplicateKeyError:
        raise _duplicate_code_error()
    logger.info("Station created", extra={"station_id": str(document['_id']), "code": document['code']})
    return serialize_station(document)


def replace_station(station_id: str, payload: Any) -> Dict[str, Any]:
    """Overwrite every field of a station (PUT)."""
    oid = to_object_id(station_id)
    existing = stations_repo.find_by_id(oid) if oid else None
    if not existing:
        raise NotFoundError(NOT_FOUND_MESSAGE)

    document = validate_station(payload)
    _ensure_code_available(document['code'], exclude_id=oid)

    document['createdAt'] = existing.get('createdAt')
    document['updatedAt'] = datetime.now(timezone.utc)
    try:
        updated = stations_repo.replace_by_id(oid, document)
    except DuplicateKeyError:
        raise _duplicate_code_error()
    if not updated:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return serialize_station(updated)


def patch_station(station_id: str, payload: Any) -> Dict[str, Any]:
    """Change only the supplied fields of a station (PATCH)."""
    oid = to_object_id(station_id)
    if oid is None or not stations_repo.find_by_id(oid):
        raise NotFoundError(NOT_FOUND_MESSAGE)

    changes = validate_station(payload, partial=True)
    _ensure_code_available(changes.get('code'), exclude_id=oid)

    changes['updatedAt'] = datetime.now(timezone.utc)
    try:
        updated = stations_repo.update_by_id(oid, changes)
    except DuplicateKeyError:
        raise _duplicate_code_error()
    if not updated:
        raise NotFoundError(NOT_FOUND_MESSAGE)
    return serialize_station(updated)


def delete_station(station_id: str) -> None:
    """Delete a station. Measurements that reference it are left untouched."""
    if not stations_repo.delete_by_id(station_id):
        raise NotFoundError(NOT_FOUND_MESSAGE)
    logger.info("Station deleted", extra={"station_id": station_id})
