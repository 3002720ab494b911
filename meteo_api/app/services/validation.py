"""Request body validation for station and measurement documents.

Bodies are checked against a small field schema before anything reaches
MongoDB. Values are coerced the way a document mapper would (numeric strings
become numbers, numbers become strings for text fields) and unknown keys are
dropped.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from bson import ObjectId

from meteo_api.app.repositories import to_object_id
from meteo_api.app.services.errors import ValidationError


class FieldError(ValueError):
    """A single field failed coercion."""


def _coerce_string(value: Any) -> str:
    if isinstance(value, bool):
        raise FieldError("must be a string")
    if isinstance(value, (int, float)):
        return str(value)
    if not isinstance(value, str):
        raise FieldError("must be a string")
    value = value.strip()
    if not value:
        raise FieldError("is required")
    return value


def _coerce_number(value: Any) -> float:
    if isinstance(value, bool):
        raise FieldError("must be a number")
    if isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            raise FieldError("must be a number")
    if not isinstance(value, (int, float)):
        raise FieldError("must be a number")
    if math.isnan(value) or math.isinf(value):
        raise FieldError("must be a finite number")
    return value


def _ranged_number(low: float, high: float) -> Callable[[Any], float]:
    def coerce(value: Any) -> float:
        number = _coerce_number(value)
        if not low <= number <= high:
            raise FieldError(f"must be between {low:g} and {high:g}")
        return number
    return coerce


def _coerce_object_id(value: Any) -> ObjectId:
    # Reads embed the referenced document, accept it back on writes
    if isinstance(value, dict):
        value = value.get('_id')
    oid = to_object_id(value)
    if oid is None:
        raise FieldError("must be a valid id")
    return oid


@dataclass(frozen=True)
class Field:
    name: str
    coerce: Callable[[Any], Any]
    required: bool = True


STATION_FIELDS: Tuple[Field, ...] = (
    Field('name', _coerce_string),
    Field('long', _ranged_number(-180, 180)),
    Field('lat', _ranged_number(-90, 90)),
    Field('type', _coerce_string),
    Field('code', _coerce_string),
)

MEASUREMENT_FIELDS: Tuple[Field, ...] = (
    Field('value', _coerce_number),
    Field('station_id', _coerce_object_id),
)


def validate_document(payload: Any, fields: Tuple[Field, ...], *, partial: bool = False,
                      label: str = 'Document') -> Dict[str, Any]:
    """Validate and coerce ``payload`` against ``fields``.

    With ``partial`` only the supplied fields are checked (PATCH semantics);
    otherwise every required field must be present (POST/PUT semantics).

    Returns:
        dict: the cleaned document containing only known fields

    Raises:
        ValidationError: with a per-field ``errors`` mapping
    """
    if not isinstance(payload, Mapping):
        raise ValidationError("Request body must be a JSON object")

    cleaned: Dict[str, Any] = {}
    errors: Dict[str, str] = {}
    for field in fields:
        if field.name not in payload:
            if field.required and not partial:
                errors[field.name] = f"{field.name} is required"
            continue
        value = payload[field.name]
        if value is None:
            if field.required:
                errors[field.name] = f"{field.name} is required"
            continue
        try:
            cleaned[field.name] = field.coerce(value)
        except FieldError as exc:
            errors[field.name] = f"{field.name} {exc}"

    if errors:
        summary = ", ".join(errors[name] for name in errors)
        raise ValidationError(f"{label} validation failed: {summary}", errors)
    return cleaned


def validate_station(payload: Any, *, partial: bool = False) -> Dict[str, Any]:
    return validate_document(payload, STATION_FIELDS, partial=partial, label='Station')


def validate_measurement(payload: Any, *, partial: bool = False) -> Dict[str, Any]:
    return validate_document(payload, MEASUREMENT_FIELDS, partial=partial, label='Measurement')


def parse_object_id(value: Optional[str], field_name: str) -> ObjectId:
    """Parse an id taken from a query string, raising ValidationError."""
    oid = to_object_id(value) if value else None
    if oid is None:
        raise ValidationError(f"Invalid {field_name}", {field_name: f"{field_name} must be a valid id"})
    return oid
