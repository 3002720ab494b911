"""JSON helpers for MongoDB documents."""
from datetime import datetime, timezone

from bson import ObjectId


def sanitize_for_json(obj):
    """Recursively convert types that Flask/json can't serialize (ObjectId, datetime)."""
    if isinstance(obj, dict):
        return {k: sanitize_for_json(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [sanitize_for_json(v) for v in obj]
    if isinstance(obj, ObjectId):
        return str(obj)
    if isinstance(obj, datetime):
        # pymongo hands back naive datetimes that are UTC
        if obj.tzinfo is None:
            obj = obj.replace(tzinfo=timezone.utc)
        return obj.isoformat()
    return obj


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat().replace('+00:00', 'Z')
