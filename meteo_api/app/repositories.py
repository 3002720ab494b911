"""Repository pattern for database operations.

This module provides repository classes for each main collection,
abstracting database operations and providing a clean interface for the
service layer.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Iterable, List, Optional
from datetime import datetime, timezone
from pymongo import ReturnDocument
from pymongo.collection import Collection
from pymongo.errors import DuplicateKeyError, PyMongoError
from bson import ObjectId
from bson.errors import InvalidId

from . import db

logger = logging.getLogger(__name__)


def to_object_id(value: Any) -> Optional[ObjectId]:
    """Return ``value`` as an ObjectId, or None when it is not a valid id."""
    if isinstance(value, ObjectId):
        return value
    # ObjectId(None) would mint a fresh id
    if not isinstance(value, str):
        return None
    try:
        return ObjectId(value)
    except (InvalidId, TypeError, ValueError):
        return None


class BaseRepository:
    """Base repository class with common database operations.

    The primitive methods (``find_one`` ... ``delete_one``) are the only ones
    that touch the collection; the id-based helpers are built on top of them.
    """

    def __init__(self, collection_name: str):
        """Initialize repository with collection name.

        Args:
            collection_name: Name of the MongoDB collection
        """
        self.collection_name = collection_name

    @property
    def collection(self) -> Collection:
        database = db.get_db()
        return database[self.collection_name]

    def find_one(self, filter_dict: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            return self.collection.find_one(filter_dict)
        except PyMongoError as e:
            logger.error(f"Error finding document in {self.collection_name}: {e}")
            raise

    def find_many(self, filter_dict: Dict[str, Any], limit: Optional[int] = None, sort: Optional[List[tuple]] = None) -> List[Dict[str, Any]]:
        try:
            cursor = self.collection.find(filter_dict)
            if sort:
                cursor = cursor.sort(sort)
            if limit:
                cursor = cursor.limit(limit)
            return list(cursor)
        except PyMongoError as e:
            logger.error(f"Error finding documents in {self.collection_name}: {e}")
            raise

    def insert_one(self, document: Dict[str, Any]) -> ObjectId:
        try:
            result = self.collection.insert_one(document)
            return result.inserted_id
        except DuplicateKeyError:
            raise
        except PyMongoError as e:
            logger.error(f"Error inserting document in {self.collection_name}: {e}")
            raise

    def find_one_and_replace(self, filter_dict: Dict[str, Any], replacement: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            return self.collection.find_one_and_replace(
                filter_dict, replacement, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise
        except PyMongoError as e:
            logger.error(f"Error replacing document in {self.collection_name}: {e}")
            raise

    def find_one_and_update(self, filter_dict: Dict[str, Any], update_dict: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            return self.collection.find_one_and_update(
                filter_dict, update_dict, return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            raise
        except PyMongoError as e:
            logger.error(f"Error updating document in {self.collection_name}: {e}")
            raise

    def delete_one(self, filter_dict: Dict[str, Any]) -> bool:
        try:
            result = self.collection.delete_one(filter_dict)
            return result.deleted_count > 0
        except PyMongoError as e:
            logger.error(f"Error deleting document in {self.collection_name}: {e}")
            raise

    def delete_many(self, filter_dict: Dict[str, Any]) -> int:
        try:
            result = self.collection.delete_many(filter_dict)
            return result.deleted_count
        except PyMongoError as e:
            logger.error(f"Error deleting documents in {self.collection_name}: {e}")
            raise

    def insert_many(self, documents: List[Dict[str, Any]]) -> List[ObjectId]:
        if not documents:
            return []
        try:
            result = self.collection.insert_many(documents)
            return list(result.inserted_ids)
        except PyMongoError as e:
            logger.error(f"Error inserting documents in {self.collection_name}: {e}")
            raise

    # Id-based helpers

    def find_by_id(self, doc_id: Any) -> Optional[Dict[str, Any]]:
        oid = to_object_id(doc_id)
        if oid is None:
            return None
        return self.find_one({'_id': oid})

    def find_by_ids(self, doc_ids: Iterable[Any]) -> List[Dict[str, Any]]:
        oids = [oid for oid in (to_object_id(v) for v in doc_ids) if oid is not None]
        if not oids:
            return []
        return self.find_many({'_id': {'$in': list(dict.fromkeys(oids))}})

    def replace_by_id(self, doc_id: Any, document: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        oid = to_object_id(doc_id)
        if oid is None:
            return None
        return self.find_one_and_replace({'_id': oid}, document)

    def update_by_id(self, doc_id: Any, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        oid = to_object_id(doc_id)
        if oid is None:
            return None
        return self.find_one_and_update({'_id': oid}, {'$set': fields})

    def delete_by_id(self, doc_id: Any) -> bool:
        oid = to_object_id(doc_id)
        if oid is None:
            return False
        return self.delete_one({'_id': oid})


class StationsRepository(BaseRepository):
    def __init__(self):
        super().__init__(db.STATIONS_COLLECTION)

    def find_by_code(self, code: str) -> Optional[Dict[str, Any]]:
        return self.find_one({'code': code})


class MeasurementsRepository(BaseRepository):
    def __init__(self):
        super().__init__(db.MEASUREMENTS_COLLECTION)

    def find_by_station(self, station_id: Any) -> List[Dict[str, Any]]:
        oid = to_object_id(station_id)
        if oid is None:
            return []
        return self.find_many({'station_id': oid})


class UsersRepository(BaseRepository):
    def __init__(self) -> None:
        super().__init__(db.USERS_COLLECTION)

    def find_by_username(self, username: str) -> Optional[Dict[str, Any]]:
        return self.find_one({'username': username.lower()})

    def create_user(self, user_data: Dict[str, Any]) -> ObjectId:
        user_data['username'] = user_data['username'].lower()
        now = datetime.now(timezone.utc)
        user_data.setdefault('role', 'user')
        user_data.setdefault('createdAt', now)
        user_data.setdefault('updatedAt', now)
        try:
            return self.insert_one(user_data)
        except DuplicateKeyError as e:
            logger.warning(f"Duplicate user creation attempt: {e}")
            raise

    def update_password_hash(self, user_id: Any, password_hash: str) -> bool:
        updated = self.update_by_id(user_id, {
            'passwordHash': password_hash,
            'updatedAt': datetime.now(timezone.utc),
        })
        return updated is not None


# Repository instances for easy import
stations_repo = StationsRepository()
measurements_repo = MeasurementsRepository()
users_repo = UsersRepository()
