"""Shared fixtures: a testing app wired to in-memory repositories.

The repository doubles keep the real id handling of ``BaseRepository`` and
only replace the primitive collection calls, so no MongoDB is needed.
"""

from __future__ import annotations

import copy
from types import SimpleNamespace
from typing import Any, Dict, List

import pytest
from bson import ObjectId
from flask import Flask

from meteo_api.app import create_app
from meteo_api.app.config import TestingConfig
from meteo_api.app.repositories import MeasurementsRepository, StationsRepository, UsersRepository
from meteo_api.app.services.auth import auth_service
from meteo_api.app.services.measurements import measurement_service
from meteo_api.app.services.stations import station_service


def _matches(doc: Dict[str, Any], filter_dict: Dict[str, Any]) -> bool:
    for key, expected in filter_dict.items():
        value = doc.get(key)
        if isinstance(expected, dict) and '$in' in expected:
            if value not in expected['$in']:
                return False
        elif value != expected:
            return False
    return True


class InMemoryRepositoryMixin:
    """Replaces the collection-level primitives with a list of dicts."""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.docs: List[Dict[str, Any]] = []

    def _index(self, filter_dict):
        return next((i for i, doc in enumerate(self.docs) if _matches(doc, filter_dict)), None)

    def find_one(self, filter_dict):
        index = self._index(filter_dict)
        return copy.deepcopy(self.docs[index]) if index is not None else None

    def find_many(self, filter_dict, limit=None, sort=None):
        found = [copy.deepcopy(doc) for doc in self.docs if _matches(doc, filter_dict)]
        return found[:limit] if limit else found

    def insert_one(self, document):
        doc = copy.deepcopy(document)
        doc.setdefault('_id', ObjectId())
        self.docs.append(doc)
        return doc['_id']

    def insert_many(self, documents):
        return [self.insert_one(doc) for doc in documents]

    def find_one_and_replace(self, filter_dict, replacement):
        index = self._index(filter_dict)
        if index is None:
            return None
        doc = copy.deepcopy(replacement)
        doc['_id'] = self.docs[index]['_id']
        self.docs[index] = doc
        return copy.deepcopy(doc)

    def find_one_and_update(self, filter_dict, update_dict):
        index = self._index(filter_dict)
        if index is None:
            return None
        self.docs[index].update(copy.deepcopy(update_dict.get('$set', {})))
        return copy.deepcopy(self.docs[index])

    def delete_one(self, filter_dict):
        index = self._index(filter_dict)
        if index is None:
            return False
        del self.docs[index]
        return True

    def delete_many(self, filter_dict):
        before = len(self.docs)
        self.docs = [doc for doc in self.docs if not _matches(doc, filter_dict)]
        return before - len(self.docs)


class FakeStationsRepository(InMemoryRepositoryMixin, StationsRepository):
    pass


class FakeMeasurementsRepository(InMemoryRepositoryMixin, MeasurementsRepository):
    pass


class FakeUsersRepository(InMemoryRepositoryMixin, UsersRepository):
    pass


@pytest.fixture(name="repos")
def fixture_repos(monkeypatch):
    repos = SimpleNamespace(
        stations=FakeStationsRepository(),
        measurements=FakeMeasurementsRepository(),
        users=FakeUsersRepository(),
    )
    monkeypatch.setattr(station_service, "stations_repo", repos.stations)
    monkeypatch.setattr(measurement_service, "stations_repo", repos.stations)
    monkeypatch.setattr(measurement_service, "measurements_repo", repos.measurements)
    monkeypatch.setattr(auth_service, "users_repo", repos.users)
    return repos


@pytest.fixture(name="app")
def fixture_app(repos) -> Flask:
    return create_app(TestingConfig)


@pytest.fixture(name="client")
def fixture_client(app: Flask):
    return app.test_client()


@pytest.fixture(name="admin_user")
def fixture_admin_user(app: Flask) -> Dict[str, Any]:
    with app.app_context():
        return auth_service.create_user("admin", "admin123", role="admin")


@pytest.fixture(name="auth_headers")
def fixture_auth_headers(app: Flask, admin_user) -> Dict[str, str]:
    with app.app_context():
        token = auth_service.issue_token(admin_user["_id"], "admin")
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture(name="station_payload")
def fixture_station_payload() -> Dict[str, Any]:
    return {
        "name": "Ljubljana Bezigrad",
        "long": 14.5124,
        "lat": 46.0658,
        "type": "automatic",
        "code": "LJ-BEZ",
    }


@pytest.fixture(name="station")
def fixture_station(client, auth_headers, station_payload) -> Dict[str, Any]:
    response = client.post("/stations", json=station_payload, headers=auth_headers)
    assert response.status_code == 201
    return response.get_json()
