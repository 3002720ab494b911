"""Station CRUD endpoint tests against the in-memory repositories."""

from __future__ import annotations

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

FIELDS = ("name", "long", "lat", "type", "code")


def _fields(body):
    return {key: body[key] for key in FIELDS}


def test_create_then_get_round_trip(client, auth_headers, station_payload) -> None:
    created = client.post("/stations", json=station_payload, headers=auth_headers)
    assert created.status_code == 201
    body = created.get_json()
    assert ObjectId.is_valid(body["_id"])
    assert body["createdAt"] and body["updatedAt"]

    fetched = client.get(f"/stations/{body['_id']}", headers=auth_headers)
    assert fetched.status_code == 200
    assert _fields(fetched.get_json()) == station_payload
    assert fetched.get_json()["_id"] == body["_id"]


def test_list_filters_by_name_and_type(client, auth_headers, station_payload) -> None:
    client.post("/stations", json=station_payload, headers=auth_headers)
    client.post("/stations", json={**station_payload, "code": "MB-1", "name": "Maribor", "type": "manual"},
                headers=auth_headers)

    everything = client.get("/stations", headers=auth_headers).get_json()
    assert {s["code"] for s in everything} == {"LJ-BEZ", "MB-1"}

    manual = client.get("/stations?type=manual", headers=auth_headers).get_json()
    assert [s["code"] for s in manual] == ["MB-1"]

    by_name = client.get("/stations", query_string={"name": "Ljubljana Bezigrad"}, headers=auth_headers).get_json()
    assert [s["code"] for s in by_name] == ["LJ-BEZ"]

    # Only exact matches on whitelisted fields
    assert client.get("/stations?name=Ljubljana", headers=auth_headers).get_json() == []
    assert len(client.get("/stations?code=MB-1", headers=auth_headers).get_json()) == 2


def test_create_with_duplicate_code_fails(client, auth_headers, station, station_payload) -> None:
    response = client.post("/stations", json={**station_payload, "name": "Copy"}, headers=auth_headers)
    body = response.get_json()
    assert response.status_code == 400
    assert body["error"] == "Station code already exists"
    assert "code" in body["errors"]


def test_create_with_missing_fields_fails(client, auth_headers) -> None:
    response = client.post("/stations", json={"name": "Lonely"}, headers=auth_headers)
    body = response.get_json()
    assert response.status_code == 400
    assert set(body["errors"]) == {"long", "lat", "type", "code"}
    assert body["error"].startswith("Station validation failed")


def test_create_coerces_numeric_strings(client, auth_headers, station_payload) -> None:
    payload = {**station_payload, "long": "14.5", "lat": " 46 ", "extra": "dropped"}
    response = client.post("/stations", json=payload, headers=auth_headers)
    body = response.get_json()
    assert response.status_code == 201
    assert body["long"] == 14.5 and body["lat"] == 46.0
    assert "extra" not in body


def test_create_rejects_non_object_body(client, auth_headers) -> None:
    response = client.post("/stations", json=[1, 2, 3], headers=auth_headers)
    assert response.status_code == 400
    assert response.get_json()["error"] == "Request body must be a JSON object"


def test_get_unknown_station(client, auth_headers) -> None:
    for station_id in (str(ObjectId()), "unknown-id"):
        response = client.get(f"/stations/{station_id}", headers=auth_headers)
        assert response.status_code == 404
        assert response.get_json() == {"error": "Station not found"}


def test_put_overwrites_all_fields(client, auth_headers, station) -> None:
    replacement = {"name": "Renamed", "long": 1.0, "lat": 2.0, "type": "manual", "code": "NEW"}
    response = client.put(f"/stations/{station['_id']}", json=replacement, headers=auth_headers)
    body = response.get_json()
    assert response.status_code == 200
    assert _fields(body) == replacement
    assert body["_id"] == station["_id"]
    assert body["createdAt"] == station["createdAt"]


def test_put_requires_every_field(client, auth_headers, station) -> None:
    response = client.put(f"/stations/{station['_id']}", json={"name": "Only name"}, headers=auth_headers)
    assert response.status_code == 400
    fetched = client.get(f"/stations/{station['_id']}", headers=auth_headers).get_json()
    assert fetched["name"] == station["name"]


def test_put_unknown_station(client, auth_headers, station_payload) -> None:
    response = client.put(f"/stations/{ObjectId()}", json=station_payload, headers=auth_headers)
    assert response.status_code == 404
    assert response.get_json() == {"error": "Station not found"}


def test_put_keeping_own_code_is_allowed(client, auth_headers, station, station_payload) -> None:
    response = client.put(f"/stations/{station['_id']}", json={**station_payload, "name": "Same code"},
                          headers=auth_headers)
    assert response.status_code == 200


def test_patch_changes_only_supplied_fields(client, auth_headers, station) -> None:
    response = client.patch(f"/stations/{station['_id']}", json={"name": "Patched"}, headers=auth_headers)
    body = response.get_json()
    assert response.status_code == 200
    assert body["name"] == "Patched"
    for key in ("long", "lat", "type", "code", "createdAt"):
        assert body[key] == station[key]


def test_patch_validates_supplied_fields(client, auth_headers, station) -> None:
    response = client.patch(f"/stations/{station['_id']}", json={"lat": 123, "type": None}, headers=auth_headers)
    body = response.get_json()
    assert response.status_code == 400
    assert set(body["errors"]) == {"lat", "type"}


def test_patch_to_taken_code_fails(client, auth_headers, station, station_payload) -> None:
    other = client.post("/stations", json={**station_payload, "code": "OTHER"}, headers=auth_headers).get_json()
    response = client.patch(f"/stations/{other['_id']}", json={"code": station["code"]}, headers=auth_headers)
    assert response.status_code == 400
    assert response.get_json()["error"] == "Station code already exists"


def test_patch_unknown_station(client, auth_headers) -> None:
    response = client.patch("/stations/unknown-id", json={"name": "x"}, headers=auth_headers)
    assert response.status_code == 404


def test_delete_station(client, auth_headers, station) -> None:
    response = client.delete(f"/stations/{station['_id']}", headers=auth_headers)
    assert response.status_code == 200
    assert response.get_json() == {"message": "Station deleted successfully"}
    assert client.get(f"/stations/{station['_id']}", headers=auth_headers).status_code == 404


def test_delete_unknown_station(client, auth_headers) -> None:
    response = client.delete("/stations/unknown-id", headers=auth_headers)
    assert response.status_code == 404
    assert response.get_json() == {"error": "Station not found"}


def test_unexpected_storage_error_is_500(client, auth_headers, repos, monkeypatch, caplog) -> None:
    def boom(*_args, **_kwargs):
        raise RuntimeError("socket closed")

    monkeypatch.setattr(repos.stations, "find_many", boom)
    response = client.get("/stations", headers=auth_headers)
    assert response.status_code == 500
    assert response.get_json() == {"error": "Internal server error"}
    assert "Get stations error: socket closed" in caplog.text


def _raise_duplicate(*_args, **_kwargs):
    raise DuplicateKeyError("E11000 duplicate key error collection: stations index: uq_code")


def test_unique_index_violation_on_create(client, auth_headers, repos, station_payload, monkeypatch) -> None:
    # Another writer took the code between the lookup and the insert
    monkeypatch.setattr(repos.stations, "insert_one", _raise_duplicate)
    response = client.post("/stations", json=station_payload, headers=auth_headers)
    assert response.status_code == 400
    assert response.get_json() == {
        "error": "Station code already exists",
        "errors": {"code": "Station code already exists"},
    }


def test_unique_index_violation_on_replace_and_patch(client, auth_headers, repos, station, station_payload,
                                                     monkeypatch) -> None:
    monkeypatch.setattr(repos.stations, "replace_by_id", _raise_duplicate)
    monkeypatch.setattr(repos.stations, "update_by_id", _raise_duplicate)

    replaced = client.put(f"/stations/{station['_id']}", json={**station_payload, "code": "RACE"},
                          headers=auth_headers)
    patched = client.patch(f"/stations/{station['_id']}", json={"code": "RACE"}, headers=auth_headers)
    for response in (replaced, patched):
        assert response.status_code == 400
        assert response.get_json()["error"] == "Station code already exists"
