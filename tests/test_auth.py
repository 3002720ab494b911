"""Tests for login, token issuance and the bearer token gate."""

from __future__ import annotations

from datetime import timedelta

import pytest
from flask_jwt_extended import create_access_token, decode_token
from pymongo.errors import DuplicateKeyError

from meteo_api.app import create_app
from meteo_api.app.config import TestingConfig
from meteo_api.app.services.auth import auth_service
from meteo_api.app.services.errors import InvalidCredentialsError, NotFoundError, ValidationError
from meteo_api.app.services.stations import station_service


def _bearer(token: str):
    return {"Authorization": f"Bearer {token}"}


# Login endpoint

def test_login_returns_token_for_provisioned_admin(client, admin_user) -> None:
    response = client.post("/auth/login", json={"username": "admin", "password": "admin123"})
    body = response.get_json()
    assert response.status_code == 200
    assert isinstance(body["token"], str) and body["token"]
    assert body["userId"] == str(admin_user["_id"])


def test_login_wrong_password(client, admin_user) -> None:
    response = client.post("/auth/login", json={"username": "admin", "password": "nope"})
    assert response.status_code == 401
    assert response.get_json() == {"error": "Invalid credentials"}


def test_login_unknown_user_matches_wrong_password(client, admin_user) -> None:
    unknown = client.post("/auth/login", json={"username": "ghost", "password": "admin123"})
    wrong = client.post("/auth/login", json={"username": "admin", "password": "bad"})
    assert unknown.status_code == wrong.status_code == 401
    assert unknown.get_json() == wrong.get_json()


@pytest.mark.parametrize("body", [None, {}, {"username": "admin"}, {"password": "admin123"}, ["admin"]])
def test_login_missing_fields_is_unauthorized(client, admin_user, body) -> None:
    response = client.post("/auth/login", json=body)
    assert response.status_code == 401
    assert response.get_json() == {"error": "Invalid credentials"}


def test_login_storage_failure_does_not_leak_details(client, repos, monkeypatch) -> None:
    def boom(_username):
        raise RuntimeError("connection refused at 10.0.0.5")

    monkeypatch.setattr(repos.users, "find_by_username", boom)
    response = client.post("/auth/login", json={"username": "admin", "password": "admin123"})
    assert response.status_code == 500
    assert response.get_json() == {"error": "Internal server error"}


def test_login_token_is_accepted_by_protected_routes(client, admin_user) -> None:
    token = client.post("/auth/login", json={"username": "admin", "password": "admin123"}).get_json()["token"]
    response = client.get("/stations", headers=_bearer(token))
    assert response.status_code == 200
    assert response.get_json() == []


# Token gate

def test_missing_authorization_header(client) -> None:
    response = client.get("/stations")
    assert response.status_code == 401
    assert response.get_json() == {"error": "Access token required"}


@pytest.mark.parametrize("header", ["", "Bearer", "Bearer   "])
def test_header_without_token_segment(client, header) -> None:
    response = client.get("/stations", headers={"Authorization": header})
    assert response.status_code == 401
    assert response.get_json() == {"error": "Access token required"}


def test_garbage_token_is_invalid(client) -> None:
    response = client.get("/stations", headers=_bearer("not-a-jwt"))
    assert response.status_code == 401
    assert response.get_json() == {"error": "Invalid token"}


@pytest.mark.parametrize("scheme", ["Basic", "bearer", "Token"])
def test_wrong_scheme_is_invalid(client, app, admin_user, scheme) -> None:
    with app.app_context():
        token = auth_service.issue_token(admin_user["_id"])
    response = client.get("/stations", headers={"Authorization": f"{scheme} {token}"})
    assert response.status_code == 401
    assert response.get_json() == {"error": "Invalid token"}


def test_expired_token_is_invalid(client, app, admin_user) -> None:
    with app.app_context():
        token = create_access_token(identity=str(admin_user["_id"]), expires_delta=timedelta(seconds=-1))
    response = client.get("/stations", headers=_bearer(token))
    assert response.status_code == 401
    assert response.get_json() == {"error": "Invalid token"}


def test_token_signed_with_other_secret_is_invalid(client, admin_user) -> None:
    class OtherSecretConfig(TestingConfig):
        JWT_SECRET_KEY = "a-completely-different-signing-secret-0987654321"

    other_app = create_app(OtherSecretConfig)
    with other_app.app_context():
        token = auth_service.issue_token(admin_user["_id"])
    response = client.get("/stations", headers=_bearer(token))
    assert response.status_code == 401
    assert response.get_json() == {"error": "Invalid token"}


def test_token_of_deleted_user_is_rejected(client, repos, auth_headers) -> None:
    repos.users.docs.clear()
    response = client.get("/stations", headers=auth_headers)
    assert response.status_code == 401
    assert response.get_json() == {"error": "User not found"}


def test_rejected_request_never_reaches_handler(client, monkeypatch) -> None:
    def fail(*_args, **_kwargs):  # pragma: no cover - must not be called
        raise AssertionError("handler invoked without a valid token")

    monkeypatch.setattr(station_service, "list_stations", fail)
    monkeypatch.setattr(station_service, "delete_station", fail)
    assert client.get("/stations").status_code == 401
    assert client.delete("/stations/abc", headers=_bearer("x.y.z")).status_code == 401


def test_measurements_are_protected_too(client) -> None:
    response = client.get("/measurements")
    assert response.status_code == 401
    assert response.get_json() == {"error": "Access token required"}


def test_preflight_requests_skip_the_gate(client) -> None:
    response = client.open("/stations", method="OPTIONS")
    assert response.status_code == 200
    assert response.headers["Access-Control-Allow-Origin"] == "*"


# Service functions

def test_issue_token_embeds_subject_and_24h_expiry(app, admin_user) -> None:
    with app.app_context():
        token = auth_service.issue_token(admin_user["_id"], "admin")
        claims = decode_token(token)
    assert claims["sub"] == str(admin_user["_id"])
    assert claims["role"] == "admin"
    assert claims["exp"] - claims["iat"] == 24 * 3600


def test_password_hash_is_one_way(app) -> None:
    with app.app_context():
        hashed = auth_service.hash_password("admin123")
    assert hashed != "admin123"
    assert auth_service.check_password("admin123", hashed)
    assert not auth_service.check_password("admin124", hashed)
    assert not auth_service.check_password("admin123", None)
    assert not auth_service.check_password("admin123", "not-a-bcrypt-hash")


def test_authenticate_raises_invalid_credentials(app, admin_user) -> None:
    with app.app_context():
        with pytest.raises(InvalidCredentialsError):
            auth_service.authenticate("admin", "wrong")
        result = auth_service.authenticate("ADMIN", "admin123")
    assert result["userId"] == str(admin_user["_id"])


def test_created_user_stores_only_hash(app, repos) -> None:
    with app.app_context():
        auth_service.create_user("Alice", "s3cret")
    stored = repos.users.docs[0]
    assert stored["username"] == "alice"
    assert stored["role"] == "user"
    assert "password" not in stored
    assert stored["passwordHash"] != "s3cret"
    assert "passwordHash" not in auth_service.serialize_user(stored)


def test_create_user_rejects_duplicates_and_bad_roles(app, admin_user) -> None:
    with app.app_context():
        with pytest.raises(ValidationError):
            auth_service.create_user("admin", "other")
        with pytest.raises(ValidationError) as excinfo:
            auth_service.create_user("bob", "pw", role="superuser")
    assert "role" in excinfo.value.errors


def test_create_user_maps_unique_index_violation(app, repos, monkeypatch) -> None:
    # Concurrent provisioning: the lookup saw no user, the insert hit uq_username
    def duplicate(_user_data):
        raise DuplicateKeyError("E11000 duplicate key error collection: users index: uq_username")

    monkeypatch.setattr(repos.users, "create_user", duplicate)
    with app.app_context():
        with pytest.raises(ValidationError) as excinfo:
            auth_service.create_user("carol", "pw")
    assert excinfo.value.message == "Username already exists"
    assert excinfo.value.errors == {"username": "Username already exists"}


def test_ensure_admin_is_idempotent(app, repos) -> None:
    with app.app_context():
        created, first = auth_service.ensure_admin("admin", "admin123")
        again, second = auth_service.ensure_admin("admin", "different")
    assert created is True and again is False
    assert first["_id"] == second["_id"]
    assert len(repos.users.docs) == 1
    assert repos.users.docs[0]["role"] == "admin"


def test_change_password(app, admin_user) -> None:
    with app.app_context():
        auth_service.change_password("admin", "n3w-pass")
        with pytest.raises(InvalidCredentialsError):
            auth_service.authenticate("admin", "admin123")
        assert auth_service.authenticate("admin", "n3w-pass")["userId"] == str(admin_user["_id"])
        with pytest.raises(NotFoundError):
            auth_service.change_password("nobody", "x")
