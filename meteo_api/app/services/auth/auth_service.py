"""Authentication service: password hashing, login and bearer token issuance.

Tokens are stateless JWTs signed with ``JWT_SECRET_KEY``. Nothing is stored
server side, so a token stays valid until it expires; the only per-request
lookup is resolving the token subject back to a user document.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Tuple

import bcrypt
from flask import current_app
from flask_jwt_extended import create_access_token
from pymongo.errors import DuplicateKeyError

from meteo_api.app.repositories import users_repo
from meteo_api.app.services.errors import InvalidCredentialsError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("meteo_api.app.audit.auth")

VALID_ROLES = {"user", "admin"}
DUPLICATE_USERNAME_MESSAGE = "Username already exists"


def _duplicate_username_error() -> ValidationError:
    return ValidationError(DUPLICATE_USERNAME_MESSAGE, {'username': DUPLICATE_USERNAME_MESSAGE})


def hash_password(password: str) -> str:
    rounds = current_app.config.get('BCRYPT_ROUNDS', 10)
    return bcrypt.hashpw(password.encode('utf-8'), bcrypt.gensalt(rounds)).decode('utf-8')


def check_password(password: str, stored_hash: Optional[str]) -> bool:
    if not stored_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), stored_hash.encode('utf-8'))
    except ValueError:
        # Malformed hash in storage
        logger.warning("Stored password hash could not be parsed")
        return False


def issue_token(user_id: Any, role: Optional[str] = None) -> str:
    """Sign a bearer token for an already authenticated user.

    The validity window comes from ``JWT_ACCESS_TOKEN_EXPIRES``.
    """
    claims = {"role": role} if role else None
    return create_access_token(identity=str(user_id), additional_claims=claims)


def authenticate(username: Any, password: Any) -> Dict[str, str]:
    """Verify a username/password pair and return ``{token, userId}``.

    Raises:
        InvalidCredentialsError: unknown user or wrong password alike
    """
    if not isinstance(username, str) or not isinstance(password, str) or not username.strip():
        audit_logger.info("Login rejected: missing username or password")
        raise InvalidCredentialsError()

    user = users_repo.find_by_username(username.strip())
    if not user or not check_password(password, user.get('passwordHash')):
        audit_logger.info("Login failed", extra={"username": username.strip().lower()})
        raise InvalidCredentialsError()

    user_id = str(user['_id'])
    token = issue_token(user_id, user.get('role', 'user'))
    audit_logger.info("Login succeeded", extra={"user_id": user_id})
    return {"token": token, "userId": user_id}


def load_user(jwt_payload: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    """Resolve the subject of a verified token to a user document."""
    return users_repo.find_by_id(jwt_payload.get('sub'))


def serialize_user(user_doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Sanitize user document for response."""
    if not user_doc:
        return None
    created = user_doc.get("createdAt")
    return {
        "id": str(user_doc.get("_id")) if user_doc.get("_id") else None,
        "username": user_doc.get("username"),
        "role": user_doc.get("role", "user"),
        "createdAt": created.isoformat() if isinstance(created, datetime) else created,
    }


def create_user(username: str, password: str, role: str = "user") -> Dict[str, Any]:
    """Create a user with a hashed password. Used by provisioning scripts."""
    username = (username or '').strip()
    errors: Dict[str, str] = {}
    if not username:
        errors['username'] = 'username is required'
    if not password:
        errors['password'] = 'password is required'
    if role not in VALID_ROLES:
        errors['role'] = f"role must be one of {sorted(VALID_ROLES)}"
    if errors:
        raise ValidationError("User validation failed", errors)

    if users_repo.find_by_username(username):
        raise _duplicate_username_error()

    user_doc = {
        "username": username,
        "passwordHash": hash_password(password),
        "role": role,
    }
    try:
        user_doc["_id"] = users_repo.create_user(user_doc)
    except DuplicateKeyError:
        raise _duplicate_username_error()
    audit_logger.info("User created", extra={"user_id": str(user_doc["_id"]), "role": role})
    return user_doc


def ensure_admin(username: str, password: str) -> Tuple[bool, Dict[str, Any]]:
    """Create the administrator unless a user with that name already exists.

    Returns:
        (created, user_doc)
    """
    existing = users_repo.find_by_username(username)
    if existing:
        logger.info("Admin user already exists")
        return False, existing
    return True, create_user(username, password, role="admin")


def change_password(username: str, new_password: str) -> Dict[str, Any]:
    """Replace the password hash of an existing user."""
    if not new_password:
        raise ValidationError("Password is required", {'password': 'password is required'})
    user = users_repo.find_by_username(username)
    if not user:
        raise NotFoundError("User not found")
    users_repo.update_password_hash(user['_id'], hash_password(new_password))
    user['updatedAt'] = datetime.now(timezone.utc)
    audit_logger.info("Password changed", extra={"user_id": str(user['_id'])})
    return user
