from __future__ import annotations

import uuid
from typing import Any

import bcrypt

# (username, password, role) for the demo accounts created on import
_DEMO_ACCOUNTS = [
    ("user", "user123", "user"),
    ("admin", "admin123", "admin"),
]

_users: dict[str, dict[str, Any]] = {}


def _hash_password(plain: str) -> str:
    return bcrypt.hashpw(plain.encode(), bcrypt.gensalt()).decode()


def _verify_password(plain: str, hashed: str) -> bool:
    return bcrypt.checkpw(plain.encode(), hashed.encode())


def register_user(username: str, password: str, role: str = "user") -> dict[str, Any]:
    """Create or replace an account. Each account gets a fresh opaque ``uid``."""
    _users[username] = {
        "uid": uuid.uuid4().hex,
        "password_hash": _hash_password(password),
        "role": role,
    }
    return _public(username, _users[username])


def _public(username: str, record: dict[str, Any]) -> dict[str, Any]:
    return {"uid": record["uid"], "username": username, "role": record["role"]}


def authenticate(username: str, password: str) -> dict[str, Any] | None:
    """Verify credentials. Returns ``{uid, username, role}`` or ``None``."""
    record = _users.get(username)
    if record and _verify_password(password, record["password_hash"]):
        return _public(username, record)
    return None


for _username, _password, _role in _DEMO_ACCOUNTS:
    register_user(_username, _password, _role)
