# Overview: Service-layer operations for auth; password hashing and user lookup.

"""
Authentication against the users collection.

Users are reference data held in the snapshot store. This module reads them;
only the CLI (set_password) writes them back.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Session tokens managed separately (see session_service.py)
"""

import re

import bcrypt

from ..defaults import DEFAULT_USERS
from ..models import ROLES, User
from .persistence_service import USERS, PersistenceStore


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")


def hash_password(password: str, rounds: int = 12) -> str:
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns False for malformed or empty hashes.
    """
    if not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def default_user_records(rounds: int = 12) -> list[dict]:
    """Seed users with hashed credentials."""
    return [
        User(
            id=u["id"],
            username=u["username"],
            role=u["role"],
            password_hash=hash_password(u["password"], rounds=rounds),
        ).to_dict(include_secret=True)
        for u in DEFAULT_USERS
    ]


def load_users(store: PersistenceStore) -> list[User]:
    return [User.from_dict(r) for r in store.load(USERS) or []]


def find_user(store: PersistenceStore, *, user_id: str | None = None, username: str | None = None) -> User | None:
    for user in load_users(store):
        if user_id is not None and user.id == user_id:
            return user
        if username is not None and user.username == username:
            return user
    return None


def authenticate(store: PersistenceStore, username: str, password: str) -> User | None:
    """Return the user when the credentials match, else None."""
    user = find_user(store, username=username)
    if user is None or user.role not in ROLES:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def set_password(store: PersistenceStore, username: str, password: str, rounds: int = 12) -> User:
    """
    Replace a user's password hash and persist the users collection.

    Raises ValueError if the user does not exist and
    PasswordValidationError if the password is weak.
    """
    validate_password_strength(password)
    users = load_users(store)
    target = next((u for u in users if u.username == username), None)
    if target is None:
        raise ValueError("User not found")
    target.password_hash = hash_password(password, rounds=rounds)
    store.save(USERS, [u.to_dict(include_secret=True) for u in users])
    return target
