# Overview: Service-layer operations for session; bearer token issue, validation and revocation.

"""
Session Token Management Service

SECURITY FEATURES:
- Cryptographically secure random tokens (32 bytes)
- Tokens hashed with SHA-256 before storage (fast, one-way)
- Idle timeout (SESSION_IDLE_MINUTES)
- Revocable on logout

Each session id also keys the caller's cart (see CartSessions), so carts
are never shared between logins.
"""

import secrets
import hashlib
from dataclasses import dataclass
from datetime import timedelta
from typing import Callable

from ..extensions import db
from ..models import SessionToken, User
from ..time_utils import utcnow
from .auth_service import find_user
from .persistence_service import PersistenceStore


@dataclass
class SessionContext:
    """Authenticated user plus the session record that carries them."""
    user: User
    session: SessionToken


def generate_token() -> str:
    """Returns 64-character hex string (32 bytes of entropy)."""
    return secrets.token_hex(32)


def hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def create_session(
    user: User,
    user_agent: str | None = None,
    ip_address: str | None = None
) -> tuple[SessionToken, str]:
    """
    Create new session token for user.

    Returns (session_record, plaintext_token).
    Client receives plaintext_token, database stores only the hash.
    """
    plaintext_token = generate_token()
    now = utcnow()

    session = SessionToken(
        user_id=user.id,
        token_hash=hash_token(plaintext_token),
        created_at=now,
        last_used_at=now,
        user_agent=(user_agent or "")[:255] or None,
        ip_address=ip_address,
        is_revoked=False,
    )

    db.session.add(session)
    db.session.commit()

    return session, plaintext_token


def _revoke(session: SessionToken, now, on_revoke) -> None:
    session.is_revoked = True
    session.revoked_at = now
    db.session.commit()
    if on_revoke is not None:
        on_revoke(session)


def validate_session(
    store: PersistenceStore,
    token: str,
    idle_timeout: timedelta = timedelta(hours=2),
    on_revoke: Callable[[SessionToken], None] | None = None,
) -> SessionContext | None:
    """
    Validate session token and return SessionContext if valid.

    Returns None if:
    - Token is unknown or revoked
    - Session has been idle longer than idle_timeout (it is revoked)
    - The user no longer exists in the users collection

    on_revoke(session) runs for a session revoked here, so callers can drop
    per-session state such as its cart.

    Updates last_used_at on successful validation.
    """
    now = utcnow()

    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return None

    if now - session.last_used_at > idle_timeout:
        _revoke(session, now, on_revoke)
        return None

    user = find_user(store, user_id=session.user_id)
    if user is None:
        _revoke(session, now, on_revoke)
        return None

    session.last_used_at = now
    db.session.commit()

    return SessionContext(user=user, session=session)


def revoke_session(token: str) -> SessionToken | None:
    """Revoke session token. Returns the revoked session, or None if not found."""
    session = db.session.query(SessionToken).filter_by(
        token_hash=hash_token(token),
        is_revoked=False
    ).first()

    if not session:
        return None

    session.is_revoked = True
    session.revoked_at = utcnow()
    db.session.commit()
    return session
