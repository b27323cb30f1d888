from __future__ import annotations

from ..extensions import db
from ..time_utils import to_utc_z


class CollectionSnapshot(db.Model):
    """
    One durable snapshot per named collection (products, sales, users).

    Rows are overwritten whole; there is no per-record history.
    """
    __tablename__ = "collection_snapshots"

    key = db.Column(db.String(32), primary_key=True)
    payload = db.Column(db.JSON, nullable=False, default=list)
    record_count = db.Column(db.Integer, nullable=False, default=0)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "key": self.key,
            "record_count": self.record_count,
            "updated_at": to_utc_z(self.updated_at),
        }


class SessionToken(db.Model):
    """
    Login session for a user from the users collection.

    SECURITY NOTES:
    - Tokens stored hashed (SHA-256); plaintext is only returned at login
    - Idle timeout enforced on every validation
    - Revoked on logout
    """
    __tablename__ = "session_tokens"
    __table_args__ = (
        db.Index("ix_session_tokens_user_active", "user_id", "is_revoked"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.String(64), nullable=False, index=True)

    token_hash = db.Column(db.String(255), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "is_revoked": self.is_revoked,
        }
