"""
Database models for the Task Manager API.

Defines the SQLAlchemy ORM models behind the service:

* :class:`User` -- identity, hashed credentials and optional avatar.
* :class:`UserToken` -- one active session token belonging to a user.
* :class:`Task` -- a work item owned by exactly one user.

Tasks are not mapped as a relationship on ``User``; they are always
fetched with an explicit ``owner_id`` query so that every read is scoped
to the authenticated caller.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from werkzeug.security import check_password_hash, generate_password_hash

from . import db

# Largest value a signed 64-bit INTEGER column holds
MAX_INTEGER = 2**63 - 1


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_utc_iso(value: datetime | None) -> str | None:
    """
    Convert a datetime to a UTC ISO-8601 string.

    SQLite does not store timezone information, so values read back from
    the database may be naive even though they were written in UTC.
    Naive values are assumed to be UTC; aware values are converted.
    """
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    else:
        value = value.astimezone(timezone.utc)
    return value.isoformat()


class User(db.Model):
    """
    Registered account.

    Passwords are never stored in plain text, only a Werkzeug hash.  The
    ``to_dict`` helper omits the hash, the session tokens and the avatar
    bytes so it can be returned directly in API responses.

    Attributes:
        id: Auto-incrementing primary key.
        name: Display name (trimmed, non-empty).
        age: Non-negative age, defaults to 0.
        email: Unique, lower-cased address.  Indexed for login lookups.
        password_hash: Werkzeug-generated hash of the password.
        avatar: Optional PNG bytes produced by the avatar processor.
        tokens: Active session tokens, oldest first.
        created_at: Timestamp of account creation (UTC).
        updated_at: Timestamp of last modification (UTC, auto-updated).
    """

    __tablename__ = "users"

    id: int = db.Column(db.Integer, primary_key=True)
    name: str = db.Column(db.Text, nullable=False)
    age: int = db.Column(db.Integer, nullable=False, default=0)
    email: str = db.Column(db.String(254), unique=True, nullable=False, index=True)
    password_hash: str = db.Column(db.String(256), nullable=False)
    avatar: bytes | None = db.Column(db.LargeBinary, nullable=True)
    created_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    tokens = db.relationship(
        "UserToken",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="UserToken.id",
    )

    def set_password(self, password: str) -> None:
        """Hash and store a plain-text password."""
        self.password_hash = generate_password_hash(password)

    def check_password(self, password: str) -> bool:
        """Verify a plain-text password against the stored hash."""
        return check_password_hash(self.password_hash, password)

    def has_token(self, token: str) -> bool:
        return any(entry.token == token for entry in self.tokens)

    def touch(self) -> None:
        """
        Bump ``updated_at`` explicitly.

        Changes that only touch the ``tokens`` collection do not dirty any
        column on ``users``, so the ``onupdate`` hook would not fire.
        """
        self.updated_at = _utcnow()

    def to_dict(self) -> dict[str, Any]:
        """
        Return the outward-facing representation of the user.

        Returns:
            A dict with ``id``, ``name``, ``email``, ``age`` and the two
            timestamps.  Credentials, tokens and avatar are excluded.
        """
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "age": self.age,
            "created_at": _to_utc_iso(self.created_at),
            "updated_at": _to_utc_iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<User {self.id}: {self.email}>"


class UserToken(db.Model):
    """A bearer token issued to a user and not yet logged out."""

    __tablename__ = "user_tokens"

    id: int = db.Column(db.Integer, primary_key=True)
    user_id: int = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    token: str = db.Column(db.Text, nullable=False)
    created_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    user = db.relationship("User", back_populates="tokens")

    def __repr__(self) -> str:
        return f"<UserToken {self.id} for user {self.user_id}>"


class Task(db.Model):
    """
    Task owned by a single user.

    Attributes:
        id: Auto-incrementing primary key.
        description: What needs doing (trimmed, at least 5 characters).
        completed: Whether the task is done, defaults to ``False``.
        owner_id: Primary key of the owning user.  Always taken from the
            authenticated identity, never from the request body.
        created_at: Timestamp of task creation (UTC).
        updated_at: Timestamp of last modification (UTC, auto-updated).
    """

    __tablename__ = "tasks"

    id: int = db.Column(db.Integer, primary_key=True)
    description: str = db.Column(db.Text, nullable=False)
    completed: bool = db.Column(db.Boolean, nullable=False, default=False)
    owner_id: int = db.Column(
        db.Integer,
        db.ForeignKey("users.id"),
        nullable=False,
        index=True,
    )
    created_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    updated_at: datetime = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
        onupdate=_utcnow,
    )

    def to_dict(self) -> dict[str, Any]:
        """Serialise the task to a JSON-safe dictionary."""
        return {
            "id": self.id,
            "description": self.description,
            "completed": self.completed,
            "owner": self.owner_id,
            "created_at": _to_utc_iso(self.created_at),
            "updated_at": _to_utc_iso(self.updated_at),
        }

    def __repr__(self) -> str:
        return f"<Task {self.id}: {self.description[:30]}>"
