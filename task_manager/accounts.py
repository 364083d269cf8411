"""
Account operations shared by the user endpoints.

Each function performs one explicit, ordered step sequence against the
session instead of relying on ORM lifecycle hooks: hashing happens before
the write, token issuance appends and commits, and deleting an account
removes its tasks in the same transaction.
"""

from __future__ import annotations

import logging
from typing import Any

from flask import current_app
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError

from . import db
from .jwt import create_token
from .models import Task, User, UserToken
from .schemas import UserCreate

logger = logging.getLogger(__name__)

LOGIN_ERROR_MESSAGE = "Unable to login!"
DUPLICATE_EMAIL_MESSAGE = "Email is already registered"


class AccountError(Exception):
    """An account operation was refused; ``str(exc)`` is safe to return to clients."""


def _email_taken(email: str, exclude_user_id: int | None = None) -> bool:
    stmt = select(func.count()).select_from(User).where(User.email == email)
    if exclude_user_id is not None:
        stmt = stmt.where(User.id != exclude_user_id)
    return bool(db.session.scalar(stmt))


def _commit_unique() -> None:
    """Commit, translating a unique-email race into :class:`AccountError`."""
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.info("Unique constraint rejected write: %s", exc.orig)
        raise AccountError(DUPLICATE_EMAIL_MESSAGE) from exc


def register_user(data: UserCreate) -> User:
    """
    Persist a new user from validated signup data.

    Raises:
        AccountError: If the email address is already registered.
    """
    if _email_taken(data.email):
        raise AccountError(DUPLICATE_EMAIL_MESSAGE)

    user = User(name=data.name, email=data.email, age=data.age)
    user.set_password(data.password)
    db.session.add(user)
    _commit_unique()
    logger.info("Registered user id=%s", user.id)
    return user


def generate_auth_token(user: User) -> str:
    """Issue a new bearer token, append it to the user's sessions and commit."""
    token = create_token(
        user_id=user.id,
        secret=current_app.config["JWT_SECRET_KEY"],
        expiry_hours=int(current_app.config.get("JWT_EXPIRY_HOURS", 0)),
    )
    user.tokens.append(UserToken(token=token))
    user.touch()
    db.session.commit()
    return token


def find_by_credentials(email: str, password: str) -> User:
    """
    Look up a user by email and verify the password.

    Both an unknown email and a wrong password raise the same error so
    callers cannot tell which one failed.

    Raises:
        AccountError: ``"Unable to login!"``.
    """
    user = db.session.scalar(select(User).where(User.email == email))
    if user is None or not user.check_password(password):
        raise AccountError(LOGIN_ERROR_MESSAGE)
    return user


def revoke_token(user: User, token: str) -> None:
    """Remove one session token; other sessions stay valid."""
    user.tokens = [entry for entry in user.tokens if entry.token != token]
    user.touch()
    db.session.commit()


def revoke_all_tokens(user: User) -> None:
    user.tokens = []
    user.touch()
    db.session.commit()


def update_user(user: User, changes: dict[str, Any]) -> User:
    """
    Apply validated profile changes.

    A new password is re-hashed before the write.

    Raises:
        AccountError: If the new email belongs to another user.
    """
    if "email" in changes and _email_taken(changes["email"], exclude_user_id=user.id):
        raise AccountError(DUPLICATE_EMAIL_MESSAGE)

    for field, value in changes.items():
        if field == "password":
            user.set_password(value)
        else:
            setattr(user, field, value)
    _commit_unique()
    return user


def delete_user(user: User) -> dict[str, Any]:
    """
    Delete *user* together with every task they own.

    Both deletes run in one transaction.

    Returns:
        The serialised user as it was before deletion.
    """
    snapshot = user.to_dict()
    result = db.session.execute(delete(Task).where(Task.owner_id == user.id))
    db.session.delete(user)
    db.session.commit()
    logger.info("Deleted user id=%s and %s owned task(s)", snapshot["id"], result.rowcount)
    return snapshot


def set_avatar(user: User, image: bytes | None) -> None:
    """Store processed avatar bytes, or clear the avatar with ``None``."""
    user.avatar = image
    db.session.commit()
