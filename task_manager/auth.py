"""
Bearer-token authentication for protected endpoints.

The ``require_auth`` decorator is the only gate in front of protected
routes.  It verifies the token, resolves it to a stored session and puts
the resolved :class:`~task_manager.models.User` and the raw token on
``flask.g`` for the duration of the request.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from functools import wraps

import jwt
from flask import Response, current_app, g, jsonify, request
from sqlalchemy import select

from . import db
from .jwt import decode_token
from .models import User, UserToken

logger = logging.getLogger(__name__)

AUTH_ERROR_MESSAGE = "Please authenticate."


def extract_bearer_token() -> str | None:
    """Return the token from ``Authorization: Bearer <token>``, or ``None``."""
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header[7:].strip()
    return token or None


def resolve_session(token: str) -> User | None:
    """
    Map a raw bearer token to the user holding it.

    The token must verify against ``JWT_SECRET_KEY`` *and* still be in the
    user's token collection.

    Returns:
        The owning user, or ``None`` when the token is invalid, expired,
        revoked, or its user no longer exists.
    """
    try:
        payload = decode_token(
            token,
            current_app.config["JWT_SECRET_KEY"],
            leeway=int(current_app.config.get("JWT_CLOCK_SKEW_SECONDS", 30)),
        )
    except jwt.InvalidTokenError as exc:
        logger.warning("Rejected bearer token: %s", exc)
        return None

    return db.session.scalar(
        select(User)
        .join(UserToken, UserToken.user_id == User.id)
        .where(User.id == payload["user_id"], UserToken.token == token)
    )


def require_auth(view_func: Callable[..., tuple[Response, int] | Response]):
    """
    Decorator that enforces bearer-token authentication.

    On success ``g.user`` holds the authenticated user and ``g.token`` the
    exact token string used for this request.  Any failure short-circuits
    with ``401 {"error": "Please authenticate."}`` before the view runs.
    """

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        token = extract_bearer_token()
        if token is None:
            return jsonify({"error": AUTH_ERROR_MESSAGE}), 401

        user = resolve_session(token)
        if user is None:
            logger.warning("No active session for presented token on %s", request.path)
            return jsonify({"error": AUTH_ERROR_MESSAGE}), 401

        g.user = user
        g.token = token
        return view_func(*args, **kwargs)

    return wrapper
