"""
Bearer token creation and verification.

Tokens are HS256-signed JSON Web Tokens carrying the user's primary key.
A token is only honoured while it is also present in the user's stored
token collection, so logging out revokes it even before ``exp``.

Token structure (claims):
    - ``user_id`` -- integer primary key of the authenticated user.
    - ``jti``     -- random identifier; keeps two tokens issued in the
      same second distinct.
    - ``iat``     -- issued-at timestamp (UTC epoch seconds).
    - ``exp``     -- expiration timestamp, omitted when expiry is disabled.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt

ALGORITHM = "HS256"
REQUIRED_TOKEN_CLAIMS = ["user_id", "jti", "iat"]


def create_token(user_id: int, secret: str, expiry_hours: int = 0) -> str:
    """
    Create an HS256-signed JWT for *user_id*.

    Args:
        user_id: Primary key of the user.  Must be a positive integer.
        secret: HMAC signing secret.
        expiry_hours: Hours until the token expires.  ``0`` or less issues
            a token without an ``exp`` claim.

    Returns:
        A compact JWS string suitable for an ``Authorization: Bearer``
        header.

    Raises:
        ValueError: If *user_id* is not positive.
    """
    if int(user_id) <= 0:
        raise ValueError("user_id must be a positive integer")

    now = datetime.now(timezone.utc)
    payload: dict[str, Any] = {
        "user_id": int(user_id),
        "jti": uuid.uuid4().hex,
        "iat": int(now.timestamp()),
    }
    if expiry_hours > 0:
        payload["exp"] = int((now + timedelta(hours=int(expiry_hours))).timestamp())
    return jwt.encode(payload, secret, algorithm=ALGORITHM)


def decode_token(token: str, secret: str, leeway: int = 0) -> dict[str, Any]:
    """
    Verify *token* and return its payload.

    Checks the signature, ``exp`` when present, and that ``user_id`` is a
    positive integer.

    Raises:
        jwt.InvalidTokenError: If the token is malformed, tampered with,
            expired, signed with another algorithm, or carries a bad
            ``user_id`` claim.
    """
    payload = jwt.decode(
        token,
        secret,
        algorithms=[ALGORITHM],
        options={"require": REQUIRED_TOKEN_CLAIMS},
        leeway=leeway,
    )
    user_id = payload.get("user_id")
    # bool is an int subclass; reject it explicitly
    if isinstance(user_id, bool) or not isinstance(user_id, int) or user_id <= 0:
        raise jwt.InvalidTokenError("Invalid user_id claim")
    return payload
