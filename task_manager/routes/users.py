"""
REST endpoints for accounts, sessions and avatars.

Endpoints:
    POST   /users                 - Sign up and receive a token (public)
    POST   /users/login           - Log in and receive a token (public)
    POST   /users/logout          - Revoke the token used for this request
    POST   /users/logoutAll       - Revoke every token of the caller
    GET    /users/me              - Read own profile
    PATCH  /users/me              - Update own profile
    DELETE /users/me              - Delete own account and all its tasks
    POST   /users/me/avatar       - Upload an avatar (multipart ``avatar``)
    DELETE /users/me/avatar       - Remove the avatar
    GET    /users/<id>/avatar     - Fetch a user's avatar as PNG (public)
"""

from __future__ import annotations

import logging
from typing import Any

from flask import Blueprint, Response, current_app, g, jsonify, request
from pydantic import ValidationError

from .. import accounts, db, emails
from ..auth import require_auth
from ..avatars import AvatarError, process_avatar, read_upload
from ..models import MAX_INTEGER, User
from ..schemas import LoginRequest, UserCreate, UserUpdate, explicit_fields, format_validation_error

logger = logging.getLogger(__name__)

users_bp = Blueprint("users", __name__)


# =====================================================================
# Helper Functions
# =====================================================================


def _json_error(message: str, status_code: int) -> tuple[Response, int]:
    return jsonify({"error": message}), status_code


def _json_body(default: dict[str, Any] | None = None) -> dict[str, Any] | None:
    """Return the request body when it is a JSON object, else *default*."""
    data = request.get_json(silent=True)
    if data is None:
        return default
    return data if isinstance(data, dict) else None


def _empty_ok() -> tuple[str, int]:
    return "", 200


# =====================================================================
# Account Endpoints
# =====================================================================


@users_bp.route("", methods=["POST"])
def create_user() -> tuple[Response, int]:
    """
    Sign up a new user.

    Validates the body, stores the user with a hashed password, sends a
    best-effort welcome mail and issues the first session token.

    Returns:
        201 with ``{"user": ..., "token": ...}``.
        400 on validation failure or a duplicate email.
    """
    data = _json_body()
    if data is None:
        return _json_error("Request body must be a JSON object", 400)

    try:
        payload = UserCreate.model_validate(data)
    except ValidationError as exc:
        return _json_error(format_validation_error(exc), 400)

    try:
        user = accounts.register_user(payload)
    except accounts.AccountError as exc:
        return _json_error(str(exc), 400)

    emails.send_welcome_email(user.email, user.name)
    token = accounts.generate_auth_token(user)
    return jsonify({"user": user.to_dict(), "token": token}), 201


@users_bp.route("/login", methods=["POST"])
def login() -> tuple[Response, int]:
    """
    Authenticate with email and password.

    Returns:
        200 with ``{"user": ..., "token": ...}``.
        400 ``"Unable to login!"`` for any credential problem.
    """
    data = _json_body()
    if data is None:
        return _json_error(accounts.LOGIN_ERROR_MESSAGE, 400)

    try:
        credentials = LoginRequest.model_validate(data)
        user = accounts.find_by_credentials(credentials.email, credentials.password)
    except (ValidationError, accounts.AccountError):
        return _json_error(accounts.LOGIN_ERROR_MESSAGE, 400)

    token = accounts.generate_auth_token(user)
    logger.info("POST /users/login - user_id=%s", user.id)
    return jsonify({"user": user.to_dict(), "token": token}), 200


@users_bp.route("/logout", methods=["POST"])
@require_auth
def logout() -> tuple[str, int]:
    """Revoke only the token that authenticated this request."""
    accounts.revoke_token(g.user, g.token)
    logger.info("POST /users/logout - user_id=%s", g.user.id)
    return _empty_ok()


@users_bp.route("/logoutAll", methods=["POST"])
@require_auth
def logout_all() -> tuple[str, int]:
    """Revoke every session of the caller."""
    accounts.revoke_all_tokens(g.user)
    logger.info("POST /users/logoutAll - user_id=%s", g.user.id)
    return _empty_ok()


@users_bp.route("/me", methods=["GET"])
@require_auth
def read_profile() -> tuple[Response, int]:
    return jsonify(g.user.to_dict()), 200


@users_bp.route("/me", methods=["PATCH"])
@require_auth
def update_profile() -> tuple[Response, int]:
    """
    Update name, age, email or password.

    Any other key rejects the whole request and nothing is written.

    Returns:
        200 with the updated user, 400 on unknown keys or invalid values.
    """
    data = _json_body(default={})
    if data is None:
        return _json_error("Request body must be a JSON object", 400)

    try:
        changes = explicit_fields(UserUpdate.model_validate(data))
    except ValidationError as exc:
        return _json_error(format_validation_error(exc), 400)
    except ValueError as exc:
        return _json_error(str(exc), 400)

    try:
        user = accounts.update_user(g.user, changes)
    except accounts.AccountError as exc:
        return _json_error(str(exc), 400)

    logger.info("PATCH /users/me - user_id=%s fields=%s", user.id, sorted(changes))
    return jsonify(user.to_dict()), 200


@users_bp.route("/me", methods=["DELETE"])
@require_auth
def delete_profile() -> tuple[Response, int]:
    """Delete the caller's account, cascading to their tasks."""
    email, name = g.user.email, g.user.name
    deleted = accounts.delete_user(g.user)
    emails.send_cancellation_email(email, name)
    return jsonify(deleted), 200


# =====================================================================
# Avatar Endpoints
# =====================================================================


@users_bp.route("/me/avatar", methods=["POST"])
@require_auth
def upload_avatar() -> tuple[str, int]:
    """
    Store a new avatar for the caller.

    The image is validated, resized and re-encoded to PNG; any problem
    with the upload is raised as :class:`AvatarError` and answered by
    :func:`avatar_error`.
    """
    raw = read_upload(
        request.files.get("avatar"),
        max_bytes=current_app.config["AVATAR_MAX_BYTES"],
        extensions=tuple(current_app.config["AVATAR_EXTENSIONS"]),
    )
    image = process_avatar(raw, tuple(current_app.config["AVATAR_SIZE"]))
    accounts.set_avatar(g.user, image)
    logger.info("POST /users/me/avatar - user_id=%s bytes=%s", g.user.id, len(image))
    return _empty_ok()


@users_bp.route("/me/avatar", methods=["DELETE"])
@require_auth
def delete_avatar() -> tuple[str, int]:
    accounts.set_avatar(g.user, None)
    return _empty_ok()


@users_bp.route("/<int:user_id>/avatar", methods=["GET"])
def read_avatar(user_id: int) -> Response | tuple[Response, int]:
    """Serve a user's avatar as ``image/png``, or 404 when there is none."""
    user = db.session.get(User, user_id) if user_id <= MAX_INTEGER else None
    if user is None or not user.avatar:
        return _json_error("Avatar not found", 404)
    return Response(user.avatar, status=200, mimetype="image/png")


@users_bp.errorhandler(AvatarError)
def avatar_error(error: AvatarError) -> tuple[Response, int]:
    """Return upload problems as 400 with the rejection message."""
    return _json_error(str(error), 400)
