"""
REST endpoints for tasks.

Every endpoint requires a bearer token, and every query is filtered by
``owner_id`` of the authenticated user, so another user's task behaves
exactly like a task that does not exist.

Endpoints:
    POST   /tasks          - Create a task
    GET    /tasks          - List own tasks (filter, sort, paginate)
    GET    /tasks/<id>     - Read one task
    PATCH  /tasks/<id>     - Update description and/or completed
    DELETE /tasks/<id>     - Delete one task

Listing query string:
    completed=true|false    ``"true"`` keeps completed tasks, anything
                            else keeps open ones
    sortBy=<field>:<dir>    ``dir`` is ``desc`` or ascending otherwise
    limit=<n>, skip=<n>     unparseable values are ignored
"""

from __future__ import annotations

import logging
import re

from flask import Blueprint, Response, g, jsonify, request
from pydantic import ValidationError
from sqlalchemy import Select, select

from .. import db
from ..auth import require_auth
from ..models import MAX_INTEGER, Task
from ..schemas import TaskCreate, TaskUpdate, explicit_fields, format_validation_error

logger = logging.getLogger(__name__)

tasks_bp = Blueprint("tasks", __name__)

_LEADING_INT = re.compile(r"\s*[+-]?\d+")

SORTABLE_FIELDS = {
    "description": Task.description,
    "completed": Task.completed,
    "created_at": Task.created_at,
    "createdAt": Task.created_at,
    "updated_at": Task.updated_at,
    "updatedAt": Task.updated_at,
}


# =====================================================================
# Helper Functions
# =====================================================================


def _json_error(message: str, status_code: int) -> tuple[Response, int]:
    return jsonify({"error": message}), status_code


def _own_tasks() -> Select:
    """Base ``select`` restricted to the authenticated user's tasks."""
    return select(Task).where(Task.owner_id == g.user.id)


def _own_task(task_id: int) -> Task | None:
    if task_id > MAX_INTEGER:
        return None
    return db.session.scalar(_own_tasks().where(Task.id == task_id))


def _parse_int(raw: str | None) -> int | None:
    """Read the leading integer of *raw* (``"1.5"`` is 1), capped to the column range."""
    if raw is None:
        return None
    match = _LEADING_INT.match(raw)
    if match is None:
        return None
    return min(int(match.group()), MAX_INTEGER)


def build_task_query(args) -> Select:
    """
    Translate listing query-string arguments into a scoped ``select``.

    Args:
        args: The request's query arguments (``request.args``).

    Returns:
        A statement filtered to the caller's tasks, narrowed by
        ``completed``, ordered by ``sortBy`` and paginated by
        ``limit``/``skip``.
    """
    stmt = _own_tasks()

    completed = args.get("completed")
    if completed:
        stmt = stmt.where(Task.completed == (completed == "true"))

    sort_by = args.get("sortBy")
    if sort_by:
        field, _, direction = sort_by.partition(":")
        column = SORTABLE_FIELDS.get(field)
        if column is not None:
            stmt = stmt.order_by(column.desc() if direction == "desc" else column.asc())
    # Stable tiebreaker so pagination never repeats or drops rows
    stmt = stmt.order_by(Task.id.asc())

    limit = _parse_int(args.get("limit"))
    if limit is not None and limit > 0:
        stmt = stmt.limit(limit)

    skip = _parse_int(args.get("skip"))
    if skip is not None and skip > 0:
        stmt = stmt.offset(skip)

    return stmt


# =====================================================================
# API Endpoints
# =====================================================================


@tasks_bp.route("", methods=["POST"])
@require_auth
def create_task() -> tuple[Response, int]:
    """
    Create a task owned by the caller.

    Unknown and protected keys in the body are ignored; ``owner`` always
    comes from the bearer token.

    Returns:
        201 with the task, 400 on validation failure.
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return _json_error("Request body must be a JSON object", 400)

    try:
        payload = TaskCreate.model_validate(data)
    except ValidationError as exc:
        return _json_error(format_validation_error(exc), 400)

    task = Task(description=payload.description, completed=payload.completed, owner_id=g.user.id)
    db.session.add(task)
    db.session.commit()
    logger.info("POST /tasks - user_id=%s task_id=%s", g.user.id, task.id)
    return jsonify(task.to_dict()), 201


@tasks_bp.route("", methods=["GET"])
@require_auth
def list_tasks() -> tuple[Response, int]:
    """Return the caller's tasks as a JSON array."""
    tasks = db.session.scalars(build_task_query(request.args)).all()
    return jsonify([task.to_dict() for task in tasks]), 200


@tasks_bp.route("/<int:task_id>", methods=["GET"])
@require_auth
def get_task(task_id: int) -> tuple[Response, int]:
    task = _own_task(task_id)
    if task is None:
        return _json_error("Task not found", 404)
    return jsonify(task.to_dict()), 200


@tasks_bp.route("/<int:task_id>", methods=["PATCH"])
@require_auth
def update_task(task_id: int) -> tuple[Response, int]:
    """
    Update ``description`` and/or ``completed``.

    Any other key rejects the request before the task is looked up.  A
    missing or foreign task answers 400, not 404.

    Returns:
        200 with the updated task, 400 otherwise.
    """
    data = request.get_json(silent=True)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        return _json_error("Request body must be a JSON object", 400)

    try:
        changes = explicit_fields(TaskUpdate.model_validate(data))
    except ValidationError as exc:
        return _json_error(format_validation_error(exc), 400)
    except ValueError as exc:
        return _json_error(str(exc), 400)

    task = _own_task(task_id)
    if task is None:
        return _json_error("Task not found", 400)

    for field, value in changes.items():
        setattr(task, field, value)
    db.session.commit()
    logger.info("PATCH /tasks/%s - user_id=%s fields=%s", task_id, g.user.id, sorted(changes))
    return jsonify(task.to_dict()), 200


@tasks_bp.route("/<int:task_id>", methods=["DELETE"])
@require_auth
def delete_task(task_id: int) -> tuple[Response, int]:
    """Delete one of the caller's tasks and return it."""
    task = _own_task(task_id)
    if task is None:
        return _json_error("Task not found", 404)

    deleted = task.to_dict()
    db.session.delete(task)
    db.session.commit()
    logger.info("DELETE /tasks/%s - user_id=%s", task_id, g.user.id)
    return jsonify(deleted), 200
