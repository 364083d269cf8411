"""
Task Manager application factory.

Provides the ``create_app`` factory that assembles the task-management
REST backend: user signup/login with bearer tokens, per-user task CRUD,
avatar uploads and transactional email notifications.

The application registers three blueprints:
  * **users_bp** -- account, session and avatar endpoints under ``/users``.
  * **tasks_bp** -- task CRUD endpoints under ``/tasks``.
  * **health_bp** -- public liveness probe at ``/health``.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from flask import Flask, Response, jsonify
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .config import DEV_JWT_SECRET, ProductionConfig, get_config

db = SQLAlchemy()

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def _ensure_sqlite_db_parent_exists(database_uri: str) -> None:
    """Create parent directories for file-based SQLite URIs when missing."""
    sqlite_prefix = "sqlite:///"
    if not database_uri.startswith(sqlite_prefix):
        return

    sqlite_path = database_uri[len(sqlite_prefix) :].split("?", 1)[0]
    if not sqlite_path or sqlite_path == ":memory:":
        return

    Path(sqlite_path).parent.mkdir(parents=True, exist_ok=True)


def _register_error_handlers(app: Flask) -> None:
    """Attach JSON error handlers shared by every blueprint."""

    @app.errorhandler(SQLAlchemyError)
    def database_error(error: SQLAlchemyError) -> tuple[Response, int]:
        # Leave the scoped session usable for the next request
        db.session.rollback()
        logger.error("Database error: %s", error)
        return jsonify({"error": "Internal server error"}), 500

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException) -> tuple[Response, int]:
        return jsonify({"error": error.description}), error.code or 500

    @app.errorhandler(500)
    def internal_error(error: Exception) -> tuple[Response, int]:
        logger.error("Internal server error: %s", error)
        return jsonify({"error": "Internal server error"}), 500


def create_app(config_name: str | None = None) -> Flask:
    """
    Create and configure the Task Manager application.

    Args:
        config_name: Optional configuration environment name
            (``"development"``, ``"testing"``, ``"production"``).  When
            *None*, the value is read from the ``FLASK_ENV`` environment
            variable, defaulting to ``"development"``.

    Returns:
        A fully configured Flask application with tables created.

    Raises:
        RuntimeError: If the production profile is selected while the
            token-signing secret is still the development placeholder.
    """
    app = Flask(__name__, instance_relative_config=True)
    config_class = get_config(config_name)
    app.config.from_object(config_class)

    if issubclass(config_class, ProductionConfig) and app.config["JWT_SECRET_KEY"] == DEV_JWT_SECRET:
        raise RuntimeError("JWT_SECRET_KEY must be set for production deployments.")

    logger.info("Creating task manager app with config: %s", config_class.__name__)

    os.makedirs(app.instance_path, exist_ok=True)
    _ensure_sqlite_db_parent_exists(app.config.get("SQLALCHEMY_DATABASE_URI", ""))

    db.init_app(app)

    from .routes.health import health_bp
    from .routes.tasks import tasks_bp
    from .routes.users import users_bp

    app.register_blueprint(health_bp)
    app.register_blueprint(users_bp, url_prefix="/users")
    app.register_blueprint(tasks_bp, url_prefix="/tasks")

    _register_error_handlers(app)

    with app.app_context():
        db.create_all()
        logger.info("Database tables created")

    return app
