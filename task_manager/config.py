"""
Configuration classes for the Task Manager API.

Centralises every environment-dependent setting (database URI, token
signing secret, mail transport, avatar limits) into a hierarchy of
configuration classes.  The base ``Config`` class holds development
defaults and subclasses override only what differs per environment.
Every value can be overridden through an environment variable.
"""

from __future__ import annotations

import os
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parent.parent

DEV_JWT_SECRET = "task-manager-dev-jwt-secret-change-in-production"


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean flag such as ``MAIL_USE_TLS=false`` from the environment."""
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


class Config:
    """
    Base configuration with development-safe defaults.

    Attributes:
        SECRET_KEY: Flask session signing key.
        SQLALCHEMY_DATABASE_URI: Database connection string (default: local
            SQLite file under ``instance/``).
        JWT_SECRET_KEY: HMAC secret used to sign and verify bearer tokens.
        JWT_EXPIRY_HOURS: Lifetime of an issued token.  ``0`` issues tokens
            without an ``exp`` claim; they stay valid until logout.
        JWT_CLOCK_SKEW_SECONDS: Allowed clock drift when checking ``exp``.
        MAIL_*: SMTP transport settings for transactional email.
        AVATAR_MAX_BYTES: Largest accepted avatar upload.
        AVATAR_SIZE: Width and height every stored avatar is resized to.
    """

    SECRET_KEY: str = os.environ.get(
        "SECRET_KEY", "task-manager-dev-secret-change-in-production"
    )
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'task_manager.db'}",
    )

    JWT_SECRET_KEY: str = os.environ.get("JWT_SECRET_KEY", DEV_JWT_SECRET)
    JWT_EXPIRY_HOURS: int = int(os.environ.get("JWT_EXPIRY_HOURS", "168"))
    JWT_CLOCK_SKEW_SECONDS: int = int(os.environ.get("JWT_CLOCK_SKEW_SECONDS", "30"))

    MAIL_SERVER: str = os.environ.get("MAIL_SERVER", "smtp.gmail.com")
    MAIL_PORT: int = int(os.environ.get("MAIL_PORT", "587"))
    MAIL_USERNAME: str = os.environ.get("MAIL_USERNAME", "")
    MAIL_PASSWORD: str = os.environ.get("MAIL_PASSWORD", "")
    MAIL_USE_TLS: bool = _env_flag("MAIL_USE_TLS", True)
    MAIL_SENDER: str = os.environ.get(
        "MAIL_SENDER", "Task Manager <no-reply@task-manager.local>"
    )
    MAIL_TIMEOUT_SECONDS: int = int(os.environ.get("MAIL_TIMEOUT_SECONDS", "10"))
    MAIL_SUPPRESS_SEND: bool = _env_flag("MAIL_SUPPRESS_SEND", False)
    # Deliver from a daemon thread so the request never waits on SMTP
    MAIL_BACKGROUND: bool = _env_flag("MAIL_BACKGROUND", True)

    AVATAR_MAX_BYTES: int = 1_000_000
    AVATAR_SIZE: tuple[int, int] = (250, 250)
    AVATAR_EXTENSIONS: tuple[str, ...] = ("jpg", "jpeg", "png")


class DevelopmentConfig(Config):
    """Local development: debug on, testing off."""

    DEBUG: bool = True
    TESTING: bool = False


class TestingConfig(Config):
    """
    Configuration for the automated test suite.

    Uses an in-memory SQLite database so test runs never touch
    development data, a fixed signing secret, and synchronous,
    suppressed mail delivery.
    """

    DEBUG: bool = True
    TESTING: bool = True
    SQLALCHEMY_DATABASE_URI: str = os.environ.get("TEST_DATABASE_URL", "sqlite://")
    SQLALCHEMY_ENGINE_OPTIONS: dict = {"pool_pre_ping": True}
    JWT_SECRET_KEY: str = os.environ.get(
        "TEST_JWT_SECRET_KEY", "test-jwt-secret-key-for-local-tests-123456"
    )
    JWT_EXPIRY_HOURS: int = int(os.environ.get("TEST_JWT_EXPIRY_HOURS", "1"))
    MAIL_SUPPRESS_SEND: bool = True
    MAIL_BACKGROUND: bool = False


class ProductionConfig(Config):
    """
    Configuration for production deployments.

    ``JWT_SECRET_KEY`` must be supplied through the environment;
    ``create_app`` refuses to start with the development placeholder.
    """

    DEBUG: bool = False
    TESTING: bool = False


config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Resolve a configuration class by environment name.

    Args:
        env: One of ``"development"``, ``"testing"``, or ``"production"``.
            When ``None``, the ``FLASK_ENV`` environment variable is
            consulted, falling back to ``"development"``.

    Returns:
        The configuration class (not an instance).  Unrecognised names
        resolve to ``DevelopmentConfig``.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
