"""Unit tests for configuration lookup and the production secret guard."""

import pytest

from task_manager import create_app
from task_manager.config import (
    DEV_JWT_SECRET,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    _env_flag,
    get_config,
)

pytestmark = pytest.mark.unit


@pytest.mark.parametrize(
    "name, expected",
    [
        ("development", DevelopmentConfig),
        ("testing", TestingConfig),
        ("production", ProductionConfig),
        ("staging", DevelopmentConfig),
    ],
)
def test_get_config_resolves_by_name(name, expected):
    assert get_config(name) is expected


def test_get_config_falls_back_to_flask_env(monkeypatch):
    monkeypatch.setenv("FLASK_ENV", "production")

    assert get_config() is ProductionConfig


def test_testing_config_uses_memory_database_and_quiet_mail():
    assert TestingConfig.SQLALCHEMY_DATABASE_URI.startswith("sqlite://")
    assert TestingConfig.MAIL_SUPPRESS_SEND is True
    assert TestingConfig.MAIL_BACKGROUND is False


@pytest.mark.parametrize(
    "raw, expected",
    [("true", True), ("1", True), ("ON", True), ("false", False), ("0", False), ("", True)],
)
def test_env_flag_parsing(monkeypatch, raw, expected):
    monkeypatch.setenv("SOME_FLAG", raw)

    assert _env_flag("SOME_FLAG", True) is expected


def test_production_refuses_development_jwt_secret(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "JWT_SECRET_KEY", DEV_JWT_SECRET)

    with pytest.raises(RuntimeError, match="JWT_SECRET_KEY"):
        create_app("production")


def test_production_starts_with_real_secret(monkeypatch):
    monkeypatch.setattr(ProductionConfig, "JWT_SECRET_KEY", "a-real-production-secret-value")
    monkeypatch.setattr(ProductionConfig, "SQLALCHEMY_DATABASE_URI", "sqlite://")

    app = create_app("production")

    assert app.config["TESTING"] is False
    assert app.test_client().get("/health").status_code == 200
