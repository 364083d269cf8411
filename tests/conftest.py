"""
Shared pytest fixtures for the Task Manager test suite.

Provides the Flask application, test client, a per-test database, user
and task factories built on Faker, authenticated header helpers and a
mail outbox that captures notifications instead of sending them.

Key Concepts Demonstrated:
- Session-scoped app vs function-scoped database for speed and isolation
- Factory fixtures (user_factory, task_factory) for flexible test data
- Monkeypatching the SMTP delivery seam to observe best-effort mail
"""

from __future__ import annotations

import os
from typing import Any

import pytest
from faker import Faker

# Set testing environment before importing the app
os.environ["FLASK_ENV"] = "testing"

from shared.test_helpers import auth_headers
from task_manager import accounts, create_app, db, emails
from task_manager.models import Task, User

fake = Faker()

DEFAULT_PASSWORD = "Str0ngPass!"


# -----------------------------------------------------------------------------
# Application Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture(scope="session")
def app():
    """Create the Flask app once for the whole session using the testing config."""
    application = create_app("testing")
    yield application


@pytest.fixture(scope="function")
def db_session(app):
    """
    Provide a clean database for each test.

    Creates all tables before the test and drops them afterwards.  The test
    body runs inside the app context, so requests issued through the test
    client share the same scoped session.
    """
    with app.app_context():
        db.create_all()
        yield db
        db.session.rollback()
        db.drop_all()


@pytest.fixture(scope="function")
def client(app, db_session):
    """Flask test client bound to a freshly created database."""
    with app.test_client() as test_client:
        yield test_client


# -----------------------------------------------------------------------------
# Test Data Factory Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def user_factory(db_session):
    """
    Factory fixture that creates users with hashed passwords.

    Returns a callable ``_create_user(**kwargs)``; pass ``with_token=True``
    to also issue a session token, returned as ``user.test_token``.
    """

    def _create_user(
        *,
        name: str | None = None,
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        age: int = 0,
        with_token: bool = True,
    ) -> User:
        user = User(
            name=name or fake.name(),
            email=(email or fake.unique.email()).lower(),
            age=age,
        )
        user.set_password(password)
        db_session.session.add(user)
        db_session.session.commit()
        user.test_token = accounts.generate_auth_token(user) if with_token else None
        return user

    return _create_user


@pytest.fixture
def user_one(user_factory) -> User:
    return user_factory(name="Mike One", email="mike@example.com", age=27)


@pytest.fixture
def user_two(user_factory) -> User:
    return user_factory(name="Jess Two", email="jess@example.com")


@pytest.fixture
def user_one_headers(user_one) -> dict[str, str]:
    return auth_headers(user_one.test_token)


@pytest.fixture
def user_two_headers(user_two) -> dict[str, str]:
    return auth_headers(user_two.test_token)


@pytest.fixture
def task_factory(db_session):
    """Factory fixture that inserts Task rows for a given owner."""

    def _create_task(
        owner: User,
        *,
        description: str | None = None,
        completed: bool = False,
    ) -> Task:
        task = Task(
            owner_id=owner.id,
            description=description or fake.sentence(nb_words=5),
            completed=completed,
        )
        db_session.session.add(task)
        db_session.session.commit()
        return task

    return _create_task


@pytest.fixture
def user_one_tasks(task_factory, user_one) -> list[Task]:
    """Three tasks for user_one: one completed, two open."""
    return [
        task_factory(user_one, description="First task for Mike", completed=False),
        task_factory(user_one, description="Second task for Mike", completed=True),
        task_factory(user_one, description="Third task for Mike", completed=False),
    ]


@pytest.fixture
def valid_signup_data() -> dict[str, Any]:
    return {"name": "mihir", "email": "mihir@example.com", "password": "mypass123"}


# -----------------------------------------------------------------------------
# Mail Fixtures
# -----------------------------------------------------------------------------


@pytest.fixture
def outbox(app, monkeypatch) -> list:
    """
    Capture outgoing mail synchronously instead of talking to SMTP.

    Yields the list that every delivered ``EmailMessage`` is appended to.
    """
    sent: list = []

    def _fake_deliver(message, settings):
        sent.append(message)
        return True

    monkeypatch.setitem(app.config, "MAIL_SUPPRESS_SEND", False)
    monkeypatch.setitem(app.config, "MAIL_BACKGROUND", False)
    monkeypatch.setattr(emails, "deliver", _fake_deliver)
    return sent
