"""
Security tests for tenant isolation between users.

A user must never read, change or delete another user's tasks, whatever
filters or identifiers they send (OWASP A01 – Broken Access Control).
"""

from __future__ import annotations

import pytest

from task_manager.models import Task

pytestmark = pytest.mark.security


@pytest.fixture
def jess_tasks(task_factory, user_two):
    return [
        task_factory(user_two, description="Jess secret one", completed=True),
        task_factory(user_two, description="Jess secret two", completed=False),
    ]


@pytest.mark.parametrize(
    "query",
    ["", "?completed=true", "?completed=false", "?sortBy=createdAt:desc", "?limit=50&skip=0"],
)
def test_listing_never_returns_other_users_tasks(client, user_one_headers, jess_tasks, query):
    response = client.get(f"/tasks{query}", headers=user_one_headers)

    assert response.status_code == 200
    assert response.get_json() == []


def test_foreign_task_is_indistinguishable_from_missing(client, user_one_headers, jess_tasks):
    foreign = client.get(f"/tasks/{jess_tasks[0].id}", headers=user_one_headers)
    missing = client.get("/tasks/987654", headers=user_one_headers)

    assert foreign.status_code == missing.status_code == 404
    assert foreign.get_json() == missing.get_json()


def test_foreign_task_cannot_be_deleted(client, db_session, user_one_headers, jess_tasks):
    response = client.delete(f"/tasks/{jess_tasks[0].id}", headers=user_one_headers)

    assert response.status_code == 404
    assert db_session.session.get(Task, jess_tasks[0].id) is not None


def test_deleting_account_leaves_other_users_tasks(client, db_session, user_one, user_one_headers, jess_tasks):
    client.delete("/users/me", headers=user_one_headers)

    db_session.session.expire_all()
    assert db_session.session.query(Task).count() == len(jess_tasks)
