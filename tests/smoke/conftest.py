"""
Smoke-test fixtures for a running Task Manager deployment.

Provides the ``smoke_base_url`` session fixture.  The base URL comes from
``TEST_BASE_URL``; when nothing answers ``/health`` there the whole smoke
suite is skipped rather than failed.
"""

from __future__ import annotations

import os

import pytest
import requests


@pytest.fixture(scope="session")
def smoke_base_url() -> str:
    """Return a base URL whose ``/health`` endpoint responds, or skip."""
    base_url = os.getenv("TEST_BASE_URL", "http://localhost:5000").rstrip("/")
    try:
        response = requests.get(f"{base_url}/health", timeout=2)
    except requests.RequestException as exc:
        pytest.skip(f"No running Task Manager at {base_url}: {exc}")
    if response.status_code != 200:
        pytest.skip(f"Task Manager at {base_url} is not healthy ({response.status_code})")
    return base_url
