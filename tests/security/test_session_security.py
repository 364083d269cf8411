"""
Security tests for bearer-token sessions.

Verifies that only tokens that are both correctly signed and still
stored on the user are accepted, that logout really revokes, and that
authentication failures give nothing away (OWASP A07 – Identification
and Authentication Failures).

Key SDET Concepts Demonstrated:
- Tampered and forged token handling
- Revocation checks after logout
- Uniform 401 responses regardless of the failure reason
"""

from __future__ import annotations

import pytest

from shared.test_helpers import bearer, create_test_token

pytestmark = pytest.mark.security

AUTH_ERROR = {"error": "Please authenticate."}


def _tamper(token: str) -> str:
    header, payload, signature = token.split(".")
    flipped = "A" if signature[0] != "A" else "B"
    return ".".join([header, payload, flipped + signature[1:]])


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": ""},
        {"Authorization": "Bearer"},
        {"Authorization": "Token abc"},
        {"Authorization": "Bearer not-a-jwt"},
    ],
)
def test_missing_or_malformed_header_is_rejected(client, db_session, headers):
    response = client.get("/users/me", headers=headers)

    assert response.status_code == 401
    assert response.get_json() == AUTH_ERROR


def test_tampered_signature_is_rejected(client, user_one):
    response = client.get("/users/me", headers=bearer(_tamper(user_one.test_token)))

    assert response.status_code == 401
    assert response.get_json() == AUTH_ERROR


def test_correctly_signed_but_unissued_token_is_rejected(app, client, user_one):
    # The signature is valid, but the token was never stored as a session
    forged = create_test_token(user_id=user_one.id, secret=app.config["JWT_SECRET_KEY"])

    response = client.get("/users/me", headers=bearer(forged))

    assert response.status_code == 401


def test_token_signed_with_attacker_secret_is_rejected(app, client, user_one, user_two):
    forged = create_test_token(user_id=user_two.id, secret="an-attacker-controlled-secret-value")

    response = client.get("/users/me", headers=bearer(forged))

    assert response.status_code == 401


def test_logged_out_token_cannot_be_reused(client, user_one):
    token = user_one.test_token
    assert client.post("/users/logout", headers=bearer(token)).status_code == 200

    for method, path in [("get", "/users/me"), ("get", "/tasks"), ("post", "/users/logout")]:
        response = getattr(client, method)(path, headers=bearer(token))
        assert response.status_code == 401


def test_auth_failures_do_not_leak_reason(client, user_one):
    expired = create_test_token(user_id=user_one.id, expired=True)

    responses = [
        client.get("/users/me", headers=bearer(expired)),
        client.get("/users/me", headers=bearer(_tamper(user_one.test_token))),
        client.get("/users/me"),
    ]

    assert {response.status_code for response in responses} == {401}
    assert all(response.get_json() == AUTH_ERROR for response in responses)
