import time

import pytest
from jose import jwt

from reparaya.config import JWT_ALGORITHM, SECRET_KEY
from reparaya.models import User, UserRole


def bearer(claims: dict, key: str = SECRET_KEY) -> dict:
    return {"Authorization": f"Bearer {jwt.encode(claims, key, algorithm=JWT_ALGORITHM)}"}


@pytest.mark.parametrize(
    "headers",
    [
        {},
        {"Authorization": "Bearer not-a-jwt"},
        {"Authorization": "Basic dXNlcjpwYXNz"},
    ],
    ids=["missing", "malformed", "wrong-scheme"],
)
def test_protected_endpoint_requires_valid_token(client, headers):
    resp = client.get("/users/me", headers=headers)

    assert resp.status_code == 401
    assert resp.json()["error"] == "UnauthorizedError"


def test_token_signed_with_other_key_is_rejected(client):
    resp = client.get("/users/me", headers=bearer({"sub": "user_x"}, key="another-secret"))
    assert resp.status_code == 401


def test_expired_token_is_rejected(client):
    resp = client.get("/users/me", headers=bearer({"sub": "user_x", "exp": int(time.time()) - 60}))

    assert resp.status_code == 401
    assert "expired" in resp.json()["detail"]


def test_token_without_subject_is_rejected(client):
    assert client.get("/users/me", headers=bearer({"email": "a@example.com"})).status_code == 401


def test_first_request_provisions_client_user(db, client):
    resp = client.get(
        "/users/me",
        headers=bearer({"sub": "user_new", "email": "nuevo@example.com", "name": "Ana López"}),
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["email"] == "nuevo@example.com"
    assert body["fullName"] == "Ana López"
    assert body["role"] == "CLIENT"
    assert body["hasContractorProfile"] is False
    assert db.query(User).filter_by(auth_subject="user_new").count() == 1


def test_existing_email_is_linked_to_new_subject(db, client, make_user):
    user = make_user(UserRole.CONTRACTOR, email="plomero@example.com")

    resp = client.get("/users/me", headers=bearer({"sub": "user_other_idp", "email": "plomero@example.com"}))

    assert resp.status_code == 200
    assert resp.json()["id"] == user.id
    assert resp.json()["role"] == "CONTRACTOR"
    assert db.query(User).count() == 1


def test_client_becomes_contractor(client, auth_headers, client_user):
    resp = client.patch("/users/me/role", json={"role": "CONTRACTOR"}, headers=auth_headers(client_user))

    assert resp.status_code == 200
    assert resp.json()["role"] == "CONTRACTOR"


def test_role_switch_is_idempotent(client, auth_headers, contractor):
    resp = client.patch("/users/me/role", json={"role": "CONTRACTOR"}, headers=auth_headers(contractor))

    assert resp.status_code == 200
    assert resp.json()["role"] == "CONTRACTOR"


@pytest.mark.parametrize("role", ["CLIENT", "ADMIN"])
def test_only_contractor_role_can_be_requested(client, auth_headers, client_user, role):
    resp = client.patch("/users/me/role", json={"role": role}, headers=auth_headers(client_user))

    assert resp.status_code == 422
    assert resp.json()["violations"] == ["role must be CONTRACTOR"]


def test_admin_cannot_become_contractor(client, auth_headers, admin):
    resp = client.patch("/users/me/role", json={"role": "CONTRACTOR"}, headers=auth_headers(admin))
    assert resp.status_code == 403


def test_admin_routes_reject_other_roles(client, auth_headers, contractor, client_user):
    for user in (contractor, client_user):
        resp = client.get("/admin/services", headers=auth_headers(user))
        assert resp.status_code == 403
        assert resp.json()["requiredRole"] == "ADMIN"

    assert client.get("/admin/services").status_code == 401


def test_health(client):
    assert client.get("/health").json() == {"status": "healthy"}
