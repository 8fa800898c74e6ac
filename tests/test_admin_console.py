from datetime import timedelta

import pytest

from brigade.core.metrics import request_metrics
from brigade.models.restaurant import Restaurant
from brigade.services.bootstrap import upsert_super_admin
from brigade.services.passwords import hash_password
from brigade.utils.clock import utcnow
from tests.fixtures_data import HEAD_CHEF_SIGNUP


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(client, session_factory):
    session = session_factory()
    try:
        upsert_super_admin(session, email="root@brigade.dev", name="Root", password="root-pass")
    finally:
        session.close()
    response = client.post("/auth/login", json={"email": "root@brigade.dev", "password": "root-pass"})
    assert response.status_code == 200, response.text
    return _auth(response.json()["accessToken"])


@pytest.fixture
def head_chef(client):
    response = client.post("/auth/register", json=HEAD_CHEF_SIGNUP)
    assert response.status_code == 201, response.text
    return response.json()


def test_bootstrap_is_idempotent_and_accepts_hashes(db):
    admin, created = upsert_super_admin(db, email="Root@Brigade.dev", name="Root", password="root-pass")
    again, created_again = upsert_super_admin(
        db, email="root@brigade.dev", name="Root Admin", password=hash_password("other-pass")
    )

    assert created is True
    assert created_again is False
    assert again.id == admin.id
    assert again.name == "Root Admin"
    assert all(again.permissions.values())


def test_admin_endpoints_reject_head_chefs(client, head_chef):
    response = client.get("/admin/users", headers=_auth(head_chef["accessToken"]))

    assert response.status_code == 403
    assert client.get("/internal/metrics", headers=_auth(head_chef["accessToken"])).status_code == 403


def test_admin_lists_users_and_restaurants(client, admin_headers, head_chef):
    listed = client.get("/admin/users", params={"organization": "joes-pizza"}, headers=admin_headers).json()
    restaurants = client.get("/admin/restaurants", headers=admin_headers).json()["restaurants"]

    assert [user["email"] for user in listed["users"]] == ["joe@x.com"]
    assert [restaurant["slug"] for restaurant in restaurants] == ["joes-pizza"]


def test_suspend_and_reactivate_tenant(client, admin_headers, head_chef):
    suspended = client.put("/admin/restaurants/joes-pizza/status", json={"status": "suspended"}, headers=admin_headers)
    assert suspended.json()["restaurant"]["status"] == "suspended"

    blocked = client.post("/auth/login", json={"email": "joe@x.com", "password": "secret123"})
    assert blocked.status_code == 403
    assert blocked.json()["error"] == "restaurant_suspended"

    client.put("/admin/restaurants/joes-pizza/status", json={"status": "active"}, headers=admin_headers)
    assert client.post("/auth/login", json={"email": "joe@x.com", "password": "secret123"}).status_code == 200


def test_unknown_tenant_status_change_is_not_found(client, admin_headers):
    response = client.put("/admin/restaurants/nowhere/status", json={"status": "active"}, headers=admin_headers)

    assert response.status_code == 404


def test_expire_trials_endpoint(client, admin_headers, head_chef, session_factory):
    session = session_factory()
    try:
        restaurant = session.query(Restaurant).filter(Restaurant.slug == "joes-pizza").one()
        restaurant.trial_end_date = utcnow() - timedelta(days=1)
        session.commit()
    finally:
        session.close()

    response = client.post("/admin/restaurants/expire-trials", headers=admin_headers)

    assert response.json() == {"suspended": ["joes-pizza"]}


def test_role_change_recomputes_permissions(client, admin_headers, head_chef):
    user_id = head_chef["user"]["id"]

    response = client.put(f"/admin/users/{user_id}", json={"role": "team-member"}, headers=admin_headers)

    permissions = response.json()["user"]["permissions"]
    assert permissions["canViewRecipes"] is True
    assert permissions["canManageTeam"] is False


def test_login_audit_is_filterable(client, admin_headers, head_chef):
    client.post("/auth/login", json={"email": "joe@x.com", "password": "bad"})

    response = client.get(
        "/admin/login-audit",
        params={"tenant": "joes-pizza", "outcome": "failure"},
        headers=admin_headers,
    )

    attempts = response.json()["attempts"]
    assert len(attempts) == 1
    assert attempts[0]["reason"] == "invalid_credentials"
    assert attempts[0]["strategy"] == "email_password"


def test_metrics_are_reported_per_route_and_tenant(client, admin_headers, head_chef):
    request_metrics.reset()
    client.get("/auth/me", headers=_auth(head_chef["accessToken"]))
    client.post("/auth/login", json={"email": "joe@x.com", "password": "bad"})

    body = client.get("/internal/metrics", headers=admin_headers).json()

    assert body["endpoints"]["GET /auth/me"]["total_requests"] == 1
    assert body["endpoints"]["POST /auth/login"]["error_count"] == 1
    assert body["tenants"]["joes-pizza"]["total_requests"] >= 1
    assert body["logins"]["email_password"]["failure"] == 1
