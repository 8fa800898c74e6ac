from jose import jwt

from brigade.models.login_audit_log import LoginAuditLog
from brigade.models.restaurant import Restaurant
from brigade.models.user import User
from tests.fixtures_data import HEAD_CHEF_SIGNUP, SECOND_HEAD_CHEF_SIGNUP, TEAM_MEMBER_NAME, VIEW_ONLY_PERMISSIONS


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def _register(client, payload=HEAD_CHEF_SIGNUP):
    response = client.post("/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def _request_access(client, head_chef_id, name=TEAM_MEMBER_NAME):
    response = client.post("/chefs/request-access", json={"headChefId": head_chef_id, **name})
    assert response.status_code == 201, response.text
    return response.json()


def _approve(client, token, member_id):
    response = client.put(f"/team/pending/{member_id}", json={"status": "active"}, headers=_auth(token))
    assert response.status_code == 200, response.text
    return response.json()


def _kiosk_login(client, first="John", last="Doe", restaurant="Joe's Pizza"):
    return client.post(
        "/auth/login-by-name",
        json={"restaurantName": restaurant, "firstName": first, "lastName": last},
    )


def _suspend(session_factory, slug="joes-pizza"):
    session = session_factory()
    try:
        restaurant = session.query(Restaurant).filter(Restaurant.slug == slug).one()
        restaurant.status = "suspended"
        session.commit()
    finally:
        session.close()


def test_register_creates_trial_tenant_and_active_head_chef(client):
    body = _register(client)

    assert body["restaurant"]["slug"] == "joes-pizza"
    assert body["restaurant"]["status"] == "trial"
    assert body["restaurant"]["location"]["zipCode"] == "62701"
    assert body["user"]["status"] == "active"
    assert body["user"]["role"] == "head-chef"
    assert body["user"]["organization"] == "joes-pizza"
    assert all(body["user"]["permissions"].values())
    assert body["accessToken"] and body["refreshToken"]
    assert "passwordHash" not in body["user"]


def test_second_tenant_with_same_name_gets_suffixed_slug(client):
    _register(client)
    body = _register(client, {**SECOND_HEAD_CHEF_SIGNUP, "restaurantName": "Joe's Pizza"})

    assert body["restaurant"]["slug"] == "joes-pizza-1"


def test_register_rejects_duplicate_email(client):
    _register(client)

    response = client.post("/auth/register", json={**SECOND_HEAD_CHEF_SIGNUP, "email": "JOE@x.com"})

    assert response.status_code == 400
    assert response.json()["error"] == "duplicate_email"


def test_register_rejects_malformed_payload(client):
    response = client.post("/auth/register", json={**HEAD_CHEF_SIGNUP, "email": "not-an-email", "password": "1"})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "validation_error"
    assert {error["field"] for error in body["errors"]} >= {"email", "password"}


def test_email_login_and_me(client):
    _register(client)

    response = client.post("/auth/login", json={"email": "Joe@X.com", "password": "secret123"})

    assert response.status_code == 200
    body = response.json()
    assert body["user"]["lastLogin"] is not None
    assert body["expiresIn"] == 3600
    assert body["user"]["qrAccess"] is False

    me = client.get("/auth/me", headers=_auth(body["accessToken"]))
    assert me.status_code == 200
    assert me.json()["user"]["email"] == "joe@x.com"


def test_wrong_password_and_unknown_email_look_the_same(client):
    _register(client)

    wrong = client.post("/auth/login", json={"email": "joe@x.com", "password": "nope"})
    unknown = client.post("/auth/login", json={"email": "who@x.com", "password": "nope"})

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json()


def test_pending_member_is_gated_until_approved(client):
    chef = _register(client)
    member = _request_access(client, chef["user"]["id"])
    assert member["status"] == "pending"

    pending = _kiosk_login(client)
    assert pending.status_code == 403
    assert pending.json()["error"] == "pending_approval"
    assert pending.json()["status"] == "pending"

    approved = _approve(client, chef["accessToken"], member["id"])
    assert approved["member"]["status"] == "active"
    assert approved["loginUrl"] == "https://app.example.com/login/joes-pizza"

    response = _kiosk_login(client, first="john", last="DOE")
    assert response.status_code == 200
    body = response.json()
    assert body["user"]["permissions"] == VIEW_ONLY_PERMISSIONS
    assert body["expiresIn"] == 720 * 60
    assert body["user"]["qrAccess"] is True
    assert body["user"]["qrAccessDate"] is not None


def test_status_poll_follows_approval(client):
    chef = _register(client)
    member = _request_access(client, chef["user"]["id"])

    assert client.get(f"/users/{member['id']}/status").json() == {"status": "pending"}
    _approve(client, chef["accessToken"], member["id"])
    assert client.get(f"/users/{member['id']}/status").json() == {"status": "active"}
    assert client.get("/users/9999/status").status_code == 404


def test_kiosk_wrong_last_name_does_not_reveal_first_name(client):
    chef = _register(client)
    member = _request_access(client, chef["user"]["id"])
    _approve(client, chef["accessToken"], member["id"])

    wrong_last = _kiosk_login(client, last="Smith")
    nobody = _kiosk_login(client, first="Nobody", last="Here")

    assert wrong_last.status_code == nobody.status_code == 404
    assert wrong_last.json() == nobody.json()
    assert wrong_last.json()["error"] == "team_member_not_found"


def test_kiosk_unknown_restaurant_is_not_found(client):
    response = _kiosk_login(client, restaurant="Nowhere Diner")

    assert response.status_code == 404
    assert response.json()["error"] == "restaurant_not_found"


def test_team_login_uses_name_as_username_and_password(client):
    chef = _register(client)
    member = _request_access(client, chef["user"]["id"])
    _approve(client, chef["accessToken"], member["id"])

    response = client.post(
        "/auth/team-login",
        json={"restaurantName": "joes-pizza", "username": "John", "password": "Doe"},
    )

    assert response.status_code == 200
    assert response.json()["user"]["id"] == member["id"]
    assert response.json()["user"]["qrAccess"] is True


def test_suspended_tenant_blocks_every_login_before_credentials(client, session_factory):
    chef = _register(client)
    member = _request_access(client, chef["user"]["id"])
    _approve(client, chef["accessToken"], member["id"])
    _suspend(session_factory)

    responses = [
        client.post("/auth/login", json={"email": "joe@x.com", "password": "secret123"}),
        client.post("/auth/login", json={"email": "joe@x.com", "password": "wrong-one"}),
        _kiosk_login(client),
        _kiosk_login(client, first="Nobody", last="Here"),
        client.post(f"/auth/login/joes-pizza/{member['id']}"),
    ]

    for response in responses:
        assert response.status_code == 403, response.text
        assert response.json()["error"] == "restaurant_suspended"


def test_deactivated_member_gets_403_regardless_of_status(client, session_factory):
    chef = _register(client)
    member = _request_access(client, chef["user"]["id"])
    _approve(client, chef["accessToken"], member["id"])

    deleted = client.delete(f"/team/{member['id']}", headers=_auth(chef["accessToken"]))
    assert deleted.status_code == 200

    response = _kiosk_login(client)
    assert response.status_code == 403
    assert response.json()["error"] == "account_deactivated"


def test_rate_limit_blocks_sixth_attempt_even_with_correct_password(client):
    _register(client)

    for _ in range(5):
        assert client.post("/auth/login", json={"email": "joe@x.com", "password": "bad"}).status_code == 401

    response = client.post("/auth/login", json={"email": "joe@x.com", "password": "secret123"})

    assert response.status_code == 429
    assert int(response.headers["Retry-After"]) > 0
    assert response.json()["retry_after_seconds"] > 0


def test_rate_limit_is_per_client_address(client):
    _register(client)
    for _ in range(5):
        client.post("/auth/login", json={"email": "joe@x.com", "password": "bad"})

    response = client.post(
        "/auth/login",
        json={"email": "joe@x.com", "password": "secret123"},
        headers={"X-Forwarded-For": "203.0.113.9"},
    )

    assert response.status_code == 200


def test_success_before_threshold_resets_the_counter(client):
    _register(client)
    for _ in range(4):
        client.post("/auth/login", json={"email": "joe@x.com", "password": "bad"})
    assert client.post("/auth/login", json={"email": "joe@x.com", "password": "secret123"}).status_code == 200

    for _ in range(4):
        client.post("/auth/login", json={"email": "joe@x.com", "password": "bad"})

    assert client.post("/auth/login", json={"email": "joe@x.com", "password": "secret123"}).status_code == 200


def test_invalid_payload_does_not_count_against_the_limit(client):
    _register(client)
    for _ in range(6):
        assert client.post("/auth/login", json={"email": "joe@x.com"}).status_code == 400

    assert client.post("/auth/login", json={"email": "joe@x.com", "password": "secret123"}).status_code == 200


def test_member_id_login_requires_matching_tenant(client):
    chef = _register(client)
    other = _register(client, SECOND_HEAD_CHEF_SIGNUP)
    member = _request_access(client, chef["user"]["id"])
    _approve(client, chef["accessToken"], member["id"])

    ok = client.post(f"/auth/login/joes-pizza/{member['id']}")
    wrong_tenant = client.post(f"/auth/login/bistro-ana/{member['id']}")
    head_chef_id = client.post(f"/auth/login/joes-pizza/{chef['user']['id']}")

    assert ok.status_code == 200
    assert ok.json()["user"]["id"] == member["id"]
    assert ok.json()["user"]["qrAccess"] is True
    assert ok.json()["user"]["qrAccessDate"] is not None
    assert wrong_tenant.status_code == 404
    assert wrong_tenant.json()["error"] == "team_member_not_found"
    assert head_chef_id.status_code == 404
    assert other["restaurant"]["slug"] == "bistro-ana"


def test_qr_entry_resolves_kiosk_url(client):
    _register(client)

    response = client.post("/auth/qr/joes-pizza")

    assert response.status_code == 200
    assert response.json() == {
        "loginUrl": "https://app.example.com/login/joes-pizza",
        "restaurantName": "Joe's Pizza",
    }
    assert client.post("/auth/qr/nowhere").status_code == 404


def test_refresh_issues_a_new_pair(client):
    chef = _register(client)

    response = client.post("/auth/refresh-token", json={"refreshToken": chef["refreshToken"]})

    assert response.status_code == 200
    assert client.get("/auth/me", headers=_auth(response.json()["accessToken"])).status_code == 200
    assert client.post("/auth/refresh-token", json={"refreshToken": chef["accessToken"]}).status_code == 401


def test_logout_requires_a_valid_token(client):
    chef = _register(client)

    assert client.post("/auth/logout", headers=_auth(chef["accessToken"])).status_code == 200
    response = client.post("/auth/logout", headers=_auth("garbage"))
    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


def test_me_rejects_token_with_non_string_role(client):
    token = jwt.encode({"userId": 1, "role": ["x"], "type": "access"}, "whatever", algorithm="HS256")

    response = client.get("/auth/me", headers=_auth(token))

    assert response.status_code == 401
    assert response.json()["detail"] == "Invalid token"


def test_every_attempt_is_audited(client, session_factory):
    _register(client)
    client.post("/auth/login", json={"email": "joe@x.com", "password": "bad"})
    client.post("/auth/login", json={"email": "joe@x.com", "password": "secret123"})

    session = session_factory()
    try:
        rows = session.query(LoginAuditLog).order_by(LoginAuditLog.id.asc()).all()
        user = session.query(User).filter(User.email == "joe@x.com").one()
    finally:
        session.close()

    assert [(row.outcome, row.reason) for row in rows] == [
        ("failure", "invalid_credentials"),
        ("success", None),
    ]
    assert rows[0].target_tenant == "joes-pizza"
    assert rows[1].user_id == user.id
