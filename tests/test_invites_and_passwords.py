import time

import pytest

from brigade.models.user import User
from brigade.services import invites, mailer
from brigade.services.mailer import LoggingMailProvider, MailMessage
from tests.fixtures_data import HEAD_CHEF_SIGNUP


@pytest.fixture
def outbox():
    previous = mailer.get_mail_provider()
    provider = LoggingMailProvider()
    mailer.set_mail_provider(provider)
    try:
        yield provider.outbox
    finally:
        mailer.set_mail_provider(previous)


def _auth(token):
    return {"Authorization": f"Bearer {token}"}


def _register(client):
    response = client.post("/auth/register", json=HEAD_CHEF_SIGNUP)
    assert response.status_code == 201, response.text
    return response.json()


def _token_from(message):
    return message.body.split("/")[-1].split()[0]


def test_invite_token_round_trip():
    token = invites.create_invite_token(head_chef_id=3, organization="joes-pizza")

    assert invites.decode_invite_token(token) == {"headChefId": 3, "organization": "joes-pizza"}


def test_tampered_and_expired_invites_are_rejected():
    token = invites.create_invite_token(head_chef_id=3, organization="joes-pizza")

    with pytest.raises(invites.InviteInvalid):
        invites.decode_invite_token(token[:-2] + "xx")

    time.sleep(2.1)
    with pytest.raises(invites.InviteExpired):
        invites.decode_invite_token(token, max_age=1)


def test_accept_invite_creates_pending_member(client):
    chef = _register(client)
    invite = client.get("/team/invite-link", headers=_auth(chef["accessToken"])).json()

    response = client.post(
        "/auth/accept-invite",
        json={"token": invite["token"], "firstName": "John", "lastName": "Doe"},
    )

    assert response.status_code == 201
    assert response.json()["status"] == "pending"
    pending = client.get("/team/pending", headers=_auth(chef["accessToken"])).json()["members"]
    assert [member["id"] for member in pending] == [response.json()["id"]]


def test_accept_invite_with_garbage_token(client):
    response = client.post(
        "/auth/accept-invite",
        json={"token": "garbage", "firstName": "John", "lastName": "Doe"},
    )

    assert response.status_code == 401
    assert response.json()["error"] == "invite_invalid"


def test_registration_sends_a_verification_link(client, outbox, session_factory):
    _register(client)

    assert [message.kind for message in outbox] == ["email_verification"]
    token = _token_from(outbox[0])

    response = client.get(f"/restaurants/verify-email/{token}")
    assert response.status_code == 200
    assert response.json()["user"]["emailVerified"] is True

    assert client.get(f"/restaurants/verify-email/{token}").status_code == 400


def test_forgot_password_is_silent_about_unknown_emails(client, outbox):
    _register(client)

    known = client.post("/auth/forgot-password", json={"email": "joe@x.com"})
    unknown = client.post("/auth/forgot-password", json={"email": "nobody@x.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert [message.kind for message in outbox] == ["email_verification", "password_reset"]


def test_reset_password_with_emailed_token(client, outbox):
    _register(client)
    client.post("/auth/forgot-password", json={"email": "joe@x.com"})
    token = _token_from(outbox[-1])

    response = client.post("/auth/reset-password", json={"token": token, "newPassword": "fresh-pass"})
    assert response.status_code == 200

    assert client.post("/auth/login", json={"email": "joe@x.com", "password": "fresh-pass"}).status_code == 200
    reused = client.post("/auth/reset-password", json={"token": token, "newPassword": "again-pass"})
    assert reused.status_code == 400
    assert reused.json()["error"] == "invalid_reset_token"


def test_change_password_requires_current_password(client, session_factory):
    chef = _register(client)
    headers = _auth(chef["accessToken"])

    wrong = client.put(
        "/users/me/password",
        json={"currentPassword": "nope", "newPassword": "fresh-pass"},
        headers=headers,
    )
    assert wrong.status_code == 401

    ok = client.put(
        "/users/me/password",
        json={"currentPassword": "secret123", "newPassword": "fresh-pass"},
        headers=headers,
    )
    assert ok.status_code == 200

    session = session_factory()
    try:
        stored = session.query(User).filter(User.email == "joe@x.com").one().password_hash
    finally:
        session.close()
    assert stored.startswith("$2")
    assert client.post("/auth/login", json={"email": "joe@x.com", "password": "fresh-pass"}).status_code == 200


def test_logging_provider_keeps_only_recent_mail():
    provider = LoggingMailProvider(outbox_size=3)

    for index in range(5):
        provider.send(MailMessage(to=f"user{index}@x.com", subject="Hi", body="", kind="password_reset"))

    assert [message.to for message in provider.outbox] == ["user2@x.com", "user3@x.com", "user4@x.com"]
