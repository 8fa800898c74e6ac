from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from brigade.core import config
from brigade.core.errors import TokenExpired, TokenInvalid
from brigade.services import tokens
from tests.fixtures_data import FORGED_TOKEN


def test_access_token_carries_identity_claims():
    token = tokens.create_access_token(7, "head-chef")

    payload = tokens.verify_access_token(token)

    assert payload["userId"] == 7
    assert payload["sub"] == "7"
    assert payload["role"] == "head-chef"
    assert payload["type"] == "access"
    assert payload["exp"] - payload["iat"] == 60 * 60


def test_team_member_tokens_use_their_own_secret_and_lifetime():
    token = tokens.create_access_token(9, "team-member")

    payload = tokens.verify_access_token(token)
    assert payload["exp"] - payload["iat"] == 720 * 60

    with pytest.raises(Exception):
        jwt.decode(token, config.JWT_ACCESS_SECRET, algorithms=["HS256"])


def test_token_expiry_is_reported_as_expired():
    issued = datetime.now(timezone.utc) - timedelta(hours=2)
    token = tokens.create_access_token(7, "head-chef", now=issued)

    with pytest.raises(TokenExpired) as exc:
        tokens.verify_access_token(token)

    assert exc.value.status_code == 401
    assert exc.value.reason == "expired"


def test_forged_and_garbage_tokens_are_invalid():
    for token in (FORGED_TOKEN, "not-a-jwt", ""):
        with pytest.raises(TokenInvalid):
            tokens.verify_access_token(token)


def test_forged_role_claim_fails_signature():
    token = tokens.create_access_token(7, "team-member")
    claims = jwt.get_unverified_claims(token)
    claims["role"] = "super-admin"
    forged = jwt.encode(claims, "guess", algorithm="HS256")

    with pytest.raises(TokenInvalid):
        tokens.verify_access_token(forged)


@pytest.mark.parametrize("role", [123, ["x"], {"name": "head-chef"}])
def test_non_string_role_claim_is_invalid(role):
    token = jwt.encode({"userId": 7, "role": role, "type": "access"}, "whatever", algorithm="HS256")

    with pytest.raises(TokenInvalid) as exc:
        tokens.verify_access_token(token)
    assert exc.value.status_code == 401


def test_refresh_token_is_not_an_access_token():
    pair = tokens.issue_token_pair(7, "head-chef")

    with pytest.raises(TokenInvalid):
        tokens.verify_access_token(pair.refresh_token)
    with pytest.raises(TokenInvalid):
        tokens.verify_refresh_token(pair.access_token)

    assert tokens.verify_refresh_token(pair.refresh_token)["type"] == "refresh"
    assert set(pair.as_dict()) == {"accessToken", "refreshToken"}


def test_every_token_has_a_distinct_id():
    first = jwt.get_unverified_claims(tokens.create_access_token(7, "head-chef"))
    second = jwt.get_unverified_claims(tokens.create_access_token(7, "head-chef"))

    assert first["tokenId"] != second["tokenId"]


def test_missing_secret_fails_loudly(monkeypatch):
    monkeypatch.setattr(config, "JWT_ACCESS_SECRET", "")

    with pytest.raises(RuntimeError):
        tokens.create_access_token(7, "head-chef")
