from __future__ import annotations

from typing import Any, Dict

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from brigade.core import config
from brigade.core.errors import ApiError, TokenInvalid

INVITE_SALT = "team-invite"


class InviteInvalid(TokenInvalid):
    error = "invite_invalid"
    message = "Invite link is invalid"


class InviteExpired(TokenInvalid):
    error = "invite_expired"
    message = "Invite link has expired"

    def __init__(self, message: str | None = None, **kwargs: Any) -> None:
        super().__init__(message, reason="expired", **kwargs)


class InvitesDisabled(ApiError):
    status_code = 503
    error = "invites_disabled"
    message = "Team invites are not configured"


def _serializer() -> URLSafeTimedSerializer:
    if not config.INVITE_SECRET:
        raise InvitesDisabled()
    return URLSafeTimedSerializer(config.INVITE_SECRET, salt=INVITE_SALT)


def create_invite_token(*, head_chef_id: int, organization: str) -> str:
    return _serializer().dumps({"headChefId": head_chef_id, "organization": organization})


def decode_invite_token(token: str, *, max_age: int | None = None) -> Dict[str, Any]:
    serializer = _serializer()
    try:
        payload = serializer.loads(token, max_age=max_age or config.INVITE_MAX_AGE_SECONDS)
    except SignatureExpired as exc:
        raise InviteExpired() from exc
    except BadSignature as exc:
        raise InviteInvalid() from exc
    if not isinstance(payload, dict) or not isinstance(payload.get("headChefId"), int):
        raise InviteInvalid()
    return payload


def invite_url(token: str) -> str:
    return f"{config.FRONTEND_URL}/join?token={token}"
