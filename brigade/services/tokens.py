from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from jose import ExpiredSignatureError, JWTError, jwt

from brigade.core import config
from brigade.core.errors import TokenExpired, TokenInvalid
from brigade.services.permissions import is_team_member_role, normalize_role

logger = logging.getLogger(__name__)

TOKEN_TYPE_ACCESS = "access"
TOKEN_TYPE_REFRESH = "refresh"


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str

    def as_dict(self) -> dict[str, str]:
        return {"accessToken": self.access_token, "refreshToken": self.refresh_token}


def _require_secret(value: str, name: str) -> str:
    if not value:
        raise RuntimeError(f"{name} is not configured")
    return value


def _access_secret(role: str | None) -> str:
    if is_team_member_role(role):
        return _require_secret(config.JWT_TEAM_MEMBER_SECRET, "JWT_TEAM_MEMBER_SECRET")
    return _require_secret(config.JWT_ACCESS_SECRET, "JWT_ACCESS_SECRET")


def _refresh_secret() -> str:
    return _require_secret(config.JWT_REFRESH_SECRET, "JWT_REFRESH_SECRET")


def access_lifetime(role: str | None) -> timedelta:
    if is_team_member_role(role):
        return timedelta(minutes=config.TEAM_MEMBER_ACCESS_TOKEN_EXPIRE_MINUTES)
    return timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)


def refresh_lifetime(role: str | None) -> timedelta:
    if is_team_member_role(role):
        return timedelta(days=config.TEAM_MEMBER_REFRESH_TOKEN_EXPIRE_DAYS)
    return timedelta(days=config.REFRESH_TOKEN_EXPIRE_DAYS)


def _encode(
    *,
    user_id: int,
    role: str,
    token_type: str,
    lifetime: timedelta,
    secret: str,
    now: Optional[datetime] = None,
) -> str:
    now = now or datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        # "sub" must be a string for python-jose.
        "sub": str(user_id),
        "userId": user_id,
        "tokenId": secrets.token_hex(16),
        "type": token_type,
        "role": normalize_role(role),
        "iat": int(now.timestamp()),
        "exp": int((now + lifetime).timestamp()),
    }
    return jwt.encode(payload, secret, algorithm=config.JWT_ALGORITHM)


def create_access_token(user_id: int, role: str, *, now: Optional[datetime] = None) -> str:
    return _encode(
        user_id=user_id,
        role=role,
        token_type=TOKEN_TYPE_ACCESS,
        lifetime=access_lifetime(role),
        secret=_access_secret(role),
        now=now,
    )


def create_refresh_token(user_id: int, role: str, *, now: Optional[datetime] = None) -> str:
    return _encode(
        user_id=user_id,
        role=role,
        token_type=TOKEN_TYPE_REFRESH,
        lifetime=refresh_lifetime(role),
        secret=_refresh_secret(),
        now=now,
    )


def issue_token_pair(user_id: int, role: str, *, now: Optional[datetime] = None) -> TokenPair:
    return TokenPair(
        access_token=create_access_token(user_id, role, now=now),
        refresh_token=create_refresh_token(user_id, role, now=now),
    )


def _decode(token: str, secret: str) -> Dict[str, Any]:
    try:
        return jwt.decode(token, secret, algorithms=[config.JWT_ALGORITHM])
    except ExpiredSignatureError as exc:
        raise TokenExpired() from exc
    except JWTError as exc:
        raise TokenInvalid(reason="malformed_or_bad_signature") from exc


def _unverified_role(token: str) -> str | None:
    try:
        claims = jwt.get_unverified_claims(token)
    except JWTError as exc:
        raise TokenInvalid(reason="malformed") from exc
    role = claims.get("role")
    if role is not None and not isinstance(role, str):
        raise TokenInvalid(reason="malformed_role")
    return role


def _check_claims(payload: Dict[str, Any], expected_type: str) -> Dict[str, Any]:
    if payload.get("type") != expected_type:
        raise TokenInvalid(reason="wrong_token_type")
    if not isinstance(payload.get("userId"), int):
        raise TokenInvalid(reason="missing_user_id")
    return payload


def verify_access_token(token: str) -> Dict[str, Any]:
    """Verify against the secret for the role the token claims.

    The claimed role only selects the key; a forged role fails the signature.
    """
    if not token:
        raise TokenInvalid(reason="missing")
    role = _unverified_role(token)
    payload = _decode(token, _access_secret(role))
    return _check_claims(payload, TOKEN_TYPE_ACCESS)


def verify_refresh_token(token: str) -> Dict[str, Any]:
    if not token:
        raise TokenInvalid(reason="missing")
    payload = _decode(token, _refresh_secret())
    return _check_claims(payload, TOKEN_TYPE_REFRESH)
