# brigade/deps.py
from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from brigade.core.abuse_guard import AbuseGuard
from brigade.core.database import get_db
from brigade.core.errors import PermissionDenied, TokenInvalid
from brigade.core.request_context import set_request_context
from brigade.models.user import User
from brigade.services.authentication import LoginContext
from brigade.services.permissions import PERMISSION_NAMES, ROLE_SUPER_ADMIN
from brigade.services.tokens import verify_access_token

bearer_scheme = HTTPBearer(auto_error=False)

logger = logging.getLogger(__name__)


def get_client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first = forwarded.split(",")[0].strip()
        if first:
            return first
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def get_login_context(request: Request) -> LoginContext:
    return LoginContext(client_ip=get_client_ip(request), user_agent=request.headers.get("user-agent"))


def get_abuse_guard(request: Request) -> AbuseGuard:
    guard = getattr(request.app.state, "abuse_guard", None)
    if guard is None:
        guard = AbuseGuard()
        request.app.state.abuse_guard = guard
    return guard


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Resolve the bearer token to a live user; every failure is a plain 401."""
    if credentials is None or (credentials.scheme or "").lower() != "bearer":
        raise TokenInvalid(reason="missing")

    try:
        payload = verify_access_token(credentials.credentials)
    except TokenInvalid as exc:
        logger.info("Rejected bearer token reason=%s path=%s", exc.reason, request.url.path)
        raise

    user = db.query(User).filter(User.id == payload["userId"]).first()
    if user is None:
        logger.info("Rejected bearer token reason=unknown_user user_id=%s", payload["userId"])
        raise TokenInvalid(reason="unknown_user")
    if not user.is_active:
        logger.info("Rejected bearer token reason=inactive_user user_id=%s", user.id)
        raise TokenInvalid(reason="inactive_user")

    request.state.user = user
    set_request_context(user_id=str(user.id), tenant=user.organization)
    return user


def _log_access_denied(*, reason: str, user: User, request: Request, required: str | None = None) -> None:
    logger.warning(
        "Access denied (%s): user_id=%s role=%s organization=%s required=%s endpoint=%s %s",
        reason,
        getattr(user, "id", None),
        getattr(user, "role", None),
        getattr(user, "organization", None),
        required,
        request.method,
        request.url.path,
    )


def require_permission(name: str):
    if name not in PERMISSION_NAMES:
        raise ValueError(f"Unknown permission: {name}")

    def _dependency(request: Request, user: User = Depends(get_current_user)) -> User:
        if not user.has_permission(name):
            _log_access_denied(reason="permission_denied", user=user, request=request, required=name)
            raise PermissionDenied(f"Access denied. Missing permission: {name}", required=name)
        return user

    return _dependency


def require_super_admin(request: Request, user: User = Depends(get_current_user)) -> User:
    if user.role != ROLE_SUPER_ADMIN:
        _log_access_denied(reason="role_denied", user=user, request=request, required=ROLE_SUPER_ADMIN)
        raise PermissionDenied("Access denied. Super admin only.", required=ROLE_SUPER_ADMIN)
    return user
