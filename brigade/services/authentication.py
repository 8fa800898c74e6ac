"""Login strategies sharing one pre-check pipeline.

Every strategy runs the same steps in the same order: abuse-guard check,
principal lookup, tenant status, account status, credential check and,
on success, ``lastLogin`` plus a token pair. Each attempt is written to
the login audit table and the security log whatever its outcome.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from sqlalchemy.orm import Session

from brigade.core import config
from brigade.core.abuse_guard import AbuseGuard
from brigade.core.errors import (
    AccountNotActive,
    ApiError,
    InvalidCredentials,
    NotFound,
    RateLimited,
    TenantSuspended,
    TokenInvalid,
)
from brigade.models.restaurant import Restaurant
from brigade.models.user import STATUS_ACTIVE, STATUS_PENDING, STATUS_REJECTED, User
from brigade.services import login_audit, restaurants, tokens, users
from brigade.services.permissions import ROLE_SUPER_ADMIN, ROLE_TEAM_MEMBER
from brigade.utils.clock import utcnow
from brigade.utils.slug import slugify

logger = logging.getLogger(__name__)

STRATEGY_EMAIL = "email_password"
STRATEGY_NAME = "name_kiosk"
STRATEGY_USERNAME = "username_password"
STRATEGY_MEMBER_ID = "member_id"
KIOSK_STRATEGIES = frozenset({STRATEGY_NAME, STRATEGY_USERNAME, STRATEGY_MEMBER_ID})

PENDING_MESSAGE = "Your access request is still pending approval. Please contact the restaurant manager."
REJECTED_MESSAGE = "Your access request has been rejected. Please contact the restaurant manager."


class TeamMemberNotFound(NotFound):
    error = "team_member_not_found"
    message = "Team member not found"


@dataclass
class LoginContext:
    client_ip: str
    user_agent: Optional[str] = None


@dataclass
class LoginResult:
    user: User
    token_pair: tokens.TokenPair

    def as_response(self) -> dict[str, Any]:
        expires_in = int(tokens.access_lifetime(self.user.role).total_seconds())
        return {
            "user": users.sanitize_user(self.user),
            **self.token_pair.as_dict(),
            "expiresIn": expires_in,
        }


class LoginAttempt:
    """Bookkeeping for one authentication attempt."""

    def __init__(
        self,
        db: Session,
        guard: AbuseGuard,
        context: LoginContext,
        *,
        strategy: str,
        target_tenant: Optional[str] = None,
        target_name: Optional[str] = None,
    ) -> None:
        self.db = db
        self.guard = guard
        self.context = context
        self.strategy = strategy
        self.target_tenant = target_tenant
        self.target_name = target_name

    def _record(self, outcome: str, *, reason: Optional[str] = None, user_id: Optional[int] = None) -> None:
        login_audit.record_login_attempt(
            self.db,
            strategy=self.strategy,
            outcome=outcome,
            client_ip=self.context.client_ip,
            user_agent=self.context.user_agent,
            target_tenant=self.target_tenant,
            target_name=self.target_name,
            user_id=user_id,
            reason=reason,
        )

    def ensure_allowed(self) -> None:
        decision = self.guard.check(self.context.client_ip)
        if decision.allowed:
            return
        self._record(login_audit.OUTCOME_FAILURE, reason=RateLimited.error)
        self.db.commit()
        raise RateLimited(decision.retry_after_seconds)

    def reject(self, error: ApiError, *, user: Optional[User] = None) -> ApiError:
        """Record the failure and return ``error`` for the caller to raise."""
        self.guard.register_failure(self.context.client_ip, tenant=self.target_tenant)
        self._record(login_audit.OUTCOME_FAILURE, reason=error.error, user_id=getattr(user, "id", None))
        self.db.commit()
        return error

    def succeed(self, user: User) -> LoginResult:
        user.last_login = utcnow()
        if self.strategy in KIOSK_STRATEGIES:
            user.qr_access = True
            user.qr_access_date = user.last_login
        token_pair = tokens.issue_token_pair(user.id, user.role)
        self.guard.register_success(self.context.client_ip)
        self._record(login_audit.OUTCOME_SUCCESS, user_id=user.id)
        self.db.commit()
        self.db.refresh(user)
        logger.info("Login succeeded strategy=%s user_id=%s", self.strategy, user.id)
        return LoginResult(user=user, token_pair=token_pair)


def check_tenant_status(restaurant: Optional[Restaurant]) -> None:
    if restaurant is not None and restaurant.is_blocked:
        raise TenantSuspended(status=restaurant.status)


def check_account_status(user: User) -> None:
    if not user.is_active:
        raise AccountNotActive(error="account_deactivated", status="deactivated")
    if user.status == STATUS_ACTIVE:
        return
    if user.status == STATUS_PENDING:
        raise AccountNotActive(PENDING_MESSAGE, error="pending_approval", status=STATUS_PENDING)
    if user.status == STATUS_REJECTED:
        raise AccountNotActive(REJECTED_MESSAGE, error="access_rejected", status=STATUS_REJECTED)
    raise AccountNotActive(status=user.status)


def _run_checks(
    attempt: LoginAttempt,
    user: User,
    restaurant: Optional[Restaurant],
    credential_check: Optional[Callable[[User], bool]] = None,
) -> LoginResult:
    try:
        check_tenant_status(restaurant)
        check_account_status(user)
    except ApiError as exc:
        raise attempt.reject(exc, user=user) from None

    if credential_check is not None and not credential_check(user):
        raise attempt.reject(InvalidCredentials(), user=user)

    return attempt.succeed(user)


def login_with_email(db: Session, guard: AbuseGuard, context: LoginContext, *, email: str, password: str) -> LoginResult:
    email = users.normalize_email(email)
    attempt = LoginAttempt(db, guard, context, strategy=STRATEGY_EMAIL, target_name=email)
    attempt.ensure_allowed()

    user = users.find_by_email(db, email)
    if user is None:
        # Same error as a wrong password so emails cannot be enumerated.
        raise attempt.reject(InvalidCredentials())

    restaurant = None
    if user.role != ROLE_SUPER_ADMIN:
        restaurant = restaurants.find_for_user(db, user)
        attempt.target_tenant = restaurant.slug if restaurant else user.organization

    return _run_checks(attempt, user, restaurant, lambda u: users.check_password(u, password))


def login_by_name(
    db: Session,
    guard: AbuseGuard,
    context: LoginContext,
    *,
    restaurant_name: str,
    first_name: str,
    last_name: str,
    strategy: str = STRATEGY_NAME,
) -> LoginResult:
    """Kiosk login: the member's name within a tenant is the credential.

    Serves both the name form and the username/password form.
    """
    slug = slugify(restaurant_name)
    attempt = LoginAttempt(
        db,
        guard,
        context,
        strategy=strategy,
        target_tenant=slug,
        target_name=f"{(first_name or '').strip()} {(last_name or '').strip()}".strip(),
    )
    attempt.ensure_allowed()

    restaurant = restaurants.find_by_slug(db, slug) if slug else None
    if restaurant is None:
        raise attempt.reject(restaurants.RestaurantNotFound())

    # Deactivated members are looked up too so they get 403, not 404.
    user = users.find_by_name_and_org(db, first_name, last_name, restaurant.slug, include_inactive=True)
    if user is None:
        try:
            check_tenant_status(restaurant)
        except ApiError as exc:
            raise attempt.reject(exc) from None
        raise attempt.reject(TeamMemberNotFound())

    return _run_checks(attempt, user, restaurant)


def login_with_member_id(
    db: Session,
    guard: AbuseGuard,
    context: LoginContext,
    *,
    organization_id: str,
    member_id: int,
) -> LoginResult:
    """QR deep link for one pre-approved member; holding both ids is the credential."""
    attempt = LoginAttempt(
        db,
        guard,
        context,
        strategy=STRATEGY_MEMBER_ID,
        target_tenant=organization_id,
        target_name=str(member_id),
    )
    attempt.ensure_allowed()

    restaurant = restaurants.find_by_organization_id(db, organization_id)
    if restaurant is None:
        raise attempt.reject(restaurants.RestaurantNotFound())

    member = users.find_by_id(db, member_id)
    if (
        member is None
        or member.role != ROLE_TEAM_MEMBER
        or member.organization != restaurant.slug
        or member.head_chef_id != restaurant.head_chef_id
    ):
        raise attempt.reject(TeamMemberNotFound())

    return _run_checks(attempt, member, restaurant)


def qr_entry(db: Session, organization_id: str) -> dict[str, str]:
    """Resolve a tenant QR code to its kiosk login page. Authenticates nobody."""
    restaurant = restaurants.find_by_organization_id(db, organization_id)
    if restaurant is None or not restaurant.is_active:
        raise restaurants.RestaurantNotFound()
    check_tenant_status(restaurant)
    return {
        "loginUrl": kiosk_login_url(restaurant),
        "restaurantName": restaurant.name,
    }


def kiosk_login_url(restaurant: Restaurant) -> str:
    return f"{config.FRONTEND_URL}/login/{restaurant.slug}"


def refresh_session(db: Session, refresh_token: str) -> tokens.TokenPair:
    payload = tokens.verify_refresh_token(refresh_token)
    user = users.find_by_id(db, payload["userId"])
    if user is None or not user.is_active:
        raise TokenInvalid(reason="unknown_or_inactive_user")
    if user.status != STATUS_ACTIVE:
        raise TokenInvalid(reason=f"user_{user.status}")
    if user.role != ROLE_SUPER_ADMIN:
        check_tenant_status(restaurants.find_for_user(db, user))
    return tokens.issue_token_pair(user.id, user.role)
