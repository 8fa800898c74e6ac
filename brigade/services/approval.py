from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from brigade.core.errors import Conflict, NotFound, PermissionDenied
from brigade.models.user import STATUS_ACTIVE, STATUS_PENDING, STATUS_REJECTED, User
from brigade.services import restaurants, tokens
from brigade.services.permissions import ROLE_TEAM_MEMBER

logger = logging.getLogger(__name__)

ALLOWED_TRANSITIONS = {
    STATUS_PENDING: frozenset({STATUS_ACTIVE, STATUS_REJECTED}),
}


class InvalidStatusTransition(Conflict):
    status_code = 409
    error = "invalid_status_transition"
    message = "Status transition not allowed"


class PlanLimitReached(Conflict):
    status_code = 409
    error = "plan_limit_reached"
    message = "Team member limit reached for the current plan"


class MemberNotFound(NotFound):
    error = "team_member_not_found"
    message = "Team member not found"


def can_transition(current: str, target: str) -> bool:
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def ensure_owns_member(head_chef: User, member: Optional[User]) -> User:
    """Both the headChef reference and the organization must match."""
    if member is None or member.role != ROLE_TEAM_MEMBER:
        raise MemberNotFound()
    if member.head_chef_id != head_chef.id or member.organization != head_chef.organization:
        logger.warning(
            "Cross-tenant team access denied head_chef_id=%s member_id=%s",
            head_chef.id,
            member.id,
        )
        raise MemberNotFound()
    return member


def get_owned_member(db: Session, head_chef: User, member_id: int) -> User:
    member = db.query(User).filter(User.id == member_id).first()
    return ensure_owns_member(head_chef, member)


def transition(db: Session, head_chef: User, member: User, target: str) -> User:
    ensure_owns_member(head_chef, member)
    if member.status == target:
        return member
    if not can_transition(member.status, target):
        raise InvalidStatusTransition(
            f"Cannot change status from {member.status} to {target}",
            current=member.status,
            requested=target,
        )

    if target == STATUS_ACTIVE:
        restaurant = restaurants.find_for_user(db, head_chef)
        if restaurant is not None and not restaurants.has_member_capacity(db, restaurant):
            raise PlanLimitReached(maxTeamMembers=restaurant.max_team_members)

    previous = member.status
    member.status = target
    logger.info(
        "Team member status changed member_id=%s from=%s to=%s by=%s",
        member.id,
        previous,
        target,
        head_chef.id,
    )
    return member


def approve(db: Session, head_chef: User, member: User) -> User:
    """Move a pending member to active. Issues nothing; the caller commits."""
    return transition(db, head_chef, member, STATUS_ACTIVE)


def reject(db: Session, head_chef: User, member: User) -> User:
    return transition(db, head_chef, member, STATUS_REJECTED)


def approve_and_issue_tokens(db: Session, head_chef: User, member: User) -> tokens.TokenPair:
    """Approve, then hand back a session for the member (shared-device onboarding)."""
    approve(db, head_chef, member)
    db.flush()
    return tokens.issue_token_pair(member.id, member.role)


def require_head_chef_scope(user: User) -> User:
    if not user.organization:
        raise PermissionDenied("No restaurant is associated with this account", error="no_organization")
    return user
