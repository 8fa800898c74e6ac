from __future__ import annotations

import logging
import re
import secrets
import time
from typing import Any, Mapping, Optional

from sqlalchemy.orm import Session

from brigade.core.errors import Conflict, NotFound, ValidationFailed
from brigade.models.user import STATUS_PENDING, User
from brigade.services import approval, users
from brigade.services.permissions import ROLE_HEAD_CHEF, ROLE_TEAM_MEMBER

logger = logging.getLogger(__name__)

GENERATED_EMAIL_DOMAIN = "chef.local"
_EMAIL_PART = re.compile(r"[^a-z0-9]")


class HeadChefNotFound(NotFound):
    error = "head_chef_not_found"
    message = "Head chef not found"


class DuplicateTeamMemberName(Conflict):
    error = "duplicate_name"
    message = "A team member with this name already exists in this restaurant"


def _generated_email(first_name: str, last_name: str) -> str:
    first = _EMAIL_PART.sub("", first_name.lower()) or "member"
    last = _EMAIL_PART.sub("", last_name.lower()) or "member"
    return f"{first}.{last}.{int(time.time() * 1000)}{secrets.randbelow(1000):03d}@{GENERATED_EMAIL_DOMAIN}"


def find_head_chef(db: Session, head_chef_id: int) -> Optional[User]:
    return (
        db.query(User)
        .filter(User.id == head_chef_id, User.role == ROLE_HEAD_CHEF, User.is_active.is_(True))
        .first()
    )


def create_pending_member(db: Session, head_chef: User, first_name: str, last_name: str) -> User:
    """New team member awaiting approval. Kiosk members log in by name, so the
    email and password are generated and never shown."""
    first_name = users.clean_name(first_name, "firstName")
    last_name = users.clean_name(last_name, "lastName")
    if not head_chef.organization:
        raise ValidationFailed("Head chef has no restaurant yet", error="no_organization")
    if users.team_member_name_taken(db, first_name, last_name, head_chef.organization):
        raise DuplicateTeamMemberName()

    member = users.create_user(
        db,
        email=_generated_email(first_name, last_name),
        password=secrets.token_urlsafe(24),
        role=ROLE_TEAM_MEMBER,
        status=STATUS_PENDING,
        first_name=first_name,
        last_name=last_name,
        organization=head_chef.organization,
        restaurant_id=head_chef.restaurant_id,
        head_chef_id=head_chef.id,
    )
    logger.info(
        "Team member access requested member_id=%s head_chef_id=%s organization=%s",
        member.id,
        head_chef.id,
        head_chef.organization,
    )
    return member


def request_access(db: Session, *, head_chef_id: int, first_name: str, last_name: str) -> User:
    head_chef = find_head_chef(db, head_chef_id)
    if head_chef is None:
        raise HeadChefNotFound()
    return create_pending_member(db, head_chef, first_name, last_name)


def list_members(db: Session, head_chef: User, *, status: Optional[str] = None, include_inactive: bool = False) -> list[User]:
    query = db.query(User).filter(
        User.head_chef_id == head_chef.id,
        User.organization == head_chef.organization,
        User.role == ROLE_TEAM_MEMBER,
    )
    if status:
        query = query.filter(User.status == status)
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    return query.order_by(User.created_at.asc(), User.id.asc()).all()


def update_member(
    db: Session,
    head_chef: User,
    member: User,
    *,
    changes: Mapping[str, Any],
) -> User:
    """Apply a team-management patch. Status changes go through the approval workflow."""
    approval.ensure_owns_member(head_chef, member)

    if changes.get("firstName") is not None:
        member.first_name = users.clean_name(changes["firstName"], "firstName")
    if changes.get("lastName") is not None:
        member.last_name = users.clean_name(changes["lastName"], "lastName")
    if changes.get("isActive") is not None:
        member.is_active = bool(changes["isActive"])
    if changes.get("permissions"):
        try:
            member.apply_permission_override(changes["permissions"])
        except ValueError as exc:
            raise ValidationFailed(str(exc), field="permissions") from exc
    if changes.get("status") is not None:
        approval.transition(db, head_chef, member, changes["status"])
    return member


def deactivate_member(db: Session, head_chef: User, member: User) -> User:
    approval.ensure_owns_member(head_chef, member)
    member.is_active = False
    logger.info("Team member deactivated member_id=%s by=%s", member.id, head_chef.id)
    return member
