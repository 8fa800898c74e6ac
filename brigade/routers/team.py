from __future__ import annotations

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from brigade.core.database import get_db
from brigade.deps import require_permission
from brigade.models.user import STATUS_ACTIVE, STATUS_PENDING, User
from brigade.schemas.auth import PendingDecision, TeamMemberUpdate
from brigade.services import approval, authentication, invites, restaurants, team, users

router = APIRouter(prefix="/team", tags=["team"])
logger = logging.getLogger(__name__)

manage_team = require_permission("canManageTeam")


def _owner(user: User) -> User:
    return approval.require_head_chef_scope(user)


def _activation_extras(db: Session, head_chef: User, member: User, *, issue_tokens: bool) -> dict:
    """Approving can hand back a session or just the kiosk URL."""
    if issue_tokens:
        token_pair = approval.approve_and_issue_tokens(db, head_chef, member)
        db.commit()
        db.refresh(member)
        return {"loginData": {"user": users.sanitize_user(member), **token_pair.as_dict()}}

    approval.approve(db, head_chef, member)
    db.commit()
    db.refresh(member)
    restaurant = restaurants.find_for_user(db, head_chef)
    return {"loginUrl": authentication.kiosk_login_url(restaurant)} if restaurant else {}


@router.get("")
def list_team(user: User = Depends(manage_team), db: Session = Depends(get_db)):
    head_chef = _owner(user)
    members = team.list_members(db, head_chef, include_inactive=True)
    return {"members": [users.sanitize_user(member) for member in members]}


@router.get("/pending")
def list_pending(user: User = Depends(manage_team), db: Session = Depends(get_db)):
    head_chef = _owner(user)
    members = team.list_members(db, head_chef, status=STATUS_PENDING)
    return {"members": [users.sanitize_user(member) for member in members]}


@router.put("/pending/{member_id}")
def decide_pending(
    member_id: int,
    payload: PendingDecision,
    user: User = Depends(manage_team),
    db: Session = Depends(get_db),
):
    head_chef = _owner(user)
    member = approval.get_owned_member(db, head_chef, member_id)
    if member.status != STATUS_PENDING:
        raise approval.InvalidStatusTransition(
            f"Cannot change status from {member.status} to {payload.status}",
            current=member.status,
            requested=payload.status,
        )

    if payload.status == STATUS_ACTIVE:
        extras = _activation_extras(db, head_chef, member, issue_tokens=payload.issue_tokens)
        return {"member": users.sanitize_user(member), **extras}

    approval.reject(db, head_chef, member)
    db.commit()
    db.refresh(member)
    return {"member": users.sanitize_user(member)}


@router.get("/invite-link")
def invite_link(user: User = Depends(manage_team)):
    head_chef = _owner(user)
    token = invites.create_invite_token(head_chef_id=head_chef.id, organization=head_chef.organization)
    return {"url": invites.invite_url(token), "token": token}


@router.get("/login-link")
def login_link(user: User = Depends(manage_team), db: Session = Depends(get_db)):
    head_chef = _owner(user)
    restaurant = restaurants.find_for_user(db, head_chef)
    if restaurant is None:
        raise restaurants.RestaurantNotFound()
    members = team.list_members(db, head_chef, status=STATUS_ACTIVE)
    return {
        "loginUrl": authentication.kiosk_login_url(restaurant),
        "restaurantName": restaurant.name,
        "slug": restaurant.slug,
        "members": [
            {"id": member.id, "firstName": member.first_name, "lastName": member.last_name}
            for member in members
        ],
    }


@router.put("/{member_id}")
def update_member(
    member_id: int,
    payload: TeamMemberUpdate,
    user: User = Depends(manage_team),
    db: Session = Depends(get_db),
):
    head_chef = _owner(user)
    member = approval.get_owned_member(db, head_chef, member_id)
    changes = payload.model_dump(by_alias=True, exclude_unset=True, exclude={"issue_tokens", "status"})

    activating = payload.status == STATUS_ACTIVE and member.status == STATUS_PENDING
    team.update_member(db, head_chef, member, changes=changes)
    if payload.status is not None and not activating:
        approval.transition(db, head_chef, member, payload.status)

    if activating:
        extras = _activation_extras(db, head_chef, member, issue_tokens=payload.issue_tokens)
        return {"member": users.sanitize_user(member), **extras}

    db.commit()
    db.refresh(member)
    return {"member": users.sanitize_user(member)}


@router.delete("/{member_id}")
def delete_member(member_id: int, user: User = Depends(manage_team), db: Session = Depends(get_db)):
    head_chef = _owner(user)
    member = approval.get_owned_member(db, head_chef, member_id)
    team.deactivate_member(db, head_chef, member)
    db.commit()
    return {"message": "Team member deactivated", "id": member.id}
