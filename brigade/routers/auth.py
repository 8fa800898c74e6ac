# brigade/routers/auth.py
from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from brigade.core.abuse_guard import AbuseGuard
from brigade.core.database import get_db
from brigade.deps import get_abuse_guard, get_current_user, get_login_context
from brigade.models.user import User
from brigade.schemas.auth import (
    AcceptInvitePayload,
    ForgotPasswordPayload,
    LoginByNamePayload,
    LoginPayload,
    RefreshTokenPayload,
    RegisterPayload,
    ResetPasswordPayload,
    TeamLoginPayload,
)
from brigade.services import account, authentication, invites, onboarding, restaurants, team, users
from brigade.services.authentication import LoginContext

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


def signup_response(payload: RegisterPayload, db: Session) -> dict:
    head_chef, restaurant, token_pair = onboarding.register_head_chef(
        db,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        restaurant_name=payload.restaurant_name,
        restaurant_type=payload.restaurant_type,
        location=payload.location.model_dump(by_alias=True) if payload.location else None,
        plan_type=payload.plan_type,
    )
    return {
        "user": users.sanitize_user(head_chef),
        "restaurant": restaurants.serialize_restaurant(restaurant),
        **token_pair.as_dict(),
    }


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(payload: RegisterPayload, db: Session = Depends(get_db)):
    return signup_response(payload, db)


@router.post("/login")
def login(
    payload: LoginPayload,
    db: Session = Depends(get_db),
    guard: AbuseGuard = Depends(get_abuse_guard),
    context: LoginContext = Depends(get_login_context),
):
    result = authentication.login_with_email(db, guard, context, email=payload.email, password=payload.password)
    return result.as_response()


@router.post("/login-by-name")
def login_by_name(
    payload: LoginByNamePayload,
    db: Session = Depends(get_db),
    guard: AbuseGuard = Depends(get_abuse_guard),
    context: LoginContext = Depends(get_login_context),
):
    result = authentication.login_by_name(
        db,
        guard,
        context,
        restaurant_name=payload.restaurant_name,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    return result.as_response()


@router.post("/team-login")
def team_login(
    payload: TeamLoginPayload,
    db: Session = Depends(get_db),
    guard: AbuseGuard = Depends(get_abuse_guard),
    context: LoginContext = Depends(get_login_context),
):
    # Same routine as login-by-name: username is the first name, password the last name.
    result = authentication.login_by_name(
        db,
        guard,
        context,
        restaurant_name=payload.restaurant_name,
        first_name=payload.username,
        last_name=payload.password,
        strategy=authentication.STRATEGY_USERNAME,
    )
    return result.as_response()


@router.post("/login/{organization_id}/{member_id}")
def login_with_member_id(
    organization_id: str,
    member_id: int,
    db: Session = Depends(get_db),
    guard: AbuseGuard = Depends(get_abuse_guard),
    context: LoginContext = Depends(get_login_context),
):
    result = authentication.login_with_member_id(
        db,
        guard,
        context,
        organization_id=organization_id,
        member_id=member_id,
    )
    return result.as_response()


@router.post("/qr/{organization_id}")
def qr_entry(organization_id: str, db: Session = Depends(get_db)):
    return authentication.qr_entry(db, organization_id)


@router.post("/refresh-token")
def refresh_token(payload: RefreshTokenPayload, db: Session = Depends(get_db)):
    return authentication.refresh_session(db, payload.refresh_token).as_dict()


@router.post("/logout")
def logout(user: User = Depends(get_current_user)):
    # Tokens are stateless; the client discards them.
    logger.info("Logout user_id=%s", user.id)
    return {"message": "Logged out successfully"}


@router.get("/me")
def me(user: User = Depends(get_current_user)):
    return {"user": users.sanitize_user(user)}


@router.post("/forgot-password")
def forgot_password(payload: ForgotPasswordPayload, db: Session = Depends(get_db)):
    return {"message": account.request_password_reset(db, payload.email)}


@router.post("/reset-password")
def reset_password(payload: ResetPasswordPayload, db: Session = Depends(get_db)):
    account.reset_password(db, payload.token, payload.new_password)
    return {"message": "Password has been reset successfully"}


@router.post("/accept-invite", status_code=status.HTTP_201_CREATED)
def accept_invite(payload: AcceptInvitePayload, db: Session = Depends(get_db)):
    claims = invites.decode_invite_token(payload.token)
    head_chef = team.find_head_chef(db, claims["headChefId"])
    if head_chef is None or head_chef.organization != claims.get("organization"):
        raise invites.InviteInvalid()
    member = team.create_pending_member(db, head_chef, payload.first_name, payload.last_name)
    db.commit()
    db.refresh(member)
    return {"id": member.id, "status": member.status, "userId": member.id}
