from __future__ import annotations

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from brigade.core.database import get_db
from brigade.core.errors import NotFound
from brigade.deps import require_super_admin
from brigade.models.restaurant import Restaurant
from brigade.models.user import User
from brigade.schemas.auth import AdminUserUpdate, RestaurantStatusUpdate
from brigade.services import login_audit, restaurants, users

router = APIRouter(prefix="/admin", tags=["admin"])
logger = logging.getLogger(__name__)


@router.get("/users")
def list_users(
    organization: Optional[str] = None,
    role: Optional[str] = None,
    status: Optional[str] = None,
    limit: int = Query(200, ge=1, le=500),
    _admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    query = db.query(User)
    if organization:
        query = query.filter(User.organization == organization)
    if role:
        query = query.filter(User.role == role)
    if status:
        query = query.filter(User.status == status)
    rows = query.order_by(User.id.asc()).limit(limit).all()
    return {"users": [users.sanitize_user(entry) for entry in rows]}


@router.put("/users/{user_id}")
def update_user(
    user_id: int,
    payload: AdminUserUpdate,
    admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    user = users.find_by_id(db, user_id)
    if user is None:
        raise NotFound("User not found", error="user_not_found")
    if payload.role is not None:
        # Permissions follow the role; overrides are dropped on a role change.
        user.role = payload.role
    if payload.is_active is not None:
        user.is_active = payload.is_active
    db.commit()
    db.refresh(user)
    logger.info("User updated by super-admin user_id=%s admin_id=%s", user.id, admin.id)
    return {"user": users.sanitize_user(user)}


@router.get("/restaurants")
def list_restaurants(
    status: Optional[str] = None,
    _admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    query = db.query(Restaurant)
    if status:
        query = query.filter(Restaurant.status == status)
    rows = query.order_by(Restaurant.id.asc()).all()
    return {"restaurants": [restaurants.serialize_restaurant(entry) for entry in rows]}


@router.put("/restaurants/{slug}/status")
def set_restaurant_status(
    slug: str,
    payload: RestaurantStatusUpdate,
    admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    restaurant = restaurants.get_by_slug_or_404(db, slug)
    previous = restaurant.status
    restaurants.set_status(restaurant, payload.status)
    db.commit()
    db.refresh(restaurant)
    logger.info(
        "Restaurant status changed slug=%s from=%s to=%s admin_id=%s",
        restaurant.slug,
        previous,
        restaurant.status,
        admin.id,
    )
    return {"restaurant": restaurants.serialize_restaurant(restaurant)}


@router.post("/restaurants/expire-trials")
def expire_trials(_admin: User = Depends(require_super_admin), db: Session = Depends(get_db)):
    expired = restaurants.expire_trials(db)
    db.commit()
    return {"suspended": [restaurant.slug for restaurant in expired]}


@router.get("/login-audit")
def list_login_audit(
    ip: Optional[str] = None,
    tenant: Optional[str] = None,
    outcome: Optional[str] = None,
    limit: int = Query(100, ge=1, le=500),
    _admin: User = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    rows = login_audit.list_login_attempts(db, client_ip=ip, tenant=tenant, outcome=outcome, limit=limit)
    return {"attempts": [login_audit.serialize_attempt(entry) for entry in rows]}
