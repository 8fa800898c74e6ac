from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from brigade.core.config import TRIAL_DAYS
from brigade.core.errors import NotFound, ValidationFailed
from brigade.models.restaurant import (
    RESTAURANT_STATUSES,
    RESTAURANT_TYPES,
    STATUS_ACTIVE,
    STATUS_SUSPENDED,
    STATUS_TRIAL,
    Restaurant,
)
from brigade.models.user import STATUS_ACTIVE as USER_STATUS_ACTIVE
from brigade.models.user import User
from brigade.services.permissions import ROLE_TEAM_MEMBER
from brigade.utils.clock import utcnow
from brigade.utils.slug import slugify, unique_slug

logger = logging.getLogger(__name__)

UNLIMITED = -1
PLAN_LIMITS: dict[str, dict[str, int]] = {
    "trial": {"max_team_members": 10, "max_recipes": 10},
    "pro": {"max_team_members": 50, "max_recipes": 200},
    "enterprise": {"max_team_members": UNLIMITED, "max_recipes": UNLIMITED},
}
DEFAULT_COUNTRY = "US"
LOCATION_FIELDS = ("address", "city", "state", "zipCode", "country")


class RestaurantNotFound(NotFound):
    error = "restaurant_not_found"
    message = "Restaurant not found"


def normalize_location(location: Optional[dict[str, Any]]) -> dict[str, Any]:
    data = {field: None for field in LOCATION_FIELDS}
    for field in LOCATION_FIELDS:
        value = (location or {}).get(field)
        if isinstance(value, str):
            value = value.strip() or None
        data[field] = value
    data["country"] = data["country"] or DEFAULT_COUNTRY
    return data


def _slug_exists(db: Session, slug: str) -> bool:
    return db.query(Restaurant.id).filter(Restaurant.slug == slug).first() is not None


def generate_slug(db: Session, name: str) -> str:
    base = slugify(name)
    if not base:
        raise ValidationFailed("Restaurant name must contain letters or digits", field="restaurantName")
    return unique_slug(base, lambda candidate: _slug_exists(db, candidate))


def create_restaurant(
    db: Session,
    *,
    name: str,
    head_chef_id: int,
    type: str = "other",
    location: Optional[dict[str, Any]] = None,
    plan_type: str = "trial",
    now: Optional[datetime] = None,
) -> Restaurant:
    name = (name or "").strip()
    if not name:
        raise ValidationFailed("Restaurant name is required", field="restaurantName")
    if type not in RESTAURANT_TYPES:
        raise ValidationFailed(f"Invalid restaurant type: {type}", field="restaurantType")

    now = now or utcnow()
    restaurant = Restaurant(
        name=name,
        slug=generate_slug(db, name),
        type=type,
        location=normalize_location(location),
        head_chef_id=head_chef_id,
        status=STATUS_TRIAL,
        trial_start_date=now,
        trial_end_date=now + timedelta(days=TRIAL_DAYS),
    )
    apply_plan(restaurant, "trial")
    if plan_type != "trial":
        apply_plan(restaurant, plan_type)
    db.add(restaurant)
    db.flush()
    logger.info("Restaurant created slug=%s head_chef_id=%s", restaurant.slug, head_chef_id)
    return restaurant


def apply_plan(restaurant: Restaurant, plan_type: str) -> Restaurant:
    limits = PLAN_LIMITS.get(plan_type)
    if limits is None:
        raise ValidationFailed(f"Unknown plan type: {plan_type}", field="planType")
    restaurant.plan_type = plan_type
    restaurant.max_team_members = limits["max_team_members"]
    restaurant.max_recipes = limits["max_recipes"]
    if plan_type != "trial":
        restaurant.status = STATUS_ACTIVE
    return restaurant


def find_by_slug(db: Session, slug: str) -> Optional[Restaurant]:
    return db.query(Restaurant).filter(Restaurant.slug == (slug or "").strip().lower()).first()


def find_by_organization_id(db: Session, organization_id: str) -> Optional[Restaurant]:
    return db.query(Restaurant).filter(Restaurant.organization_id == (organization_id or "").strip().lower()).first()


def get_by_slug_or_404(db: Session, slug: str) -> Restaurant:
    restaurant = find_by_slug(db, slug)
    if restaurant is None:
        raise RestaurantNotFound()
    return restaurant


def find_for_user(db: Session, user: User) -> Optional[Restaurant]:
    if user.restaurant_id is not None:
        restaurant = db.query(Restaurant).filter(Restaurant.id == user.restaurant_id).first()
        if restaurant is not None:
            return restaurant
    if user.organization:
        return find_by_slug(db, user.organization)
    return None


def set_status(restaurant: Restaurant, status: str) -> Restaurant:
    if status not in RESTAURANT_STATUSES:
        raise ValidationFailed(f"Invalid restaurant status: {status}", field="status")
    restaurant.status = status
    return restaurant


def active_member_count(db: Session, organization: str) -> int:
    return (
        db.query(func.count(User.id))
        .filter(
            User.organization == organization,
            User.role == ROLE_TEAM_MEMBER,
            User.status == USER_STATUS_ACTIVE,
            User.is_active.is_(True),
        )
        .scalar()
        or 0
    )


def has_member_capacity(db: Session, restaurant: Restaurant) -> bool:
    if restaurant.max_team_members == UNLIMITED:
        return True
    return active_member_count(db, restaurant.slug) < restaurant.max_team_members


def expire_trials(db: Session, now: Optional[datetime] = None) -> list[Restaurant]:
    """Suspend every tenant whose trial window has passed. Caller commits."""
    now = now or utcnow()
    expired = [
        restaurant
        for restaurant in db.query(Restaurant).filter(Restaurant.status == STATUS_TRIAL).all()
        if restaurant.is_trial_expired(now)
    ]
    for restaurant in expired:
        restaurant.status = STATUS_SUSPENDED
        logger.info("Trial expired; restaurant suspended slug=%s", restaurant.slug)
    return expired


def serialize_restaurant(restaurant: Restaurant) -> dict[str, Any]:
    return {
        "id": restaurant.id,
        "name": restaurant.name,
        "slug": restaurant.slug,
        "organizationId": restaurant.organization_id,
        "type": restaurant.type,
        "location": restaurant.location,
        "headChef": restaurant.head_chef_id,
        "status": restaurant.status,
        "trialStartDate": restaurant.trial_start_date,
        "trialEndDate": restaurant.trial_end_date,
        "settings": {
            "planType": restaurant.plan_type,
            "maxTeamMembers": restaurant.max_team_members,
            "maxRecipes": restaurant.max_recipes,
        },
        "isActive": restaurant.is_active,
        "createdAt": restaurant.created_at,
    }
