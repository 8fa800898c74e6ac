from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from brigade.core.database import get_db
from brigade.deps import get_current_user, require_permission
from brigade.models.user import User
from brigade.routers.auth import signup_response
from brigade.schemas.auth import PlanUpdate, RegisterPayload, RestaurantUpdate
from brigade.services import account, restaurants, users

router = APIRouter(prefix="/restaurants", tags=["restaurants"])


def _own_restaurant(db: Session, user: User):
    restaurant = restaurants.find_for_user(db, user)
    if restaurant is None:
        raise restaurants.RestaurantNotFound()
    return restaurant


@router.post("", status_code=status.HTTP_201_CREATED)
def create_restaurant(payload: RegisterPayload, db: Session = Depends(get_db)):
    return signup_response(payload, db)


@router.get("/verify-email/{token}")
def verify_email(token: str, db: Session = Depends(get_db)):
    user = account.verify_email(db, token)
    return {"message": "Email verified successfully", "user": users.sanitize_user(user)}


@router.get("/me")
def get_my_restaurant(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return {"restaurant": restaurants.serialize_restaurant(_own_restaurant(db, user))}


@router.put("/me")
def update_my_restaurant(
    payload: RestaurantUpdate,
    user: User = Depends(require_permission("canAccessAdmin")),
    db: Session = Depends(get_db),
):
    restaurant = _own_restaurant(db, user)
    if payload.name is not None:
        # The slug is the tenant key and stays stable across renames.
        restaurant.name = payload.name
    if payload.type is not None:
        restaurant.type = payload.type
    if payload.location is not None:
        restaurant.location = restaurants.normalize_location(payload.location.model_dump(by_alias=True))
    db.commit()
    db.refresh(restaurant)
    return {"restaurant": restaurants.serialize_restaurant(restaurant)}


@router.put("/me/plan")
def change_plan(
    payload: PlanUpdate,
    user: User = Depends(require_permission("canAccessAdmin")),
    db: Session = Depends(get_db),
):
    restaurant = _own_restaurant(db, user)
    restaurants.apply_plan(restaurant, payload.plan_type)
    db.commit()
    db.refresh(restaurant)
    return {"restaurant": restaurants.serialize_restaurant(restaurant)}
