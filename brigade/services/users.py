from __future__ import annotations

import re
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from brigade.core.errors import DuplicateEmail, ValidationFailed
from brigade.models.user import STATUS_ACTIVE, STATUS_PENDING, User
from brigade.services.passwords import verify_password as _verify_hash
from brigade.services.permissions import ROLE_TEAM_MEMBER, normalize_role

NAME_PATTERN = re.compile(r"^[A-Za-z\s\-']{1,50}$")
MIN_PASSWORD_LENGTH = 6

# Fields the API exposes for a user; never the hash or one-time tokens.
PUBLIC_FIELDS = (
    "id",
    "email",
    "first_name",
    "last_name",
    "name",
    "role",
    "organization",
    "restaurant_id",
    "head_chef_id",
    "status",
    "is_active",
    "permissions",
    "email_verified",
    "last_login",
    "qr_access",
    "qr_access_date",
    "created_at",
)

_CAMEL_CASE = {
    "first_name": "firstName",
    "last_name": "lastName",
    "restaurant_id": "restaurant",
    "head_chef_id": "headChef",
    "is_active": "isActive",
    "email_verified": "emailVerified",
    "last_login": "lastLogin",
    "qr_access": "qrAccess",
    "qr_access_date": "qrAccessDate",
    "created_at": "createdAt",
}


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


def clean_name(value: str, field: str) -> str:
    cleaned = (value or "").strip()
    if not NAME_PATTERN.match(cleaned):
        raise ValidationFailed(
            f"{field} must be 1-50 characters and contain only letters, spaces, hyphens and apostrophes",
            field=field,
        )
    return cleaned


def find_by_email(db: Session, email: str) -> Optional[User]:
    return db.query(User).filter(User.email == normalize_email(email)).first()


def find_by_id(db: Session, user_id: int) -> Optional[User]:
    return db.query(User).filter(User.id == user_id).first()


def find_by_name_and_org(
    db: Session,
    first_name: str,
    last_name: str,
    organization: str,
    *,
    include_inactive: bool = False,
) -> Optional[User]:
    """Case-insensitive exact match on both name parts within one tenant.

    Only team members are considered. The oldest match wins when duplicates exist.
    """
    query = db.query(User).filter(
        func.lower(User.first_name) == (first_name or "").strip().lower(),
        func.lower(User.last_name) == (last_name or "").strip().lower(),
        User.organization == organization,
        User.role == ROLE_TEAM_MEMBER,
    )
    if not include_inactive:
        query = query.filter(User.is_active.is_(True))
    return query.order_by(User.id.asc()).first()


def team_member_name_taken(db: Session, first_name: str, last_name: str, organization: str) -> bool:
    return find_by_name_and_org(db, first_name, last_name, organization, include_inactive=True) is not None


def create_user(
    db: Session,
    *,
    email: str,
    password: str,
    role: str = ROLE_TEAM_MEMBER,
    status: Optional[str] = None,
    first_name: Optional[str] = None,
    last_name: Optional[str] = None,
    name: Optional[str] = None,
    organization: Optional[str] = None,
    restaurant_id: Optional[int] = None,
    head_chef_id: Optional[int] = None,
    **fields: Any,
) -> User:
    email = normalize_email(email)
    if not email:
        raise ValidationFailed("Email is required", field="email")
    if len(password or "") < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(
            f"Password must be at least {MIN_PASSWORD_LENGTH} characters long",
            field="password",
        )
    if find_by_email(db, email) is not None:
        raise DuplicateEmail()

    role = normalize_role(role)
    if status is None:
        status = STATUS_PENDING if role == ROLE_TEAM_MEMBER else STATUS_ACTIVE

    user = User(
        email=email,
        role=role,
        status=status,
        first_name=first_name,
        last_name=last_name,
        name=name or f"{first_name or ''} {last_name or ''}".strip() or email,
        organization=organization,
        restaurant_id=restaurant_id,
        head_chef_id=head_chef_id,
        **fields,
    )
    user.password = password
    db.add(user)
    try:
        db.flush()
    except IntegrityError as exc:
        db.rollback()
        raise DuplicateEmail() from exc
    return user


def check_password(user: User, candidate: str) -> bool:
    return _verify_hash(candidate, user.password_hash)


def sanitize_user(user: User) -> dict[str, Any]:
    data: dict[str, Any] = {}
    for field in PUBLIC_FIELDS:
        value = getattr(user, field, None)
        data[_CAMEL_CASE.get(field, field)] = value
    data["permissions"] = dict(user.permissions or {})
    return data
