from __future__ import annotations

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    event,
)
from sqlalchemy.orm import validates

from brigade.core.database import Base
from brigade.services.passwords import hash_password
from brigade.services.permissions import (
    ROLE_TEAM_MEMBER,
    ROLES,
    effective_permissions,
    merge_override,
    normalize_role,
)
from brigade.utils.clock import utcnow

STATUS_PENDING = "pending"
STATUS_ACTIVE = "active"
STATUS_REJECTED = "rejected"
USER_STATUSES = (STATUS_PENDING, STATUS_ACTIVE, STATUS_REJECTED)


class User(Base):
    __tablename__ = "users"
    __table_args__ = (
        Index("ix_users_team_member_lookup", "organization", "role", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True, index=True)
    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    name = Column(String, nullable=False, default="")
    password_hash = Column(String, nullable=False)

    role = Column(String, nullable=False, default=ROLE_TEAM_MEMBER)
    # Canonical tenant key (restaurant slug).
    organization = Column(String, nullable=True, index=True)
    # No FK: restaurants.head_chef_id already points back at users.
    restaurant_id = Column(Integer, nullable=True, index=True)
    head_chef_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    status = Column(String, nullable=False, default=STATUS_PENDING)
    is_active = Column(Boolean, nullable=False, default=True)

    permissions = Column(JSON, nullable=False, default=dict)
    permission_overrides = Column(JSON, nullable=True)

    last_login = Column(DateTime, nullable=True)
    qr_access = Column(Boolean, nullable=False, default=False)
    qr_access_date = Column(DateTime, nullable=True)

    email_verified = Column(Boolean, nullable=False, default=False)
    email_verification_token = Column(String, nullable=True, index=True)
    email_verification_expires = Column(DateTime, nullable=True)
    password_reset_token = Column(String, nullable=True, index=True)
    password_reset_expires = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def password(self):
        raise AttributeError("password is write-only")

    @password.setter
    def password(self, plaintext: str) -> None:
        self.password_hash = hash_password(plaintext)

    @validates("role")
    def _apply_role(self, _key, value):
        role = normalize_role(value)
        if role not in ROLES:
            raise ValueError(f"Unknown role: {value}")
        if self.role is not None and normalize_role(self.role) != role:
            self.permission_overrides = None
        self.permissions = effective_permissions(role, self.permission_overrides)
        return role

    @validates("email")
    def _normalize_email(self, _key, value):
        return (value or "").strip().lower()

    @validates("status")
    def _validate_status(self, _key, value):
        if value not in USER_STATUSES:
            raise ValueError(f"Unknown status: {value}")
        return value

    def apply_permission_override(self, patch) -> dict[str, bool]:
        self.permission_overrides = merge_override(self.permission_overrides, patch)
        self.permissions = effective_permissions(self.role, self.permission_overrides)
        return self.permissions

    def has_permission(self, name: str) -> bool:
        return bool((self.permissions or {}).get(name, False))


@event.listens_for(User, "before_insert")
@event.listens_for(User, "before_update")
def _sync_display_name(_mapper, _connection, target: User) -> None:
    if target.first_name or target.last_name:
        target.name = f"{(target.first_name or '').strip()} {(target.last_name or '').strip()}".strip()
    if not target.permissions:
        target.permissions = effective_permissions(target.role, target.permission_overrides)
