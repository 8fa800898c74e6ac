from __future__ import annotations

from datetime import datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import synonym

from brigade.core.database import Base
from brigade.utils.clock import utcnow

RESTAURANT_TYPES = (
    "fast-casual",
    "fine-dining",
    "cafe",
    "bakery",
    "food-truck",
    "catering",
    "other",
)

STATUS_TRIAL = "trial"
STATUS_ACTIVE = "active"
STATUS_SUSPENDED = "suspended"
STATUS_CANCELLED = "cancelled"
RESTAURANT_STATUSES = (STATUS_TRIAL, STATUS_ACTIVE, STATUS_SUSPENDED, STATUS_CANCELLED)
BLOCKED_STATUSES = frozenset({STATUS_SUSPENDED, STATUS_CANCELLED})


class Restaurant(Base):
    __tablename__ = "restaurants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    slug = Column(String, nullable=False, unique=True, index=True)
    # Older clients address tenants by organizationId; it is the slug.
    organization_id = synonym("slug")

    type = Column(String, nullable=False, default="other")
    location = Column(JSON, nullable=True)
    head_chef_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)

    status = Column(String, nullable=False, default=STATUS_TRIAL)
    trial_start_date = Column(DateTime, nullable=True)
    trial_end_date = Column(DateTime, nullable=True)

    plan_type = Column(String, nullable=False, default="trial")
    max_team_members = Column(Integer, nullable=False, default=10)
    max_recipes = Column(Integer, nullable=False, default=10)

    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=utcnow)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    def is_trial_expired(self, now: datetime | None = None) -> bool:
        now = now or utcnow()
        return self.status == STATUS_TRIAL and self.trial_end_date is not None and now > self.trial_end_date

    @property
    def is_blocked(self) -> bool:
        return self.status in BLOCKED_STATUSES
