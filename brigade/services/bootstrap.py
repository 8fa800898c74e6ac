from __future__ import annotations

import logging

from sqlalchemy.orm import Session

from brigade.models.user import STATUS_ACTIVE, User
from brigade.services import users
from brigade.services.passwords import looks_hashed
from brigade.services.permissions import ROLE_SUPER_ADMIN

logger = logging.getLogger(__name__)
BOOTSTRAP_PREFIX = "[SUPER_ADMIN_BOOTSTRAP]"


def upsert_super_admin(
    db: Session,
    *,
    email: str,
    name: str,
    password: str | None,
) -> tuple[User, bool]:
    """Create or refresh the platform super-admin. Returns ``(user, created)``."""
    email = users.normalize_email(email)
    existing = users.find_by_email(db, email)
    if existing:
        existing.name = name
        existing.role = ROLE_SUPER_ADMIN
        existing.status = STATUS_ACTIVE
        existing.is_active = True
        if password:
            _store_password(existing, password)
        db.commit()
        db.refresh(existing)
        logger.info("%s exists id=%s email=%s", BOOTSTRAP_PREFIX, existing.id, existing.email)
        return existing, False

    if not password:
        raise ValueError("A password is required to create the super-admin.")

    admin = User(
        email=email,
        name=name,
        role=ROLE_SUPER_ADMIN,
        status=STATUS_ACTIVE,
        is_active=True,
        email_verified=True,
    )
    _store_password(admin, password)
    db.add(admin)
    db.commit()
    db.refresh(admin)
    logger.info("%s created id=%s email=%s", BOOTSTRAP_PREFIX, admin.id, admin.email)
    return admin, True


def _store_password(user: User, password: str) -> None:
    if looks_hashed(password):
        logger.info("%s password already hashed; storing as-is", BOOTSTRAP_PREFIX)
        user.password_hash = password
        return
    user.password = password
