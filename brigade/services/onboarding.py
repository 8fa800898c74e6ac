from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Any, Optional

from sqlalchemy.orm import Session

from brigade.core import config
from brigade.models.restaurant import Restaurant
from brigade.models.user import STATUS_ACTIVE, User
from brigade.services import mailer, restaurants, tokens, users
from brigade.services.permissions import ROLE_HEAD_CHEF
from brigade.utils.clock import utcnow

logger = logging.getLogger(__name__)


def register_head_chef(
    db: Session,
    *,
    email: str,
    password: str,
    first_name: str,
    last_name: str,
    restaurant_name: str,
    restaurant_type: str = "other",
    location: Optional[dict[str, Any]] = None,
    plan_type: str = "trial",
    mail_provider: Optional[mailer.MailProvider] = None,
) -> tuple[User, Restaurant, tokens.TokenPair]:
    """Create the head chef and their restaurant in one transaction."""
    first_name = users.clean_name(first_name, "firstName")
    last_name = users.clean_name(last_name, "lastName")

    try:
        head_chef = users.create_user(
            db,
            email=email,
            password=password,
            role=ROLE_HEAD_CHEF,
            status=STATUS_ACTIVE,
            first_name=first_name,
            last_name=last_name,
            email_verification_token=secrets.token_urlsafe(32),
            email_verification_expires=utcnow() + timedelta(hours=config.EMAIL_VERIFICATION_EXPIRE_HOURS),
        )
        restaurant = restaurants.create_restaurant(
            db,
            name=restaurant_name,
            head_chef_id=head_chef.id,
            type=restaurant_type,
            location=location,
            plan_type=plan_type,
        )
        head_chef.restaurant_id = restaurant.id
        head_chef.organization = restaurant.slug
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(head_chef)
    db.refresh(restaurant)
    logger.info("Head chef registered user_id=%s restaurant=%s", head_chef.id, restaurant.slug)

    provider = mail_provider or mailer.get_mail_provider()
    mailer.send_verification_email(
        provider,
        to=head_chef.email,
        name=head_chef.name,
        url=f"{config.FRONTEND_URL}/verify-email/{head_chef.email_verification_token}",
    )
    return head_chef, restaurant, tokens.issue_token_pair(head_chef.id, head_chef.role)
