from __future__ import annotations

import logging
import secrets
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from brigade.core import config
from brigade.core.errors import InvalidCredentials, ValidationFailed
from brigade.models.user import User
from brigade.services import mailer, users
from brigade.utils.clock import utcnow

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = "If an account with that email exists, a password reset link has been sent."


class ResetTokenInvalid(ValidationFailed):
    error = "invalid_reset_token"
    message = "Password reset token is invalid or has expired"


class VerificationTokenInvalid(ValidationFailed):
    error = "invalid_verification_token"
    message = "Verification link is invalid or has expired"


def verify_email(db: Session, token: str) -> User:
    user = (
        db.query(User)
        .filter(User.email_verification_token == token, User.email_verification_token.isnot(None))
        .first()
    )
    if user is None or user.email_verification_expires is None or user.email_verification_expires < utcnow():
        raise VerificationTokenInvalid()
    user.email_verified = True
    user.email_verification_token = None
    user.email_verification_expires = None
    db.commit()
    logger.info("Email verified user_id=%s", user.id)
    return user


def request_password_reset(db: Session, email: str, *, mail_provider: Optional[mailer.MailProvider] = None) -> str:
    """Always returns the same message whether or not the email is known."""
    user = users.find_by_email(db, email)
    if user is None or not user.is_active:
        logger.info("Password reset requested for unknown or inactive account")
        return FORGOT_PASSWORD_MESSAGE

    user.password_reset_token = secrets.token_urlsafe(32)
    user.password_reset_expires = utcnow() + timedelta(minutes=config.PASSWORD_RESET_EXPIRE_MINUTES)
    db.commit()

    provider = mail_provider or mailer.get_mail_provider()
    mailer.send_password_reset_email(
        provider,
        to=user.email,
        name=user.name,
        url=f"{config.FRONTEND_URL}/reset-password/{user.password_reset_token}",
    )
    return FORGOT_PASSWORD_MESSAGE


def reset_password(db: Session, token: str, new_password: str) -> User:
    user = (
        db.query(User)
        .filter(User.password_reset_token == token, User.password_reset_token.isnot(None))
        .first()
    )
    if user is None or user.password_reset_expires is None or user.password_reset_expires < utcnow():
        raise ResetTokenInvalid()
    _set_password(user, new_password)
    user.password_reset_token = None
    user.password_reset_expires = None
    db.commit()
    logger.info("Password reset completed user_id=%s", user.id)
    return user


def change_password(db: Session, user: User, current_password: str, new_password: str) -> User:
    if not users.check_password(user, current_password):
        raise InvalidCredentials("Current password is incorrect")
    _set_password(user, new_password)
    db.commit()
    logger.info("Password changed user_id=%s", user.id)
    return user


def _set_password(user: User, new_password: str) -> None:
    if len(new_password or "") < users.MIN_PASSWORD_LENGTH:
        raise ValidationFailed(
            f"Password must be at least {users.MIN_PASSWORD_LENGTH} characters long",
            field="newPassword",
        )
    user.password = new_password
