from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from brigade.core.database import get_db
from brigade.core.errors import NotFound
from brigade.deps import get_current_user
from brigade.models.user import User
from brigade.schemas.auth import ChangePasswordPayload
from brigade.services import account, users

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/{user_id}/status")
def user_status(user_id: int, db: Session = Depends(get_db)):
    """Polled by the pending-approval screen; exposes the status only."""
    user = users.find_by_id(db, user_id)
    if user is None:
        raise NotFound("User not found", error="user_not_found")
    return {"status": user.status}


@router.put("/me/password")
def change_password(
    payload: ChangePasswordPayload,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    account.change_password(db, user, payload.current_password, payload.new_password)
    return {"message": "Password updated successfully"}
