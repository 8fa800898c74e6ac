from __future__ import annotations

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from brigade.core.database import get_db
from brigade.schemas.auth import RequestAccessPayload
from brigade.services import team

router = APIRouter(prefix="/chefs", tags=["chefs"])


@router.post("/request-access", status_code=status.HTTP_201_CREATED)
def request_access(payload: RequestAccessPayload, db: Session = Depends(get_db)):
    member = team.request_access(
        db,
        head_chef_id=payload.head_chef_id,
        first_name=payload.first_name,
        last_name=payload.last_name,
    )
    db.commit()
    db.refresh(member)
    return {"id": member.id, "status": member.status, "userId": member.id}
