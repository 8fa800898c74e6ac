from __future__ import annotations

from fastapi import APIRouter, Depends

from brigade.core.metrics import request_metrics
from brigade.deps import require_super_admin
from brigade.models.user import User

router = APIRouter(prefix="/internal/metrics", tags=["internal-metrics"])


@router.get("")
def all_metrics(_user: User = Depends(require_super_admin)):
    return {
        "endpoints": request_metrics.snapshot(),
        "tenants": request_metrics.snapshot_per_tenant(),
        "logins": request_metrics.snapshot_logins(),
    }


@router.get("/tenants")
def tenant_metrics(_user: User = Depends(require_super_admin)):
    return {"tenants": request_metrics.snapshot_per_tenant()}
