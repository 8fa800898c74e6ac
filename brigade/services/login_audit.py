from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.orm import Session

from brigade.core.logging_setup import SECURITY_LOGGER_NAME
from brigade.core.metrics import request_metrics
from brigade.models.login_audit_log import LoginAuditLog

security_logger = logging.getLogger(SECURITY_LOGGER_NAME)

OUTCOME_SUCCESS = "success"
OUTCOME_FAILURE = "failure"


def record_login_attempt(
    db: Session,
    *,
    strategy: str,
    outcome: str,
    client_ip: Optional[str],
    user_agent: Optional[str] = None,
    target_tenant: Optional[str] = None,
    target_name: Optional[str] = None,
    user_id: Optional[int] = None,
    reason: Optional[str] = None,
) -> LoginAuditLog:
    """Append one audit row and emit the matching security log line. Caller commits."""
    entry = LoginAuditLog(
        strategy=strategy,
        outcome=outcome,
        client_ip=client_ip,
        user_agent=(user_agent or "")[:255] or None,
        target_tenant=target_tenant,
        target_name=target_name,
        user_id=user_id,
        reason=reason,
    )
    db.add(entry)

    level = logging.INFO if outcome == OUTCOME_SUCCESS else logging.WARNING
    security_logger.log(
        level,
        "Login attempt %s",
        outcome,
        extra={
            "event": "LOGIN_ATTEMPT",
            "strategy": strategy,
            "client_ip": client_ip,
            "target_tenant": target_tenant,
            "target_name": target_name,
            "outcome": outcome,
            "reason": reason,
        },
    )
    request_metrics.observe_login(strategy, outcome)
    return entry


def list_login_attempts(
    db: Session,
    *,
    client_ip: Optional[str] = None,
    tenant: Optional[str] = None,
    outcome: Optional[str] = None,
    limit: int = 100,
) -> list[LoginAuditLog]:
    query = db.query(LoginAuditLog)
    if client_ip:
        query = query.filter(LoginAuditLog.client_ip == client_ip)
    if tenant:
        query = query.filter(LoginAuditLog.target_tenant == tenant)
    if outcome:
        query = query.filter(LoginAuditLog.outcome == outcome)
    return query.order_by(LoginAuditLog.id.desc()).limit(limit).all()


def serialize_attempt(entry: LoginAuditLog) -> dict:
    return {
        "id": entry.id,
        "createdAt": entry.created_at,
        "clientIp": entry.client_ip,
        "userAgent": entry.user_agent,
        "strategy": entry.strategy,
        "targetTenant": entry.target_tenant,
        "targetName": entry.target_name,
        "userId": entry.user_id,
        "outcome": entry.outcome,
        "reason": entry.reason,
    }
