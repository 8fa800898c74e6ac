from sqlalchemy import Column, DateTime, Integer, String

from brigade.core.database import Base
from brigade.utils.clock import utcnow


class LoginAuditLog(Base):
    __tablename__ = "login_audit_log"

    id = Column(Integer, primary_key=True, index=True)
    created_at = Column(DateTime, nullable=False, default=utcnow, index=True)
    client_ip = Column(String, nullable=True, index=True)
    user_agent = Column(String, nullable=True)
    strategy = Column(String, nullable=False)
    target_tenant = Column(String, nullable=True, index=True)
    target_name = Column(String, nullable=True)
    user_id = Column(Integer, nullable=True, index=True)
    outcome = Column(String, nullable=False, index=True)
    reason = Column(String, nullable=True)
