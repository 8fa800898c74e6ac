from brigade.models.user import User
from brigade.models.restaurant import Restaurant
from brigade.models.login_audit_log import LoginAuditLog
