from app.models.account import Account
from app.models.audit_log import AuditLog
from app.models.token_transaction import TokenTransaction

__all__ = [
    "Account",
    "AuditLog",
    "TokenTransaction",
]
