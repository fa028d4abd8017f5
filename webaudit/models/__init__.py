"""
WebAudit database models.
"""
from webaudit.models.base import Base, BaseModel
from webaudit.models.audit import AuditRecordRow

__all__ = [
    "Base",
    "BaseModel",
    "AuditRecordRow",
]
