"""
Persisted audit records.

The whole AuditRecord is stored as one JSON document; url, owner and the
section scores are copied into columns for listing and filtering.
"""
from sqlalchemy import JSON, Column, Integer, String

from webaudit.models.base import Base, BaseModel


class AuditRecordRow(Base, BaseModel):
    """One completed audit."""

    __tablename__ = "audit_records"

    url = Column(String(2048), nullable=False, index=True)
    owner_id = Column(String(255), nullable=True, index=True)
    seo_score = Column(Integer, nullable=False, default=0)
    performance_score = Column(Integer, nullable=False, default=0)
    ui_ux_score = Column(Integer, nullable=False, default=0)
    payload = Column(JSON, nullable=False)
