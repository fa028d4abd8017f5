"""
Pydantic schemas for WebAudit.
"""
from webaudit.schemas.common import BaseSchema, FrozenSchema
from webaudit.schemas.audit import (
    Category,
    IssueSeverity,
    DataProvenance,
    Issue,
    Section,
    SeoSection,
    PerformanceSection,
    UiUxSection,
    AuditRecord,
    AuditCreate,
    AuditOverview,
    AuditDetailResponse,
    AuditListResponse,
)

__all__ = [
    "BaseSchema",
    "FrozenSchema",
    "Category",
    "IssueSeverity",
    "DataProvenance",
    "Issue",
    "Section",
    "SeoSection",
    "PerformanceSection",
    "UiUxSection",
    "AuditRecord",
    "AuditCreate",
    "AuditOverview",
    "AuditDetailResponse",
    "AuditListResponse",
]
