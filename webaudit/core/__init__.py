"""
Core utilities for WebAudit.
"""
from webaudit.core.errors import (
    AuditError,
    AuditErrorKind,
    CacheError,
    InsufficientCreditsError,
    InvalidUrlError,
    OrchestrationError,
    WebAuditError,
)
from webaudit.core.security import create_access_token, decode_token

__all__ = [
    "AuditError",
    "AuditErrorKind",
    "CacheError",
    "InsufficientCreditsError",
    "InvalidUrlError",
    "OrchestrationError",
    "WebAuditError",
    "create_access_token",
    "decode_token",
]
