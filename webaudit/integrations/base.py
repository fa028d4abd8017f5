"""
Shared types for the external audit integrations.

Each provider response is decoded once, at the client boundary, into one of
the typed raw-data models below. Everything downstream works against these
models rather than the provider JSON.
"""
import hashlib
import random
from abc import ABC, abstractmethod
from typing import Any, ClassVar, Union

import httpx
from pydantic import BaseModel, Field

from webaudit.core.errors import AuditError, AuditErrorKind


class RawDiagnostic(BaseModel):
    """One diagnostic entry reported by an auditor."""

    id: str
    title: str = ""
    description: str = ""
    score: float | None = None
    severity: str | None = None


class PageAuditData(BaseModel):
    """Decoded Lighthouse result from the page auditor."""

    is_synthetic: bool = False
    degradation_reason: str | None = None
    performance_score: float | None = None
    accessibility_score: float | None = None
    seo_score: float | None = None
    diagnostics: list[RawDiagnostic] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    meta_description: str = ""
    canonical_url: str | None = None
    interactive_time_ms: float | None = None
    viewport_score: float | None = None
    content_width_ok: bool = False

    @classmethod
    def synthetic(cls, url: str, reason: str) -> "PageAuditData":
        """All-zero stand-in used when the page auditor fails."""
        return cls(
            is_synthetic=True,
            degradation_reason=reason,
            performance_score=0.0,
            accessibility_score=0.0,
            seo_score=0.0,
            canonical_url=url,
        )


class PerfTestData(BaseModel):
    """Decoded report from the performance tester."""

    is_synthetic: bool = False
    degradation_reason: str | None = None
    report_id: str | None = None
    report_url: str | None = None
    load_time_s: float = 0.0
    page_size_kb: float = 0.0
    requests: int = 0
    grade: str = ""
    performance_score: float | None = None
    structure_score: float | None = None
    lcp_s: float = 0.0
    tbt_ms: float = 0.0
    cls: float = 0.0
    speed_index_ms: float = 0.0

    @classmethod
    def synthetic(cls, url: str, reason: str) -> "PerfTestData":
        """
        Plausible stand-in metrics used when the performance test fails.

        Values are drawn from a generator seeded with the URL, so the same
        URL always yields the same simulated report.
        """
        seed = int(hashlib.sha256(f"perf:{url}".encode()).hexdigest()[:16], 16)
        rng = random.Random(seed)
        performance_score = rng.randint(70, 99)
        return cls(
            is_synthetic=True,
            degradation_reason=reason,
            report_id=f"simulated-{seed % 100000:05d}",
            load_time_s=round(rng.uniform(1.0, 6.0), 2),
            page_size_kb=round(rng.uniform(500.0, 2500.0), 1),
            requests=rng.randint(20, 69),
            grade=score_to_grade(performance_score),
            performance_score=performance_score,
            structure_score=rng.randint(70, 99),
            lcp_s=round(rng.uniform(1.0, 4.0), 2),
            tbt_ms=rng.randint(100, 599),
            cls=round(rng.uniform(0.0, 0.3), 3),
            speed_index_ms=rng.randint(1000, 3999),
        )


RawAuditData = Union[PageAuditData, PerfTestData]


def score_to_grade(score: float) -> str:
    """Convert a 0-100 score to a letter grade."""
    if score >= 90:
        return "A"
    if score >= 80:
        return "B"
    if score >= 70:
        return "C"
    if score >= 60:
        return "D"
    if score >= 50:
        return "E"
    return "F"


def mask_api_key(api_key: str | None) -> str:
    """Hide all but the first and last two characters of a key."""
    if not api_key:
        return "undefined"
    length = len(api_key)
    if length <= 5:
        return "*" * length
    return f"{api_key[:2]}{'*' * (length - 4)}{api_key[-2:]}"


def classify_http_error(exc: Exception) -> AuditError:
    """Map an httpx failure onto the audit error taxonomy."""
    if isinstance(exc, AuditError):
        return exc
    if isinstance(exc, httpx.TimeoutException):
        return AuditError(AuditErrorKind.TIMEOUT, "Request timeout")
    if isinstance(exc, httpx.HTTPStatusError):
        code = exc.response.status_code
        if code == 402:
            return AuditError(AuditErrorKind.QUOTA_EXCEEDED, "Insufficient credits (HTTP 402)")
        if code == 429:
            return AuditError(AuditErrorKind.RATE_LIMITED, "Rate limit exceeded (HTTP 429)")
        return AuditError(AuditErrorKind.UPSTREAM_ERROR, f"HTTP {code}")
    if isinstance(exc, httpx.TransportError):
        return AuditError(AuditErrorKind.TIMEOUT, f"Network error: {exc}")
    return AuditError(AuditErrorKind.UPSTREAM_ERROR, str(exc) or type(exc).__name__)


class ExternalAuditClient(ABC):
    """
    A single external auditor.

    Implementations raise AuditError on any failure; they never return
    partial data. Substituting simulated data is the caller's job, done
    through `fallback`.
    """

    name: ClassVar[str]
    data_model: ClassVar[type[BaseModel]]

    @abstractmethod
    async def run_audit(self, url: str) -> RawAuditData:
        """Run the audit for an already validated URL."""

    def fallback(self, url: str, reason: str) -> RawAuditData:
        """Simulated data standing in for a failed audit."""
        return self.data_model.synthetic(url, reason)

    def decode(self, payload: dict[str, Any]) -> RawAuditData:
        """Rebuild raw data from its cached JSON form."""
        return self.data_model.model_validate(payload)
