"""
Audit record schemas.

AuditRecord is the aggregate produced by one orchestration run. All of its
parts are frozen: the orchestrator builds them once and hands the finished
record to persistence.
"""
from datetime import datetime
from enum import Enum
from uuid import UUID

from pydantic import Field, field_validator

from webaudit.schemas.common import BaseSchema, FrozenSchema


class Category(str, Enum):
    SEO = "seo"
    PERFORMANCE = "performance"
    UI_UX = "ui-ux"


class IssueSeverity(str, Enum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DataProvenance(str, Enum):
    REAL = "real"
    SIMULATED = "simulated"


class Issue(FrozenSchema):
    """A single problem detected within a section."""

    description: str = Field(min_length=1)
    severity: IssueSeverity = IssueSeverity.MEDIUM
    category: Category
    source_key: str
    audit_id: str | None = None
    audit_score: float | None = None
    details: str | None = None
    recommendation: str | None = None


class Section(FrozenSchema):
    """Fields shared by every section of an audit record."""

    score: int = 0
    issues: tuple[Issue, ...] = ()
    data_provenance: DataProvenance = DataProvenance.REAL
    degradation_reason: str | None = None

    @field_validator("score", mode="before")
    @classmethod
    def default_score(cls, value):
        if value is None:
            return 0
        return max(0, min(100, round(float(value))))


class SeoSection(Section):
    keywords: tuple[str, ...] = ()
    meta_description: str = ""
    canonical_url: str = ""


class PerformanceSection(Section):
    load_time: float = 0.0
    page_size: float = 0.0
    requests: int = 0
    mobile_optimization: int = 0
    grade: str = ""
    structure_score: int = 0
    largest_contentful_paint: float = 0.0
    total_blocking_time: float = 0.0
    cumulative_layout_shift: float = 0.0
    speed_index: float = 0.0
    report_url: str | None = None


class UiUxSection(Section):
    accessibility: int = 0
    interactive_time: float = 0.0
    responsive_design: bool = False


SECTION_FIELDS = {
    Category.SEO: "seo",
    Category.PERFORMANCE: "performance",
    Category.UI_UX: "ui_ux",
}


class AuditRecord(FrozenSchema):
    """Root aggregate of one audit run."""

    id: UUID | None = None
    url: str
    created_at: datetime
    owner_id: str | None = None
    seo: SeoSection
    performance: PerformanceSection
    ui_ux: UiUxSection

    def section(self, category: Category) -> Section:
        return getattr(self, SECTION_FIELDS[category])

    @property
    def sections(self) -> dict[Category, Section]:
        return {category: self.section(category) for category in Category}

    @property
    def overall_score(self) -> int:
        """Unweighted mean of the section scores (derived, never stored)."""
        scores = [self.seo.score, self.performance.score, self.ui_ux.score]
        return round(sum(scores) / len(scores))

    @property
    def is_degraded(self) -> bool:
        return any(
            s.data_provenance == DataProvenance.SIMULATED
            for s in self.sections.values()
        )


# =============================================================================
# API shapes
# =============================================================================

class AuditCreate(BaseSchema):
    """Create audit request."""

    url: str = Field(min_length=1, max_length=2048)


class AuditOverview(BaseSchema):
    """One line of the caller's audit history."""

    id: UUID
    url: str
    seo_score: int
    performance_score: int
    ui_ux_score: int
    overall_score: int
    created_at: datetime

    @classmethod
    def from_record(cls, record: AuditRecord) -> "AuditOverview":
        return cls(
            id=record.id,
            url=record.url,
            seo_score=record.seo.score,
            performance_score=record.performance.score,
            ui_ux_score=record.ui_ux.score,
            overall_score=record.overall_score,
            created_at=record.created_at,
        )


class AuditListResponse(BaseSchema):
    items: list[AuditOverview]
    total: int


class AuditDetailResponse(BaseSchema):
    """A full audit record with its derived fields."""

    id: UUID
    url: str
    created_at: datetime
    owner_id: str | None = None
    seo: SeoSection
    performance: PerformanceSection
    ui_ux: UiUxSection
    overall_score: int
    degraded: bool

    @classmethod
    def from_record(cls, record: AuditRecord) -> "AuditDetailResponse":
        return cls(
            id=record.id,
            url=record.url,
            created_at=record.created_at,
            owner_id=record.owner_id,
            seo=record.seo,
            performance=record.performance,
            ui_ux=record.ui_ux,
            overall_score=record.overall_score,
            degraded=record.is_degraded,
        )
