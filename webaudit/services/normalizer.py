"""
Result normalizer.

Turns the raw output of each auditor into section scores, section metrics
and a per-category issue list. Pure and deterministic: no network, no
persistence, no clock.
"""
import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

from webaudit.integrations.base import (
    PageAuditData,
    PerfTestData,
    RawAuditData,
    RawDiagnostic,
)
from webaudit.schemas.audit import Category, Issue, IssueSeverity

logger = logging.getLogger(__name__)


# Lighthouse audit ids with a known category. Checked before keywords, and
# an id also matches when it starts with one of these.
CATEGORY_AUDIT_IDS: dict[Category, list[str]] = {
    Category.PERFORMANCE: [
        "first-contentful-paint", "speed-index", "largest-contentful-paint",
        "interactive", "total-blocking-time", "cumulative-layout-shift",
        "server-response-time", "render-blocking-resources", "unminified-css",
        "unminified-javascript", "unused-css-rules", "unused-javascript",
        "efficient-animated-content", "duplicated-javascript",
    ],
    Category.UI_UX: [
        "accesskeys", "aria-allowed-attr", "aria-required-attr", "aria-roles",
        "button-name", "color-contrast", "form-field-multiple-labels",
        "html-has-lang", "image-alt", "input-image-alt", "label", "tabindex",
        "td-headers-attr", "valid-lang",
    ],
    Category.SEO: [
        "meta-description", "http-status-code", "font-size", "crawlable-anchors",
        "link-text", "is-crawlable", "robots-txt", "canonical", "hreflang",
        "structured-data",
    ],
}

CATEGORY_KEYWORDS: dict[Category, list[str]] = {
    Category.PERFORMANCE: [
        "performance", "speed", "time", "load", "render", "resource",
        "javascript-execution", "css", "image", "cache", "server-response",
    ],
    Category.UI_UX: [
        "accessibility", "a11y", "aria", "contrast", "label", "alt",
        "keyboard", "focus", "tabindex",
    ],
    Category.SEO: [
        "seo", "crawl", "robots", "meta", "description", "canonical", "link",
        "anchor", "text",
    ],
}

SEVERITY_LABELS = {
    "high": IssueSeverity.HIGH,
    "critical": IssueSeverity.HIGH,
    "serious": IssueSeverity.HIGH,
    "medium": IssueSeverity.MEDIUM,
    "moderate": IssueSeverity.MEDIUM,
    "low": IssueSeverity.LOW,
    "minor": IssueSeverity.LOW,
}


@dataclass
class NormalizedResult:
    """Scores (0-100), metrics and issues keyed by category."""

    scores: dict[Category, float | None] = field(default_factory=dict)
    metrics: dict[Category, dict[str, Any]] = field(default_factory=dict)
    issues: dict[Category, list[Issue]] = field(default_factory=dict)

    def merge(self, other: "NormalizedResult") -> "NormalizedResult":
        """Combine two results; on conflicting keys `other` wins."""
        merged = NormalizedResult(
            scores={**self.scores, **{k: v for k, v in other.scores.items() if v is not None}},
            metrics={c: dict(m) for c, m in self.metrics.items()},
            issues={c: list(i) for c, i in self.issues.items()},
        )
        for category, metrics in other.metrics.items():
            merged.metrics.setdefault(category, {}).update(metrics)
        for category, issues in other.issues.items():
            merged.issues.setdefault(category, []).extend(issues)
        return merged


def severity_for_score(score: float) -> IssueSeverity:
    """Severity of a sub-score in [0, 1]."""
    if score < 0.5:
        return IssueSeverity.HIGH
    if score < 0.9:
        return IssueSeverity.MEDIUM
    return IssueSeverity.LOW


def to_percent(score: float | None) -> float | None:
    return score * 100 if score is not None else None


class ResultNormalizer:
    """Maps raw auditor data onto the canonical categories."""

    def normalize(self, raw: RawAuditData, url: str) -> NormalizedResult:
        if isinstance(raw, PageAuditData):
            return self.normalize_page_audit(raw, url)
        if isinstance(raw, PerfTestData):
            return self.normalize_perf_test(raw)
        raise TypeError(f"Unsupported raw audit data: {type(raw).__name__}")

    def categorize(self, diagnostic: RawDiagnostic) -> Category | None:
        """Category of a diagnostic, or None if it fits none."""
        key = diagnostic.id
        for category, audit_ids in CATEGORY_AUDIT_IDS.items():
            if any(key == audit_id or key.startswith(audit_id) for audit_id in audit_ids):
                return category

        title = diagnostic.title.lower()
        description = diagnostic.description.lower()
        for category, keywords in CATEGORY_KEYWORDS.items():
            if any(kw in key or kw in title or kw in description for kw in keywords):
                return category
        return None

    def severity(self, diagnostic: RawDiagnostic) -> IssueSeverity:
        if diagnostic.score is not None:
            return severity_for_score(min(1.0, max(0.0, diagnostic.score)))
        if diagnostic.severity:
            return SEVERITY_LABELS.get(diagnostic.severity.lower(), IssueSeverity.MEDIUM)
        return IssueSeverity.MEDIUM

    def extract_issues(
        self,
        diagnostics: list[RawDiagnostic],
        url: str,
    ) -> dict[Category, list[Issue]]:
        """
        One Issue per imperfect diagnostic, in detection order.

        A diagnostic with a perfect score (1) is not an issue. Diagnostics
        matching no category are dropped.
        """
        issues: dict[Category, list[Issue]] = {category: [] for category in Category}
        occurrences: dict[str, int] = defaultdict(int)
        discarded = 0

        for diagnostic in diagnostics:
            if diagnostic.score is not None and diagnostic.score >= 1:
                continue
            category = self.categorize(diagnostic)
            if category is None:
                discarded += 1
                continue

            occurrence = occurrences[diagnostic.id]
            occurrences[diagnostic.id] += 1

            issues[category].append(Issue(
                description=diagnostic.title.strip() or diagnostic.id,
                severity=self.severity(diagnostic),
                category=category,
                source_key=f"{diagnostic.id}@{url}#{occurrence}",
                audit_id=diagnostic.id,
                audit_score=diagnostic.score,
                details=diagnostic.description or None,
            ))

        if discarded:
            logger.debug(f"[Normalize] {discarded} uncategorized diagnostics dropped for {url}")
        return issues

    def normalize_page_audit(self, raw: PageAuditData, url: str) -> NormalizedResult:
        issues = self.extract_issues(raw.diagnostics, url)
        accessibility = to_percent(raw.accessibility_score)
        viewport = to_percent(raw.viewport_score)

        logger.info(
            f"[Normalize] {url}: "
            + ", ".join(f"{c.value}={len(i)}" for c, i in issues.items())
        )
        return NormalizedResult(
            scores={
                Category.SEO: to_percent(raw.seo_score),
                Category.PERFORMANCE: to_percent(raw.performance_score),
                Category.UI_UX: accessibility,
            },
            metrics={
                Category.SEO: {
                    "keywords": tuple(raw.keywords),
                    "meta_description": raw.meta_description,
                    "canonical_url": raw.canonical_url or url,
                },
                Category.PERFORMANCE: {
                    "mobile_optimization": round(viewport) if viewport is not None else 0,
                },
                Category.UI_UX: {
                    "accessibility": round(accessibility) if accessibility is not None else 0,
                    "interactive_time": raw.interactive_time_ms or 0.0,
                    "responsive_design": raw.content_width_ok,
                },
            },
            issues=issues,
        )

    def normalize_perf_test(self, raw: PerfTestData) -> NormalizedResult:
        return NormalizedResult(
            scores={Category.PERFORMANCE: raw.performance_score},
            metrics={
                Category.PERFORMANCE: {
                    "load_time": round(raw.load_time_s, 2),
                    "page_size": round(raw.page_size_kb, 1),
                    "requests": raw.requests,
                    "grade": raw.grade,
                    "structure_score": round(raw.structure_score or 0),
                    "largest_contentful_paint": raw.lcp_s,
                    "total_blocking_time": raw.tbt_ms,
                    "cumulative_layout_shift": raw.cls,
                    "speed_index": raw.speed_index_ms,
                    "report_url": raw.report_url,
                },
            },
        )
