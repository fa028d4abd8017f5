"""
Audit Orchestrator

Runs one audit end to end:
1. Validate the URL
2. Run the page auditor and the performance tester concurrently, each under
   its own wall-clock budget, substituting simulated data when one fails
3. Normalize and merge both results
4. Generate recommendations for every category with issues
5. Assemble the AuditRecord

Only three failures reach the caller: InvalidUrlError, InsufficientCreditsError
(the performance tester ran out of credits) and OrchestrationError.
"""

import asyncio
import contextlib
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional
from urllib.parse import urlparse

from pydantic import ValidationError

from webaudit.core.errors import (
    AuditError,
    AuditErrorKind,
    InsufficientCreditsError,
    InvalidUrlError,
    OrchestrationError,
)
from webaudit.integrations.base import ExternalAuditClient, RawAuditData
from webaudit.schemas.audit import (
    AuditRecord,
    Category,
    DataProvenance,
    Issue,
    PerformanceSection,
    SeoSection,
    UiUxSection,
)
from webaudit.services.cache import CacheStore, safe_cache_get, safe_cache_set
from webaudit.services.normalizer import NormalizedResult, ResultNormalizer
from webaudit.services.recommendations import RecommendationEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OrchestratorConfig:
    page_audit_timeout: float = 120.0
    perf_test_timeout: float = 300.0
    audit_cache_ttl: float = 86400
    # Diagnostics scoring at or above this are passed checks, not issues.
    # None keeps every imperfect diagnostic. At 0.9 no score-derived LOW
    # issue survives (LOW starts at 0.9), so LOW only reaches a record from
    # an unscored diagnostic carrying a "low" severity label.
    pass_threshold: Optional[float] = 0.9


@dataclass
class AuditOutcome:
    """Raw data from one auditor and where it came from."""

    data: RawAuditData
    provenance: DataProvenance = DataProvenance.REAL
    degradation_reason: Optional[str] = None


def validate_url(url: str) -> str:
    """Return the URL if it is an absolute http(s) address."""
    if not isinstance(url, str):
        raise InvalidUrlError(repr(url))
    candidate = url.strip()
    try:
        parsed = urlparse(candidate)
        hostname = parsed.hostname
    except ValueError as e:
        raise InvalidUrlError(url) from e
    if parsed.scheme.lower() not in ("http", "https") or not parsed.netloc or not hostname:
        raise InvalidUrlError(url)
    return candidate


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditOrchestrator:
    """Coordinates the auditors, the normalizer and the recommendation engine."""

    def __init__(
        self,
        page_auditor: ExternalAuditClient,
        perf_tester: ExternalAuditClient,
        normalizer: Optional[ResultNormalizer] = None,
        recommendation_engine: Optional[RecommendationEngine] = None,
        cache: Optional[CacheStore] = None,
        config: Optional[OrchestratorConfig] = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.page_auditor = page_auditor
        self.perf_tester = perf_tester
        self.normalizer = normalizer or ResultNormalizer()
        self.recommendations = recommendation_engine or RecommendationEngine(cache=cache)
        self.cache = cache
        self.config = config or OrchestratorConfig()
        self._clock = clock

    async def run(self, url: str, owner_id: Optional[str] = None) -> AuditRecord:
        """
        Audit a URL.

        Raises:
            InvalidUrlError: the URL is not an absolute http(s) address
            InsufficientCreditsError: the performance tester has no credits left
            OrchestrationError: normalization or assembly failed
        """
        url = validate_url(url)
        logger.info(f"[Audit] Starting audit for {url}")

        page_task = asyncio.create_task(
            self._run_auditor(self.page_auditor, url, self.config.page_audit_timeout)
        )
        try:
            perf = await self._run_auditor(
                self.perf_tester, url, self.config.perf_test_timeout, quota_is_fatal=True
            )
        except BaseException:
            page_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await page_task
            raise
        page = await page_task

        try:
            record = await self._assemble(url, owner_id, page, perf)
        except OrchestrationError:
            raise
        except Exception as e:
            logger.exception(f"[Audit] Internal error while assembling audit for {url}")
            raise OrchestrationError(f"Failed to assemble audit for {url}: {e}") from e

        logger.info(
            f"[Audit] Completed {url}: seo={record.seo.score} "
            f"performance={record.performance.score} ui-ux={record.ui_ux.score}"
            + (" (degraded)" if record.is_degraded else "")
        )
        return record

    async def _run_auditor(
        self,
        client: ExternalAuditClient,
        url: str,
        timeout: float,
        quota_is_fatal: bool = False,
    ) -> AuditOutcome:
        """Cached result, fresh result, or simulated data standing in for a failure."""
        cache_key = f"audit:{client.name}:{url}"
        cached = await safe_cache_get(self.cache, cache_key)
        if cached is not None:
            try:
                data = client.decode(cached)
                logger.info(f"[Audit] Using cached {client.name} result for {url}")
                return AuditOutcome(data)
            except ValidationError:
                logger.warning(f"[Audit] Discarding unreadable cached {client.name} result for {url}")

        try:
            data = await asyncio.wait_for(client.run_audit(url), timeout=timeout)
        except asyncio.TimeoutError:
            error = AuditError(AuditErrorKind.TIMEOUT, f"{client.name} did not finish within {timeout}s")
        except AuditError as e:
            error = e
        except Exception as e:
            logger.exception(f"[Audit] Unexpected {client.name} failure for {url}")
            error = AuditError(AuditErrorKind.UPSTREAM_ERROR, str(e) or type(e).__name__)
        else:
            await safe_cache_set(
                self.cache, cache_key, data.model_dump(mode="json"), self.config.audit_cache_ttl
            )
            return AuditOutcome(data)

        if quota_is_fatal and error.kind == AuditErrorKind.QUOTA_EXCEEDED:
            logger.error(f"[Audit] {client.name} credits exhausted, aborting audit of {url}")
            raise InsufficientCreditsError(client.name, error.message)

        logger.warning(
            f"[Audit] {client.name} failed for {url} ({error.kind.value}: {error.message}), "
            "using simulated data"
        )
        return AuditOutcome(
            data=client.fallback(url, error.reason),
            provenance=DataProvenance.SIMULATED,
            degradation_reason=error.reason,
        )

    def _reportable(self, issues: list[Issue]) -> list[Issue]:
        threshold = self.config.pass_threshold
        if threshold is None:
            return list(issues)
        return [i for i in issues if i.audit_score is None or i.audit_score < threshold]

    async def _assemble(
        self,
        url: str,
        owner_id: Optional[str],
        page: AuditOutcome,
        perf: AuditOutcome,
    ) -> AuditRecord:
        normalized = self.normalizer.normalize(page.data, url).merge(
            self.normalizer.normalize(perf.data, url)
        )

        issues = {
            category: self._reportable(normalized.issues.get(category, []))
            for category in Category
        }
        categories = [category for category in Category if issues[category]]
        generated = await asyncio.gather(*(
            self.recommendations.generate(issues[category], category)
            for category in categories
        ))

        for category, texts in zip(categories, generated):
            if len(texts) != len(issues[category]) or not all(texts):
                raise OrchestrationError(
                    f"Recommendations for {category.value} do not cover every issue"
                )
            issues[category] = [
                issue.model_copy(update={"recommendation": text})
                for issue, text in zip(issues[category], texts)
            ]

        return AuditRecord(
            url=url,
            created_at=self._clock(),
            owner_id=owner_id,
            seo=self._section(SeoSection, Category.SEO, normalized, issues, page),
            performance=self._section(
                PerformanceSection, Category.PERFORMANCE, normalized, issues, perf
            ),
            ui_ux=self._section(UiUxSection, Category.UI_UX, normalized, issues, page),
        )

    def _section(
        self,
        model,
        category: Category,
        normalized: NormalizedResult,
        issues: dict[Category, list[Issue]],
        outcome: AuditOutcome,
    ):
        return model(
            score=normalized.scores.get(category),
            issues=tuple(issues[category]),
            data_provenance=outcome.provenance,
            degradation_reason=outcome.degradation_reason,
            **normalized.metrics.get(category, {}),
        )
