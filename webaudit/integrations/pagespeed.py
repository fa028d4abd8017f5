"""
Google PageSpeed Insights API client.

Runs Lighthouse against a page and returns category scores plus the
individual audit diagnostics used for the SEO, performance and UI/UX
sections.
"""
import logging
from dataclasses import dataclass
from typing import Any, ClassVar

import httpx

from webaudit.core.errors import AuditError, AuditErrorKind
from webaudit.integrations.base import (
    ExternalAuditClient,
    PageAuditData,
    RawDiagnostic,
    classify_http_error,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageSpeedConfig:
    api_key: str = ""
    strategy: str = "mobile"
    timeout: float = 60.0
    base_url: str = "https://www.googleapis.com/pagespeedonline/v5/runPagespeed"


class PageSpeedClient(ExternalAuditClient):
    """HTTP client for Google PageSpeed Insights API."""

    name: ClassVar[str] = "pagespeed"
    data_model: ClassVar[type[PageAuditData]] = PageAuditData

    CATEGORIES = ["performance", "accessibility", "best-practices", "seo"]

    # Audits without a pass/fail score are reference material, not findings
    NON_DIAGNOSTIC_MODES = {"notApplicable", "informative", "manual", "error"}

    def __init__(
        self,
        config: PageSpeedConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or PageSpeedConfig()
        self._transport = transport

    async def run_audit(self, url: str) -> PageAuditData:
        """
        Analyze a URL with PageSpeed Insights.

        Raises:
            AuditError: on timeout, HTTP error or an unusable payload
        """
        params: list[tuple[str, str]] = [
            ("url", url),
            ("strategy", self.config.strategy),
        ]
        params.extend(("category", cat) for cat in self.CATEGORIES)
        if self.config.api_key:
            params.append(("key", self.config.api_key))
        else:
            logger.warning("[PSI] No API key configured, using anonymous quota")

        try:
            async with httpx.AsyncClient(
                timeout=self.config.timeout,
                transport=self._transport,
            ) as client:
                logger.info(f"[PSI] Analyzing {url} ({self.config.strategy})")
                response = await client.get(self.config.base_url, params=params)
                response.raise_for_status()
                data = response.json()
        except httpx.HTTPError as e:
            error = classify_http_error(e)
            logger.error(f"[PSI] Error analyzing {url}: {error.message}")
            raise error from e
        except ValueError as e:
            logger.error(f"[PSI] Invalid JSON for {url}: {e}")
            raise AuditError(AuditErrorKind.UPSTREAM_ERROR, "Malformed PageSpeed response") from e

        try:
            return self._parse_response(data, url)
        except (AttributeError, TypeError, ValueError) as e:
            logger.error(f"[PSI] Unexpected payload shape for {url}: {e}")
            raise AuditError(AuditErrorKind.UPSTREAM_ERROR, "Malformed PageSpeed response") from e

    def _parse_response(self, data: Any, url: str) -> PageAuditData:
        """Decode the Lighthouse result into PageAuditData."""
        lighthouse = data.get("lighthouseResult") if isinstance(data, dict) else None
        if not isinstance(lighthouse, dict) or not isinstance(lighthouse.get("categories"), dict):
            raise AuditError(AuditErrorKind.UPSTREAM_ERROR, "Incomplete Lighthouse result")

        categories = lighthouse["categories"]
        audits = lighthouse.get("audits") or {}

        result = PageAuditData(
            performance_score=self._category_score(categories, "performance"),
            accessibility_score=self._category_score(categories, "accessibility"),
            seo_score=self._category_score(categories, "seo"),
            diagnostics=self._extract_diagnostics(audits),
            keywords=self._extract_keywords(audits),
            meta_description=self._first_item_value(audits, "meta-description", "content") or "",
            canonical_url=self._first_item_value(audits, "canonical", "url") or url,
            interactive_time_ms=audits.get("interactive", {}).get("numericValue"),
            viewport_score=audits.get("viewport", {}).get("score"),
            content_width_ok=audits.get("content-width", {}).get("score") == 1,
        )

        logger.info(
            f"[PSI] Results for {url}: performance={result.performance_score} "
            f"accessibility={result.accessibility_score} seo={result.seo_score} "
            f"diagnostics={len(result.diagnostics)}"
        )
        return result

    @staticmethod
    def _category_score(categories: dict, name: str) -> float | None:
        category = categories.get(name) or {}
        score = category.get("score")
        return float(score) if score is not None else None

    def _extract_diagnostics(self, audits: dict) -> list[RawDiagnostic]:
        diagnostics = []
        for audit_id, audit in audits.items():
            if not isinstance(audit, dict):
                continue
            if audit.get("scoreDisplayMode") in self.NON_DIAGNOSTIC_MODES:
                continue
            diagnostics.append(RawDiagnostic(
                id=audit.get("id", audit_id),
                title=audit.get("title") or "",
                description=audit.get("description") or "",
                score=audit.get("score"),
            ))
        return diagnostics

    @staticmethod
    def _first_item_value(audits: dict, audit_id: str, key: str) -> str | None:
        items = audits.get(audit_id, {}).get("details", {}).get("items") or []
        if items and isinstance(items[0], dict):
            return items[0].get(key)
        return None

    def _extract_keywords(self, audits: dict) -> list[str]:
        """Candidate keywords from the document title and headings."""
        texts = []
        title = self._first_item_value(audits, "document-title", "content")
        if title:
            texts.append(title)
        for heading in audits.get("heading-levels", {}).get("details", {}).get("items") or []:
            if isinstance(heading, dict) and heading.get("content"):
                texts.append(heading["content"])

        keywords: list[str] = []
        for text in texts:
            for word in text.split(" "):
                if len(word) > 3 and word not in keywords:
                    keywords.append(word)
        return keywords
