"""
Recommendation Engine

Writes one remediation text per issue through the LLM client:
- Issues are sent in batches of `concurrency`, with a pause between batches
- Generated texts are cached per (locale, category, description)
- HTTP 429 is retried over a fixed delay sequence; any other failure gives up
- Whatever cannot be generated gets a canned recommendation, chosen from the
  category x severity table by a hash of the issue's source key
"""

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from typing import Optional, Sequence

import httpx

from webaudit.integrations.llm import LLMClient, Message
from webaudit.schemas.audit import Category, Issue
from webaudit.services.cache import CacheStore, safe_cache_get, safe_cache_set
from webaudit.services.fallback_recommendations import (
    FALLBACK_RECOMMENDATIONS,
    GENERIC_FALLBACK,
    PROMPT_TERMS,
)

logger = logging.getLogger(__name__)

DEFAULT_LOCALE = "en"


@dataclass(frozen=True)
class RecommendationConfig:
    concurrency: int = 3
    retry_delays: tuple[float, ...] = (1.0, 2.0, 5.0, 10.0, 15.0)
    batch_delay: float = 1.0
    locale: str = DEFAULT_LOCALE
    cache_ttl: float = 86400


def stable_index(key: str, size: int) -> int:
    """Index in [0, size) derived from a hash of `key`."""
    digest = hashlib.sha256(key.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big") % size


def fallback_recommendation(issue: Issue, locale: str = DEFAULT_LOCALE) -> str:
    """
    Canned recommendation for an issue.

    The same source key always selects the same entry, so repeated runs
    over the same page produce the same text.
    """
    locale = locale if locale in FALLBACK_RECOMMENDATIONS else DEFAULT_LOCALE
    category = issue.category.value
    candidates = FALLBACK_RECOMMENDATIONS[locale].get(category, {}).get(issue.severity.value)
    if not candidates:
        return GENERIC_FALLBACK[locale].format(category=category)
    return candidates[stable_index(issue.source_key, len(candidates))]


class RecommendationEngine:
    """Generates recommendation texts aligned with a list of issues."""

    def __init__(
        self,
        llm_client: Optional[LLMClient] = None,
        cache: Optional[CacheStore] = None,
        config: Optional[RecommendationConfig] = None,
    ):
        self.llm = llm_client
        self.cache = cache
        self.config = config or RecommendationConfig()
        self.locale = (
            self.config.locale if self.config.locale in PROMPT_TERMS else DEFAULT_LOCALE
        )

    @property
    def is_available(self) -> bool:
        return self.llm is not None and self.llm.is_configured

    async def generate(self, issues: Sequence[Issue], category: Category) -> list[str]:
        """
        One recommendation per issue, in input order.

        Never raises: every failure resolves to the canned recommendation of
        the affected issue.
        """
        if not issues:
            return []

        if not self.is_available:
            logger.warning(
                f"[LLM] No text generation configured, using fallback recommendations "
                f"for {len(issues)} {category.value} issues"
            )
            return [fallback_recommendation(issue, self.locale) for issue in issues]

        # One upstream request per distinct description
        unique: dict[str, Issue] = {}
        for issue in issues:
            unique.setdefault(issue.description, issue)
        representatives = list(unique.values())

        generated: dict[str, Optional[str]] = {}
        size = max(1, self.config.concurrency)
        batches = [representatives[i:i + size] for i in range(0, len(representatives), size)]

        for index, batch in enumerate(batches):
            if index > 0 and self.config.batch_delay > 0:
                await asyncio.sleep(self.config.batch_delay)
            logger.info(
                f"[LLM] {category.value}: batch {index + 1}/{len(batches)} "
                f"({len(batch)} issues)"
            )
            texts = await asyncio.gather(*(self._recommend(issue, category) for issue in batch))
            for issue, text in zip(batch, texts):
                generated[issue.description] = text

        recommendations = []
        for issue in issues:
            text = generated.get(issue.description)
            if not text:
                logger.warning(f"[LLM] Fallback recommendation for {issue.source_key}")
                text = fallback_recommendation(issue, self.locale)
            recommendations.append(text)
        return recommendations

    def _cache_key(self, category: Category, description: str) -> str:
        digest = hashlib.sha1(description.encode("utf-8")).hexdigest()
        return f"recommendation:{self.locale}:{category.value}:{digest}"

    async def _recommend(self, issue: Issue, category: Category) -> Optional[str]:
        """Cached or freshly generated text for one issue, None on failure."""
        key = self._cache_key(category, issue.description)
        cached = await safe_cache_get(self.cache, key)
        if isinstance(cached, str) and cached:
            logger.debug(f"[LLM] Cache hit for {issue.source_key}")
            return cached

        try:
            text = await self._request_with_retry(issue, category)
        except Exception:
            logger.exception(f"[LLM] Unexpected error generating recommendation for {issue.source_key}")
            return None

        if text:
            await safe_cache_set(self.cache, key, text, self.config.cache_ttl)
        return text

    async def _request_with_retry(self, issue: Issue, category: Category) -> Optional[str]:
        messages = self.build_prompt(issue, category)
        delays = self.config.retry_delays
        attempt = 0

        while True:
            try:
                response = await self.llm.chat(messages)
                return response.content.strip()
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status != 429:
                    logger.warning(f"[LLM] HTTP {status} for {issue.source_key}, giving up")
                    return None
                if attempt >= len(delays):
                    logger.warning(
                        f"[LLM] Rate limit persists after {len(delays)} retries "
                        f"for {issue.source_key}"
                    )
                    return None
                delay = delays[attempt]
                attempt += 1
                logger.warning(
                    f"[LLM] Rate limited for {issue.source_key}, "
                    f"retry {attempt}/{len(delays)} in {delay}s"
                )
                await asyncio.sleep(delay)
            except (httpx.HTTPError, KeyError, IndexError, TypeError, ValueError) as e:
                logger.warning(f"[LLM] Request failed for {issue.source_key}: {e}")
                return None

    def build_prompt(self, issue: Issue, category: Category) -> list[Message]:
        terms = PROMPT_TERMS[self.locale]
        lines = [
            f"{terms['expert']} {terms[category.value]}.",
            "",
            f"{terms['problem']}:",
            f"{terms['specific']}: {issue.description}",
            f"{terms['details']}: {issue.details or terms['none']}",
            f"{terms['severity']}: {issue.severity.value}",
            f"{terms['type']}: {category.value}",
            f"{terms['audit']}: {issue.audit_id or terms['none']}",
            "",
            terms["instruction"],
        ]
        return [Message(role="user", content="\n".join(lines))]
