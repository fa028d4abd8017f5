"""
GTmetrix API 2.0 client.

A GTmetrix test is asynchronous: the test is submitted, its state is polled
until a report exists, and the report is fetched. A poll answered with a
303 redirect to the report means the test already completed.
"""
import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, ClassVar

import httpx

from webaudit.core.errors import AuditError, AuditErrorKind
from webaudit.integrations.base import (
    ExternalAuditClient,
    PerfTestData,
    classify_http_error,
    mask_api_key,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GTmetrixConfig:
    api_key: str = ""
    base_url: str = "https://gtmetrix.com/api/2.0"
    request_timeout: float = 60.0
    poll_interval: float = 15.0
    max_polls: int = 20


class GTmetrixClient(ExternalAuditClient):
    """HTTP client for the GTmetrix start/poll/fetch protocol."""

    name: ClassVar[str] = "gtmetrix"
    data_model: ClassVar[type[PerfTestData]] = PerfTestData

    REPORT_ID_PATTERN = re.compile(r"/reports/([a-zA-Z0-9]+)$")
    TRANSIENT_STATUSES = {429, 500, 502, 503, 504}

    def __init__(
        self,
        config: GTmetrixConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.config = config or GTmetrixConfig()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.config.base_url,
            auth=(self.config.api_key, ""),
            headers={"Content-Type": "application/vnd.api+json"},
            timeout=self.config.request_timeout,
            follow_redirects=False,
            transport=self._transport,
        )

    async def run_audit(self, url: str) -> PerfTestData:
        """
        Run a GTmetrix test and return its report.

        Raises:
            AuditError: QUOTA_EXCEEDED when the account has no credits left,
                TIMEOUT when polling runs out, other kinds per HTTP status
        """
        if not self.config.api_key:
            logger.warning("[GTmetrix] No API key configured")
            raise AuditError(AuditErrorKind.NOT_CONFIGURED, "GTmetrix API key not configured")

        logger.info(
            f"[GTmetrix] Starting test for {url} "
            f"(key {mask_api_key(self.config.api_key)})"
        )
        async with self._client() as client:
            test_id = await self._start_test(client, url)
            report_id = await self._wait_for_completion(client, test_id)
            return await self._fetch_report(client, report_id)

    async def _start_test(self, client: httpx.AsyncClient, url: str) -> str:
        payload = {
            "data": {
                "type": "test",
                "attributes": {"url": url, "report": "lighthouse"},
            }
        }
        try:
            response = await client.post("/tests", json=payload)
            response.raise_for_status()
            body = response.json()
            test_id = body["data"]["id"]
        except httpx.HTTPError as e:
            error = classify_http_error(e)
            logger.error(f"[GTmetrix] Failed to start test for {url}: {error.message}")
            raise error from e
        except (KeyError, TypeError, ValueError) as e:
            raise AuditError(AuditErrorKind.UPSTREAM_ERROR, "Malformed test creation response") from e

        credits_left = (body.get("meta") or {}).get("credits_left")
        logger.info(f"[GTmetrix] Test {test_id} created, credits left: {credits_left}")
        return str(test_id)

    async def _wait_for_completion(self, client: httpx.AsyncClient, test_id: str) -> str:
        """Poll the test until it yields a report id."""
        max_polls = self.config.max_polls

        for attempt in range(1, max_polls + 1):
            try:
                response = await client.get(f"/tests/{test_id}")
            except httpx.TransportError as e:
                logger.warning(
                    f"[GTmetrix] Poll {attempt}/{max_polls} for {test_id} failed: {e}, retrying"
                )
                await asyncio.sleep(self.config.poll_interval)
                continue

            if response.status_code == 303:
                report_id = self._report_id_from_location(response.headers.get("location"))
                if report_id:
                    logger.info(f"[GTmetrix] Test {test_id} redirected to report {report_id}")
                    return report_id

            if response.status_code in self.TRANSIENT_STATUSES:
                logger.warning(
                    f"[GTmetrix] Poll {attempt}/{max_polls} for {test_id} "
                    f"got HTTP {response.status_code}, retrying"
                )
                await asyncio.sleep(self.config.poll_interval)
                continue

            try:
                response.raise_for_status()
                attributes = response.json()["data"]["attributes"]
            except httpx.HTTPStatusError as e:
                raise classify_http_error(e) from e
            except (KeyError, TypeError, ValueError) as e:
                raise AuditError(AuditErrorKind.UPSTREAM_ERROR, "Malformed test state response") from e

            state = attributes.get("state")
            logger.info(f"[GTmetrix] Test {test_id} state ({attempt}/{max_polls}): {state}")

            if state == "completed" and attributes.get("report"):
                return str(attributes["report"])
            if state == "error":
                raise AuditError(
                    AuditErrorKind.UPSTREAM_ERROR,
                    f"GTmetrix test failed: {attributes.get('error') or state}",
                )

            await asyncio.sleep(self.config.poll_interval)

        raise AuditError(
            AuditErrorKind.TIMEOUT,
            f"GTmetrix test {test_id} not completed after {max_polls} polls",
        )

    def _report_id_from_location(self, location: str | None) -> str | None:
        if not location:
            return None
        match = self.REPORT_ID_PATTERN.search(location)
        return match.group(1) if match else None

    async def _fetch_report(self, client: httpx.AsyncClient, report_id: str) -> PerfTestData:
        try:
            response = await client.get(f"/reports/{report_id}")
            response.raise_for_status()
            attributes = response.json()["data"]["attributes"]
            return self._parse_report(attributes, report_id)
        except httpx.HTTPError as e:
            error = classify_http_error(e)
            logger.error(f"[GTmetrix] Failed to fetch report {report_id}: {error.message}")
            raise error from e
        except (KeyError, TypeError, ValueError) as e:
            raise AuditError(AuditErrorKind.UPSTREAM_ERROR, "Malformed report response") from e

    def _parse_report(self, attributes: dict[str, Any], report_id: str) -> PerfTestData:
        load_time_ms = attributes.get("fully_loaded_time") or attributes.get("onload_time") or 0
        result = PerfTestData(
            report_id=report_id,
            report_url=f"https://gtmetrix.com/reports/{report_id}",
            load_time_s=load_time_ms / 1000,
            page_size_kb=(attributes.get("page_bytes") or 0) / 1024,
            requests=attributes.get("page_requests") or 0,
            grade=attributes.get("gtmetrix_grade") or "",
            performance_score=attributes.get("performance_score"),
            structure_score=attributes.get("structure_score"),
            lcp_s=(attributes.get("largest_contentful_paint") or 0) / 1000,
            tbt_ms=attributes.get("total_blocking_time") or 0,
            cls=attributes.get("cumulative_layout_shift") or 0,
            speed_index_ms=attributes.get("speed_index") or 0,
        )
        logger.info(
            f"[GTmetrix] Report {report_id}: grade={result.grade} "
            f"score={result.performance_score} load={result.load_time_s:.2f}s"
        )
        return result
