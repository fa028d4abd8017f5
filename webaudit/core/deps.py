"""
FastAPI dependencies and component wiring.
"""
from typing import Annotated, Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.ext.asyncio import AsyncSession

from webaudit.config import Settings
from webaudit.core.exceptions import UnauthorizedError
from webaudit.core.security import decode_token
from webaudit.database import get_db
from webaudit.integrations.gtmetrix import GTmetrixClient, GTmetrixConfig
from webaudit.integrations.llm import LLMClient, LLMConfig, LLMProvider
from webaudit.integrations.pagespeed import PageSpeedClient, PageSpeedConfig
from webaudit.services.audit_service import AuditRepository, AuditService
from webaudit.services.cache import CacheStore
from webaudit.services.normalizer import ResultNormalizer
from webaudit.services.orchestrator import AuditOrchestrator, OrchestratorConfig
from webaudit.services.recommendations import RecommendationConfig, RecommendationEngine

security = HTTPBearer(auto_error=False)


def build_llm_client(settings: Settings) -> LLMClient:
    return LLMClient(LLMConfig(
        provider=LLMProvider(settings.LLM_PROVIDER),
        base_url=settings.LLM_BASE_URL,
        api_key=settings.LLM_API_KEY,
        model=settings.LLM_MODEL,
        temperature=settings.LLM_TEMPERATURE,
        max_tokens=settings.LLM_MAX_TOKENS,
        timeout=settings.LLM_TIMEOUT,
    ))


def build_orchestrator(
    settings: Settings,
    cache: CacheStore,
    llm_client: Optional[LLMClient] = None,
) -> AuditOrchestrator:
    """Assemble the audit pipeline from configuration."""
    page_auditor = PageSpeedClient(PageSpeedConfig(
        api_key=settings.PAGESPEED_API_KEY,
        strategy=settings.PAGESPEED_STRATEGY,
        timeout=settings.PAGESPEED_TIMEOUT,
    ))
    perf_tester = GTmetrixClient(GTmetrixConfig(
        api_key=settings.GTMETRIX_API_KEY,
        base_url=settings.GTMETRIX_BASE_URL,
        request_timeout=settings.GTMETRIX_REQUEST_TIMEOUT,
        poll_interval=settings.GTMETRIX_POLL_INTERVAL,
        max_polls=settings.GTMETRIX_MAX_POLLS,
    ))
    engine = RecommendationEngine(
        llm_client=llm_client or build_llm_client(settings),
        cache=cache,
        config=RecommendationConfig(
            concurrency=settings.RECOMMENDATION_CONCURRENCY,
            retry_delays=tuple(settings.RECOMMENDATION_RETRY_DELAYS),
            batch_delay=settings.RECOMMENDATION_BATCH_DELAY,
            locale=settings.RECOMMENDATION_LOCALE,
            cache_ttl=settings.RECOMMENDATION_CACHE_TTL,
        ),
    )
    return AuditOrchestrator(
        page_auditor=page_auditor,
        perf_tester=perf_tester,
        normalizer=ResultNormalizer(),
        recommendation_engine=engine,
        cache=cache,
        config=OrchestratorConfig(
            page_audit_timeout=settings.PAGE_AUDIT_TIMEOUT,
            perf_test_timeout=settings.PERF_TEST_TIMEOUT,
            audit_cache_ttl=settings.AUDIT_CACHE_TTL,
        ),
    )


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def get_optional_owner(
    request: Request,
    credentials: Annotated[Optional[HTTPAuthorizationCredentials], Depends(security)],
) -> Optional[str]:
    """Owner id from a valid bearer token, None for anonymous callers."""
    if credentials is None:
        return None
    settings = get_settings(request)
    payload = decode_token(credentials.credentials, settings.JWT_SECRET, settings.JWT_ALGORITHM)
    if payload is None:
        return None
    sub = payload.get("sub")
    return str(sub) if sub else None


async def get_current_owner(
    owner_id: Annotated[Optional[str], Depends(get_optional_owner)],
) -> str:
    """Owner id of an authenticated caller."""
    if owner_id is None:
        raise UnauthorizedError("Could not validate credentials")
    return owner_id


async def get_audit_service(
    request: Request,
    db: Annotated[AsyncSession, Depends(get_db)],
) -> AuditService:
    return AuditService(request.app.state.orchestrator, AuditRepository(db))


OptionalOwner = Annotated[Optional[str], Depends(get_optional_owner)]
CurrentOwner = Annotated[str, Depends(get_current_owner)]
AuditServiceDep = Annotated[AuditService, Depends(get_audit_service)]
