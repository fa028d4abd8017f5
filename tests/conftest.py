"""
Pytest configuration and fixtures for WebAudit tests.
"""
import asyncio
from typing import AsyncGenerator, ClassVar, Optional
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from webaudit.config import Settings
from webaudit.core.errors import AuditError
from webaudit.core.security import create_access_token
from webaudit.database import get_db
from webaudit.integrations.base import (
    ExternalAuditClient,
    PageAuditData,
    PerfTestData,
    RawAuditData,
    RawDiagnostic,
)
from webaudit.integrations.llm import LLMResponse
from webaudit.main import create_app
from webaudit.models.base import Base
from webaudit.schemas.audit import Category, Issue, IssueSeverity
from webaudit.services.cache import MemoryCacheStore
from webaudit.services.orchestrator import AuditOrchestrator, OrchestratorConfig
from webaudit.services.recommendations import RecommendationConfig, RecommendationEngine

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest_asyncio.fixture(scope="function")
async def test_engine():
    """Create a test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create a test database session."""
    async_session_maker = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session_maker() as session:
        yield session
        await session.rollback()


# ============================================================================
# Audit Client Fakes
# ============================================================================

class FakeAuditClient(ExternalAuditClient):
    """Audit client returning a canned result or raising a canned error."""

    name: ClassVar[str] = "fake"

    def __init__(
        self,
        name: str,
        data_model: type,
        result: Optional[RawAuditData] = None,
        error: Optional[BaseException] = None,
        delay: float = 0.0,
    ):
        self.name = name
        self.data_model = data_model
        self.result = result
        self.error = error
        self.delay = delay
        self.calls: list[str] = []
        self.cancelled = False

    async def run_audit(self, url: str) -> RawAuditData:
        self.calls.append(url)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
        except asyncio.CancelledError:
            self.cancelled = True
            raise
        if self.error is not None:
            raise self.error
        return self.result


@pytest.fixture
def page_audit_data() -> PageAuditData:
    """Page audit with two SEO diagnostics (0.2 and 0.95) and one UI/UX issue."""
    return PageAuditData(
        performance_score=0.62,
        accessibility_score=0.81,
        seo_score=0.74,
        diagnostics=[
            RawDiagnostic(
                id="meta-description",
                title="Document does not have a meta description",
                score=0.2,
            ),
            RawDiagnostic(
                id="link-text",
                title="Links do not have descriptive text",
                score=0.95,
            ),
            RawDiagnostic(
                id="color-contrast",
                title="Background and foreground colors do not have a sufficient contrast ratio",
                score=0.0,
            ),
            RawDiagnostic(id="html-has-lang", title="<html> element has a [lang] attribute", score=1),
        ],
        keywords=["Example", "Domain"],
        meta_description="",
        canonical_url="https://example.com/",
        interactive_time_ms=3120.0,
        viewport_score=1.0,
        content_width_ok=True,
    )


@pytest.fixture
def perf_test_data() -> PerfTestData:
    return PerfTestData(
        report_id="abc123",
        report_url="https://gtmetrix.com/reports/abc123",
        load_time_s=2.35,
        page_size_kb=1534.2,
        requests=42,
        grade="B",
        performance_score=85,
        structure_score=91,
        lcp_s=1.8,
        tbt_ms=120,
        cls=0.02,
        speed_index_ms=1900,
    )


@pytest.fixture
def make_client():
    """Factory for fake audit clients."""

    def _make(name: str, data_model: type, result=None, error=None, delay: float = 0.0):
        return FakeAuditClient(name, data_model, result=result, error=error, delay=delay)

    return _make


@pytest.fixture
def audit_error():
    """Factory for AuditError instances."""

    def _make(kind, message: str = ""):
        return AuditError(kind, message)

    return _make


# ============================================================================
# Recommendation Fixtures
# ============================================================================

@pytest.fixture
def make_issue():
    """Factory for Issue instances."""

    def _make(
        description: str = "Document does not have a meta description",
        category: Category = Category.SEO,
        severity: IssueSeverity = IssueSeverity.HIGH,
        source_key: Optional[str] = None,
    ) -> Issue:
        return Issue(
            description=description,
            category=category,
            severity=severity,
            source_key=source_key or f"{description}@https://example.com#0",
            audit_id="meta-description",
        )

    return _make


@pytest.fixture
def fast_recommendation_config() -> RecommendationConfig:
    """Recommendation settings with every delay set to zero."""
    return RecommendationConfig(
        concurrency=3,
        retry_delays=(0, 0, 0, 0, 0),
        batch_delay=0,
        locale="en",
    )


@pytest.fixture
def mock_llm():
    """Configured LLM client mock answering every prompt."""
    mock = MagicMock()
    mock.is_configured = True
    mock.chat = AsyncMock(return_value=LLMResponse(
        content="  Add a unique meta description of about 150 characters.  ",
        model="mistral-medium",
    ))
    return mock


@pytest.fixture
def memory_cache() -> MemoryCacheStore:
    return MemoryCacheStore(default_ttl=60)


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


# ============================================================================
# FastAPI App Fixtures
# ============================================================================

TEST_JWT_SECRET = "test-secret"


@pytest.fixture
def test_settings(tmp_path) -> Settings:
    return Settings(
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path}/webaudit-test.db",
        ENVIRONMENT="test",
        CACHE_BACKEND="memory",
        JWT_SECRET=TEST_JWT_SECRET,
        LLM_API_KEY="",
        RECOMMENDATION_BATCH_DELAY=0,
        RECOMMENDATION_RETRY_DELAYS=[0, 0, 0, 0, 0],
        LOG_LEVEL="WARNING",
    )


@pytest.fixture
def audit_orchestrator(make_client, memory_cache, page_audit_data, perf_test_data) -> AuditOrchestrator:
    """Orchestrator with fake auditors that both succeed."""
    return AuditOrchestrator(
        page_auditor=make_client("pagespeed", PageAuditData, result=page_audit_data),
        perf_tester=make_client("gtmetrix", PerfTestData, result=perf_test_data),
        recommendation_engine=RecommendationEngine(cache=memory_cache),
        cache=memory_cache,
        config=OrchestratorConfig(page_audit_timeout=1, perf_test_timeout=1),
    )


@pytest.fixture
def app(db_session: AsyncSession, test_settings: Settings, audit_orchestrator) -> FastAPI:
    """Create test FastAPI application."""
    test_app = create_app(test_settings, orchestrator=audit_orchestrator)

    async def override_get_db():
        yield db_session
        await db_session.commit()

    test_app.dependency_overrides[get_db] = override_get_db

    yield test_app

    test_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def async_client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers():
    """Factory for bearer headers of a given owner."""

    def _make(owner_id: str = "user-1") -> dict:
        token = create_access_token({"sub": owner_id}, TEST_JWT_SECRET)
        return {"Authorization": f"Bearer {token}"}

    return _make
