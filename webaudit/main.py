"""
FastAPI application entry point for WebAudit.
"""
import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from webaudit.api.v1.router import api_router
from webaudit.config import Settings
from webaudit.core.deps import build_llm_client, build_orchestrator
from webaudit.database import create_engine, create_session_maker, init_db
from webaudit.integrations.llm import LLMClient
from webaudit.services.cache import RedisCacheStore, create_cache_store
from webaudit.services.orchestrator import AuditOrchestrator

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    # Startup
    await init_db(app.state.engine)
    logger.info(f"[App] {app.title} started")
    yield
    # Shutdown
    llm_client: Optional[LLMClient] = app.state.llm_client
    if llm_client is not None:
        await llm_client.close()
    if isinstance(app.state.cache, RedisCacheStore):
        await app.state.cache.close()
    await app.state.engine.dispose()


def create_app(
    settings: Optional[Settings] = None,
    orchestrator: Optional[AuditOrchestrator] = None,
) -> FastAPI:
    """Build the application. An orchestrator may be injected (tests)."""
    settings = settings or Settings()

    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = FastAPI(
        title=settings.PROJECT_NAME,
        version=settings.VERSION,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=f"{settings.API_V1_STR}/redoc",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.engine = create_engine(
        settings.DATABASE_URL, echo=settings.ENVIRONMENT == "development"
    )
    app.state.session_maker = create_session_maker(app.state.engine)
    app.state.cache = create_cache_store(
        settings.CACHE_BACKEND, settings.REDIS_URL, default_ttl=settings.AUDIT_CACHE_TTL
    )
    if orchestrator is None:
        app.state.llm_client = build_llm_client(settings)
        orchestrator = build_orchestrator(settings, app.state.cache, app.state.llm_client)
    else:
        app.state.llm_client = None
    app.state.orchestrator = orchestrator

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Include API router
    app.include_router(api_router, prefix=settings.API_V1_STR)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "version": settings.VERSION}

    return app
