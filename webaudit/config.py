from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    PROJECT_NAME: str = "WebAudit"
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"

    API_V1_STR: str = "/api/v1"

    DATABASE_URL: str = "sqlite+aiosqlite:///./webaudit.db"

    # Cache Configuration
    # Backend: "memory" for in-process, "redis" for a shared Redis instance
    CACHE_BACKEND: str = "memory"
    REDIS_URL: str = "redis://localhost:6379/0"
    AUDIT_CACHE_TTL: int = 24 * 60 * 60
    RECOMMENDATION_CACHE_TTL: int = 24 * 60 * 60

    # Google PageSpeed Insights (page auditor)
    PAGESPEED_API_KEY: str = ""
    PAGESPEED_TIMEOUT: float = 60.0
    PAGESPEED_STRATEGY: str = "mobile"
    PAGE_AUDIT_TIMEOUT: float = 120.0

    # GTmetrix (performance tester)
    GTMETRIX_API_KEY: str = ""
    GTMETRIX_BASE_URL: str = "https://gtmetrix.com/api/2.0"
    GTMETRIX_REQUEST_TIMEOUT: float = 60.0
    GTMETRIX_POLL_INTERVAL: float = 15.0
    GTMETRIX_MAX_POLLS: int = 20
    PERF_TEST_TIMEOUT: float = 300.0

    # LLM Configuration
    # Provider: "openai", "anthropic", "mistral" or "local" (LM Studio)
    LLM_PROVIDER: str = "mistral"
    LLM_BASE_URL: str = "https://api.mistral.ai/v1"
    LLM_API_KEY: str = ""
    LLM_MODEL: str = "mistral-medium"
    LLM_TEMPERATURE: float = 0.8
    LLM_MAX_TOKENS: int = 150
    LLM_TIMEOUT: float = 60.0

    # Recommendation generation
    RECOMMENDATION_CONCURRENCY: int = 3
    RECOMMENDATION_RETRY_DELAYS: List[float] = [1.0, 2.0, 5.0, 10.0, 15.0]
    RECOMMENDATION_BATCH_DELAY: float = 1.0
    RECOMMENDATION_LOCALE: str = "en"

    JWT_SECRET: str = "change-me"
    JWT_ALGORITHM: str = "HS256"

    CORS_ORIGINS: str = "http://localhost:3000"

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def cors_origins_list(self) -> List[str]:
        if isinstance(self.CORS_ORIGINS, str):
            return [o.strip() for o in self.CORS_ORIGINS.split(",")]
        return self.CORS_ORIGINS
