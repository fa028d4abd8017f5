"""
Domain errors raised by the audit pipeline.

Only InvalidUrlError, InsufficientCreditsError and OrchestrationError ever
reach a caller of the orchestrator. AuditError is raised by the external
audit clients and absorbed by the orchestrator; CacheError is absorbed by
the cache helpers.
"""
from enum import Enum


class AuditErrorKind(str, Enum):
    TIMEOUT = "timeout"
    RATE_LIMITED = "rate_limited"
    QUOTA_EXCEEDED = "quota_exceeded"
    UPSTREAM_ERROR = "upstream_error"
    NOT_CONFIGURED = "not_configured"


# Human-readable degradation reasons shown on simulated sections
DEGRADATION_REASONS = {
    AuditErrorKind.TIMEOUT: "The analysis took too long to complete. Simulated data is shown.",
    AuditErrorKind.RATE_LIMITED: "Too many requests to the analysis service. Try again in a few minutes. Simulated data is shown.",
    AuditErrorKind.QUOTA_EXCEEDED: "The analysis service has no credits left. Simulated data is shown.",
    AuditErrorKind.UPSTREAM_ERROR: "The analysis service returned an error. Simulated data is shown.",
    AuditErrorKind.NOT_CONFIGURED: "No API key is configured for the analysis service. Simulated data is shown.",
}


class WebAuditError(Exception):
    """Base class for errors surfaced to callers of the audit pipeline."""


class InvalidUrlError(WebAuditError):
    """The URL is not an absolute http(s) address."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Invalid URL: {url!r} (expected an absolute http or https URL)")


class InsufficientCreditsError(WebAuditError):
    """The performance testing account has run out of credits."""

    def __init__(self, provider: str = "gtmetrix", detail: str | None = None):
        self.provider = provider
        self.detail = detail
        super().__init__(
            f"Insufficient {provider} credits to run the performance test"
            + (f": {detail}" if detail else "")
        )


class OrchestrationError(WebAuditError):
    """Unexpected failure while normalizing or assembling an audit."""

    def __init__(self, message: str, kind: str = "internal"):
        self.kind = kind
        super().__init__(message)


class AuditError(Exception):
    """Failure of a single external audit call."""

    def __init__(self, kind: AuditErrorKind, message: str = ""):
        self.kind = kind
        self.message = message or kind.value
        super().__init__(f"{kind.value}: {self.message}")

    @property
    def reason(self) -> str:
        return DEGRADATION_REASONS[self.kind]


class CacheError(Exception):
    """Storage failure inside a cache store."""
