"""
External service integrations for WebAudit.

- pagespeed: Google PageSpeed Insights, the page auditor
- gtmetrix: GTmetrix API 2.0, the performance tester
- llm: LLM client for recommendation texts (Mistral/OpenAI/Anthropic/local)
"""

from webaudit.integrations.base import (
    ExternalAuditClient,
    PageAuditData,
    PerfTestData,
    RawDiagnostic,
)
from webaudit.integrations.gtmetrix import GTmetrixClient, GTmetrixConfig
from webaudit.integrations.llm import LLMClient, LLMConfig, LLMResponse, Message
from webaudit.integrations.pagespeed import PageSpeedClient, PageSpeedConfig

__all__ = [
    "ExternalAuditClient",
    "PageAuditData",
    "PerfTestData",
    "RawDiagnostic",
    "GTmetrixClient",
    "GTmetrixConfig",
    "LLMClient",
    "LLMConfig",
    "LLMResponse",
    "Message",
    "PageSpeedClient",
    "PageSpeedConfig",
]
