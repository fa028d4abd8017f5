"""
LLM Integration Client

Provides a unified interface for text generation supporting:
- Mistral API (OpenAI-compatible chat completions)
- OpenAI API
- Local LLM via LM Studio (OpenAI-compatible API)
- Anthropic API

Used by the recommendation engine to write remediation advice per issue.
"""

from typing import Optional, List, Dict, Any
from enum import Enum
from dataclasses import dataclass
import httpx
from pydantic import BaseModel


class LLMProvider(str, Enum):
    LOCAL = "local"
    OPENAI = "openai"
    MISTRAL = "mistral"
    ANTHROPIC = "anthropic"


class Message(BaseModel):
    role: str  # system, user, assistant
    content: str


class LLMResponse(BaseModel):
    content: str
    model: str
    usage: Optional[Dict[str, int]] = None
    finish_reason: Optional[str] = None


@dataclass(frozen=True)
class LLMConfig:
    provider: LLMProvider = LLMProvider.MISTRAL
    base_url: str = "https://api.mistral.ai/v1"
    api_key: str = ""
    model: str = "mistral-medium"
    temperature: float = 0.8
    max_tokens: int = 150
    timeout: float = 60.0


class LLMClient:
    """Unified LLM client supporting multiple providers.

    HTTP failures surface as ``httpx.HTTPStatusError`` so callers can tell a
    rate limit (429) apart from other errors.
    """

    def __init__(
        self,
        config: Optional[LLMConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.config = config or LLMConfig()
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    def is_configured(self) -> bool:
        if self.config.provider == LLMProvider.LOCAL:
            return bool(self.config.base_url)
        return bool(self.config.api_key)

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=httpx.Timeout(self.config.timeout),
                headers=self._get_headers(),
                transport=self._transport,
            )
        return self._client

    def _get_headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json"}

        if self.config.provider in (LLMProvider.OPENAI, LLMProvider.MISTRAL):
            headers["Authorization"] = f"Bearer {self.config.api_key}"
        elif self.config.provider == LLMProvider.ANTHROPIC:
            headers["x-api-key"] = self.config.api_key
            headers["anthropic-version"] = "2023-06-01"
        elif self.config.provider == LLMProvider.LOCAL:
            if self.config.api_key and self.config.api_key != "not-needed":
                headers["Authorization"] = f"Bearer {self.config.api_key}"

        return headers

    async def chat(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """Send chat completion request."""

        if self.config.provider == LLMProvider.ANTHROPIC:
            return await self._chat_anthropic(messages, temperature, max_tokens)
        else:
            return await self._chat_openai_compatible(messages, temperature, max_tokens)

    async def _chat_openai_compatible(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """Chat using OpenAI-compatible API (Mistral, OpenAI, LM Studio)."""

        client = await self._get_client()
        url = f"{self.config.base_url}/chat/completions"

        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temperature if temperature is not None else self.config.temperature,
            "max_tokens": max_tokens or self.config.max_tokens,
        }

        response = await client.post(url, json=payload)
        response.raise_for_status()
        data = response.json()

        choice = data["choices"][0]
        return LLMResponse(
            content=choice["message"]["content"],
            model=data.get("model", self.config.model),
            usage=data.get("usage"),
            finish_reason=choice.get("finish_reason"),
        )

    async def _chat_anthropic(
        self,
        messages: List[Message],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> LLMResponse:
        """Chat using Anthropic API."""

        client = await self._get_client()
        url = f"{self.config.base_url}/messages"

        # Extract system message if present
        system_message = None
        chat_messages = []
        for m in messages:
            if m.role == "system":
                system_message = m.content
            else:
                chat_messages.append({"role": m.role, "content": m.content})

        payload: Dict[str, Any] = {
            "model": self.config.model,
            "messages": chat_messages,
            "max_tokens": max_tokens or self.config.max_tokens,
        }

        if system_message:
            payload["system"] = system_message

        if temperature is not None:
            payload["temperature"] = temperature

        response = await client.post(url, json=payload)
        response.raise_for_status()
        data = response.json()

        content = data["content"][0]["text"] if data.get("content") else ""
        return LLMResponse(
            content=content,
            model=data.get("model", self.config.model),
            usage={
                "prompt_tokens": data.get("usage", {}).get("input_tokens", 0),
                "completion_tokens": data.get("usage", {}).get("output_tokens", 0),
            },
            finish_reason=data.get("stop_reason"),
        )

    async def close(self):
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
