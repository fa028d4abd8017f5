"""
Unit tests for the LLM client.
"""
import json

import httpx
import pytest

from webaudit.integrations.llm import LLMClient, LLMConfig, LLMProvider, Message


class TestLLMClient:

    @pytest.mark.asyncio
    async def test_openai_compatible_chat(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "model": "mistral-medium",
                "choices": [{"message": {"content": "Compress images."}, "finish_reason": "stop"}],
            })

        client = LLMClient(LLMConfig(api_key="secret"), transport=httpx.MockTransport(handler))
        async with client:
            response = await client.chat([Message(role="user", content="Help")])

        assert response.content == "Compress images."
        assert seen["url"] == "https://api.mistral.ai/v1/chat/completions"
        assert seen["auth"] == "Bearer secret"
        assert seen["body"]["model"] == "mistral-medium"
        assert seen["body"]["temperature"] == 0.8
        assert seen["body"]["max_tokens"] == 150

    @pytest.mark.asyncio
    async def test_anthropic_chat(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["headers"] = request.headers
            seen["body"] = json.loads(request.content)
            return httpx.Response(200, json={
                "model": "claude",
                "content": [{"type": "text", "text": "Add alt text."}],
                "usage": {"input_tokens": 10, "output_tokens": 4},
                "stop_reason": "end_turn",
            })

        config = LLMConfig(
            provider=LLMProvider.ANTHROPIC,
            base_url="https://api.anthropic.com/v1",
            api_key="secret",
            model="claude",
        )
        client = LLMClient(config, transport=httpx.MockTransport(handler))
        response = await client.chat([
            Message(role="system", content="Be brief"),
            Message(role="user", content="Help"),
        ])
        await client.close()

        assert response.content == "Add alt text."
        assert response.usage == {"prompt_tokens": 10, "completion_tokens": 4}
        assert seen["headers"]["x-api-key"] == "secret"
        assert seen["body"]["system"] == "Be brief"
        assert seen["body"]["messages"] == [{"role": "user", "content": "Help"}]

    @pytest.mark.asyncio
    async def test_rate_limit_raises_status_error(self):
        client = LLMClient(
            LLMConfig(api_key="secret"),
            transport=httpx.MockTransport(lambda request: httpx.Response(429)),
        )

        with pytest.raises(httpx.HTTPStatusError) as exc_info:
            await client.chat([Message(role="user", content="Help")])
        await client.close()

        assert exc_info.value.response.status_code == 429

    def test_is_configured(self):
        assert LLMClient(LLMConfig(api_key="k")).is_configured is True
        assert LLMClient(LLMConfig(api_key="")).is_configured is False
        assert LLMClient(LLMConfig(provider=LLMProvider.LOCAL, base_url="http://localhost:1234/v1")).is_configured is True
