"""
Tests for the OpenAI-compatible completion adapter.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest
from openai import OpenAIError

from config.settings import Settings
from utils import llm_providers
from utils.llm_providers import (
    FALLBACK_TEXT,
    GenerationError,
    OpenAICompatibleProvider,
    get_llm_provider,
)

MESSAGES = [{"role": "user", "content": "hi"}]


def _completion(content):
    return SimpleNamespace(
        error=None,
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
    )


def _provider(create: AsyncMock) -> OpenAICompatibleProvider:
    provider = OpenAICompatibleProvider("key", base_url="https://llm.test/v1")
    client = MagicMock()
    client.chat.completions.create = create
    provider._client = client
    return provider


class TestComplete:
    @pytest.mark.asyncio
    async def test_sends_defaults_and_returns_content(self):
        create = AsyncMock(return_value=_completion("explained"))
        text = await _provider(create).complete(MESSAGES)

        assert text == "explained"
        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "gpt-3.5-turbo"
        assert kwargs["messages"] == MESSAGES
        assert kwargs["max_tokens"] == 900
        assert kwargs["temperature"] == 0.3

    @pytest.mark.asyncio
    async def test_overrides_are_forwarded(self):
        create = AsyncMock(return_value=_completion("code"))
        await _provider(create).complete(MESSAGES, model="m", max_tokens=10, temperature=0.0)

        kwargs = create.await_args.kwargs
        assert (kwargs["model"], kwargs["max_tokens"], kwargs["temperature"]) == ("m", 10, 0.0)

    @pytest.mark.asyncio
    async def test_empty_content_falls_back(self):
        create = AsyncMock(return_value=_completion(None))
        assert await _provider(create).complete(MESSAGES) == FALLBACK_TEXT

    @pytest.mark.asyncio
    async def test_missing_choices_falls_back(self):
        create = AsyncMock(return_value=SimpleNamespace(error=None, choices=[]))
        assert await _provider(create).complete(MESSAGES) == FALLBACK_TEXT

    @pytest.mark.asyncio
    async def test_error_payload_raises(self):
        create = AsyncMock(return_value=SimpleNamespace(error={"message": "quota exceeded"}, choices=None))
        with pytest.raises(GenerationError, match="quota exceeded"):
            await _provider(create).complete(MESSAGES)

    @pytest.mark.asyncio
    async def test_sdk_error_is_wrapped(self):
        create = AsyncMock(side_effect=OpenAIError("connection reset"))
        with pytest.raises(GenerationError, match="connection reset"):
            await _provider(create).complete(MESSAGES)


class TestFactory:
    def setup_method(self):
        llm_providers._provider_cache.clear()

    def test_openrouter_provider(self):
        settings = Settings(_env_file=None, llm_provider="openrouter", openrouter_api_key="k", app_title="T")
        provider = get_llm_provider(settings)

        assert isinstance(provider, OpenAICompatibleProvider)
        assert provider.base_url == "https://openrouter.ai/api/v1"
        assert provider.default_headers["X-Title"] == "T"
        assert "HTTP-Referer" in provider.default_headers

    def test_openai_provider_has_no_attribution_headers(self):
        settings = Settings(_env_file=None, llm_provider="openai", openai_api_key="k")
        provider = get_llm_provider(settings)
        assert provider.base_url is None
        assert provider.default_headers == {}

    def test_cached(self):
        settings = Settings(_env_file=None)
        assert get_llm_provider(settings) is get_llm_provider(settings)

    def test_unsupported_provider(self):
        with pytest.raises(ValueError, match="Unsupported"):
            get_llm_provider(Settings(_env_file=None, llm_provider="nope"))

    def test_different_api_keys_get_different_providers(self):
        first = get_llm_provider(Settings(_env_file=None, openrouter_api_key="key-one"))
        second = get_llm_provider(Settings(_env_file=None, openrouter_api_key="key-two"))

        assert first is not second
        assert first.api_key == "key-one"
        assert second.api_key == "key-two"

    def test_base_url_and_timeout_are_not_shared(self):
        base = get_llm_provider(Settings(_env_file=None, openrouter_api_key="k"))
        other_url = get_llm_provider(
            Settings(_env_file=None, openrouter_api_key="k", openrouter_base_url="https://proxy.test/v1")
        )
        other_timeout = get_llm_provider(
            Settings(_env_file=None, openrouter_api_key="k", llm_timeout_seconds=5)
        )

        assert other_url is not base
        assert other_url.base_url == "https://proxy.test/v1"
        assert other_timeout is not base
        assert other_timeout.timeout == 5
