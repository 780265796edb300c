"""
Thin adapter layer over OpenAI-compatible chat completion APIs
(OpenRouter, OpenAI, …).

Each provider exposes the same interface so callers never import
provider-specific code.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Tuple

from config.settings import Settings, config

logger = logging.getLogger(__name__)

FALLBACK_TEXT = "No explanation generated."

Message = Dict[str, str]


class GenerationError(RuntimeError):
    """The upstream completion API failed or returned an error payload."""


class BaseLLMProvider(ABC):
    """Common interface that every concrete provider implements."""

    @abstractmethod
    async def complete(
        self,
        messages: List[Message],
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        ...


# ═══════════════════════════════════════════════════════════════════════════════
# OpenAI-compatible (OpenRouter / OpenAI)
# ═══════════════════════════════════════════════════════════════════════════════


class OpenAICompatibleProvider(BaseLLMProvider):
    def __init__(
        self,
        api_key: str,
        *,
        base_url: str | None = None,
        default_model: str = "gpt-3.5-turbo",
        default_max_tokens: int = 900,
        default_temperature: float = 0.3,
        default_headers: Optional[Dict[str, str]] = None,
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.base_url = base_url
        self.default_model = default_model
        self.default_max_tokens = default_max_tokens
        self.default_temperature = default_temperature
        self.default_headers = default_headers or {}
        self.timeout = timeout
        self._client = None

    @property
    def client(self):
        # Built on first use so a missing key only fails the requests that need it.
        if self._client is None:
            from openai import AsyncOpenAI

            self._client = AsyncOpenAI(
                api_key=self.api_key,
                base_url=self.base_url,
                default_headers=self.default_headers,
                timeout=self.timeout,
                max_retries=0,
            )
        return self._client

    async def complete(
        self,
        messages: List[Message],
        *,
        model: str | None = None,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        from openai import OpenAIError

        try:
            response = await self.client.chat.completions.create(
                model=model or self.default_model,
                messages=messages,
                max_tokens=max_tokens or self.default_max_tokens,
                temperature=self.default_temperature if temperature is None else temperature,
            )
        except OpenAIError as exc:
            logger.warning("Completion request failed: %s", exc)
            raise GenerationError(_error_message(exc)) from exc

        # OpenRouter can answer 200 with {"error": {...}} instead of choices.
        error = getattr(response, "error", None)
        if error:
            raise GenerationError(_error_message(error))

        choices = getattr(response, "choices", None) or []
        if not choices:
            return FALLBACK_TEXT
        message = getattr(choices[0], "message", None)
        return (getattr(message, "content", None) or "") or FALLBACK_TEXT


def _error_message(error: Any) -> str:
    if isinstance(error, dict):
        return str(error.get("message") or error)
    body = getattr(error, "body", None)
    if isinstance(body, dict):
        inner = body.get("error", body)
        if isinstance(inner, dict) and inner.get("message"):
            return str(inner["message"])
    return str(getattr(error, "message", None) or error)


# ═══════════════════════════════════════════════════════════════════════════════
# Factory
# ═══════════════════════════════════════════════════════════════════════════════

_provider_cache: Dict[Tuple[Any, ...], BaseLLMProvider] = {}


def get_llm_provider(settings: Settings | None = None) -> BaseLLMProvider:
    """
    Return (and cache) the provider selected by ``settings.llm_provider``.

    ``openrouter`` adds the OpenRouter attribution headers; ``openai`` talks
    to the default OpenAI endpoint.
    """
    settings = settings or config
    provider_name = settings.llm_provider.lower()
    # Everything that shapes the client is part of the key, so two settings
    # objects never share a provider built for different credentials.
    cache_key = (
        provider_name,
        settings.llm_api_key(),
        settings.openrouter_base_url if provider_name == "openrouter" else None,
        settings.llm_model,
        settings.llm_max_tokens,
        settings.llm_temperature,
        settings.llm_timeout_seconds,
        settings.http_referer,
        settings.app_title,
    )
    if cache_key in _provider_cache:
        return _provider_cache[cache_key]

    if provider_name == "openrouter":
        instance = OpenAICompatibleProvider(
            settings.openrouter_api_key,
            base_url=settings.openrouter_base_url,
            default_model=settings.llm_model,
            default_max_tokens=settings.llm_max_tokens,
            default_temperature=settings.llm_temperature,
            default_headers={
                "HTTP-Referer": settings.http_referer,
                "X-Title": settings.app_title,
            },
            timeout=settings.llm_timeout_seconds,
        )
    elif provider_name == "openai":
        instance = OpenAICompatibleProvider(
            settings.openai_api_key,
            default_model=settings.llm_model,
            default_max_tokens=settings.llm_max_tokens,
            default_temperature=settings.llm_temperature,
            timeout=settings.llm_timeout_seconds,
        )
    else:
        raise ValueError(f"Unsupported LLM provider: {settings.llm_provider}")

    _provider_cache[cache_key] = instance
    return instance
