"""
TubeLens LLM Providers: thin async wrappers over the OpenAI and Groq SDKs.

Each provider is built once from Settings; a provider without credentials is
simply left out of the chain returned by build_llm_providers(), so callers
never re-check the environment per request.
"""
from __future__ import annotations

import logging
from typing import List, Optional, Protocol, Sequence

from app.core.config import Settings, get_settings
from app.core.errors import ExternalServiceError

logger = logging.getLogger(__name__)


class LLMProvider(Protocol):
    """Anything that can turn (model, prompt) into raw completion text."""

    name: str
    models: Sequence[str]

    async def complete(
        self, model: str, prompt: str, *, json_mode: bool = True, temperature: float = 0.7,
    ) -> str: ...


class _ChatCompletionsProvider:
    """Shared chat.completions call shape (OpenAI-compatible SDKs)."""

    name = "llm"

    def __init__(self, client, models: Sequence[str]):
        self._client = client
        self.models = list(models)

    async def complete(
        self, model: str, prompt: str, *, json_mode: bool = True, temperature: float = 0.7,
    ) -> str:
        kwargs = {
            "model": model,
            "messages": [{"role": "system", "content": prompt}],
            "temperature": temperature,
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        try:
            completion = await self._client.chat.completions.create(**kwargs)
        except Exception as exc:
            raise ExternalServiceError(f"{self.name}:{model}", exc) from exc

        choices = getattr(completion, "choices", None) or []
        content = choices[0].message.content if choices else None
        if not content:
            raise ExternalServiceError(f"{self.name}:{model}", ValueError("No content in response"))
        return content

    def __repr__(self) -> str:
        return f"<{type(self).__name__} models={self.models}>"


class OpenAIProvider(_ChatCompletionsProvider):
    name = "openai"

    @classmethod
    def from_settings(cls, settings: Settings) -> "OpenAIProvider":
        from openai import AsyncOpenAI

        client = AsyncOpenAI(api_key=settings.openai_api_key, max_retries=1)
        return cls(client, [settings.openai_model])


class GroqProvider(_ChatCompletionsProvider):
    name = "groq"

    @classmethod
    def from_settings(cls, settings: Settings) -> "GroqProvider":
        from groq import AsyncGroq

        client = AsyncGroq(api_key=settings.groq_api_key, max_retries=1)
        return cls(client, settings.groq_models)


def build_llm_providers(settings: Optional[Settings] = None) -> List[LLMProvider]:
    """Primary (OpenAI) first, secondary (Groq) second; absent keys are skipped."""
    settings = settings or get_settings()
    providers: List[LLMProvider] = []
    if settings.has_openai:
        providers.append(OpenAIProvider.from_settings(settings))
    else:
        logger.warning("OPENAI_API_KEY not configured; primary LLM provider disabled")
    if settings.has_groq:
        providers.append(GroqProvider.from_settings(settings))
    else:
        logger.info("GROQ_API_KEY not configured; no secondary LLM provider")
    return providers
