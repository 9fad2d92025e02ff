"""LLM client for itinerary and summary generation, OpenAI with Anthropic fallback."""

import logging

from openai import AsyncOpenAI
import anthropic

from tripquote.config import settings

logger = logging.getLogger(__name__)


class LLMClient:
    """Sends one system + user prompt to whichever provider answers first.

    Providers are tried in order (OpenAI, then Anthropic); a provider without
    an API key is skipped. Keys default to the settings values.
    """

    def __init__(self, openai_api_key: str | None = None, anthropic_api_key: str | None = None):
        openai_key = settings.openai_api_key if openai_api_key is None else openai_api_key
        anthropic_key = settings.anthropic_api_key if anthropic_api_key is None else anthropic_api_key

        self._openai = AsyncOpenAI(api_key=openai_key) if openai_key else None
        self._anthropic = anthropic.AsyncAnthropic(api_key=anthropic_key) if anthropic_key else None

    @property
    def configured(self) -> bool:
        return self._openai is not None or self._anthropic is not None

    def _providers(self) -> list[tuple[str, object]]:
        providers = []
        if self._openai:
            providers.append(("OpenAI", self._ask_openai))
        if self._anthropic:
            providers.append(("Anthropic", self._ask_anthropic))
        return providers

    async def _ask_openai(self, system: str, user: str, max_tokens: int, temperature: float, json_mode: bool) -> str:
        kwargs: dict = {
            "model": settings.openai_model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        }
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        response = await self._openai.chat.completions.create(**kwargs)
        return response.choices[0].message.content.strip()

    async def _ask_anthropic(self, system: str, user: str, max_tokens: int, temperature: float, json_mode: bool) -> str:
        # json_mode is OpenAI-only.
        response = await self._anthropic.messages.create(
            model=settings.anthropic_model,
            max_tokens=max_tokens,
            temperature=temperature,
            system=system,
            messages=[{"role": "user", "content": user}],
        )
        return response.content[0].text.strip()

    async def complete(
        self,
        system: str,
        user: str,
        *,
        max_tokens: int = 1000,
        temperature: float = 0,
        json_mode: bool = False,
    ) -> str:
        """Return the first provider's reply text.

        Raises:
            RuntimeError if no provider is configured or every provider failed.
        """
        providers = self._providers()
        if not providers:
            raise RuntimeError("No LLM provider configured (set OPENAI_API_KEY or ANTHROPIC_API_KEY)")

        errors = []
        for name, ask in providers:
            try:
                return await ask(system, user, max_tokens, temperature, json_mode)
            except Exception as e:
                errors.append(f"{name}: {e}")
                logger.warning(f"{name} completion failed: {e}")

        raise RuntimeError(f"All LLM providers failed: {'; '.join(errors)}")


llm_client = LLMClient()
