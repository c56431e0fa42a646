"""LLM service for contract drafting.

Supports Anthropic Claude (primary) and OpenAI (fallback) with tenacity retry.
"""

import json
from functools import lru_cache
from typing import Any

import structlog
from tenacity import retry, stop_after_attempt, wait_exponential

from clausesign.config import get_settings
from clausesign.errors import CollaboratorUnavailable

logger = structlog.get_logger(__name__)


class LLMService:
    """LLM service with primary + fallback providers and retry logic."""

    def __init__(self):
        self._settings = get_settings()
        self._anthropic = None
        self._openai = None

        if self._settings.anthropic_api_key:
            from anthropic import Anthropic
            self._anthropic = Anthropic(
                api_key=self._settings.anthropic_api_key,
                timeout=self._settings.llm_timeout,
            )

        if self._settings.openai_api_key:
            from openai import OpenAI
            self._openai = OpenAI(
                api_key=self._settings.openai_api_key,
                timeout=self._settings.llm_timeout,
            )

        self.primary_provider = self._settings.primary_llm_provider
        self.primary_model = self._settings.primary_llm_model
        self.fallback_provider = self._settings.fallback_llm_provider
        self.fallback_model = self._settings.fallback_llm_model

    @property
    def configured(self) -> bool:
        return self._anthropic is not None or self._openai is not None

    def _model_for(self, provider: str) -> str:
        return self.primary_model if self.primary_provider == provider else self.fallback_model

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=2, max=10), reraise=True)
    def _call_anthropic(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        if self._anthropic is None:
            raise ValueError("Anthropic client not configured. Set ANTHROPIC_API_KEY.")
        response = self._anthropic.messages.create(
            model=self._model_for("anthropic"),
            max_tokens=max_tokens or self._settings.llm_max_tokens,
            temperature=self._settings.drafting_temperature if temperature is None else temperature,
            system=system_prompt,
            messages=[{"role": "user", "content": user_prompt}],
        )
        return response.content[0].text

    @retry(stop=stop_after_attempt(3), wait=wait_exponential(multiplier=1, min=2, max=10), reraise=True)
    def _call_openai(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> str:
        if self._openai is None:
            raise ValueError("OpenAI client not configured. Set OPENAI_API_KEY.")
        response = self._openai.chat.completions.create(
            model=self._model_for("openai"),
            max_tokens=max_tokens or self._settings.llm_max_tokens,
            temperature=self._settings.drafting_temperature if temperature is None else temperature,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        )
        return response.choices[0].message.content or ""

    def _call(self, provider: str, *args: Any) -> str | None:
        if provider == "anthropic" and self._anthropic:
            return self._call_anthropic(*args)
        if provider == "openai" and self._openai:
            return self._call_openai(*args)
        return None

    def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
        use_fallback: bool = True,
    ) -> tuple[str, str]:
        """
        Generate LLM response with automatic fallback. Returns (text, model_used).

        Raises:
            CollaboratorUnavailable: no provider is configured, or every
                configured provider failed after its retries
        """
        args = (system_prompt, user_prompt, max_tokens, temperature)
        try:
            text = self._call(self.primary_provider, *args)
            if text is not None:
                return text, self.primary_model
        except Exception as e:
            logger.warning("llm_primary_failed", provider=self.primary_provider, error=str(e))
            if not use_fallback:
                raise CollaboratorUnavailable("llm", f"LLM request failed: {e}") from e

        try:
            text = self._call(self.fallback_provider, *args)
        except Exception as e:
            logger.error("llm_fallback_failed", provider=self.fallback_provider, error=str(e))
            raise CollaboratorUnavailable("llm", f"LLM request failed: {e}") from e
        if text is not None:
            return text, self.fallback_model

        raise CollaboratorUnavailable(
            "llm", "No LLM provider available. Set ANTHROPIC_API_KEY or OPENAI_API_KEY."
        )

    def _parse_json(self, text: str) -> Any:
        """Extract JSON from LLM response text."""
        if "```json" in text:
            start = text.find("```json") + 7
            end = text.find("```", start)
            text = text[start:end].strip()
        elif "```" in text:
            start = text.find("```") + 3
            end = text.find("```", start)
            text = text[start:end].strip()

        try:
            return json.loads(text)
        except json.JSONDecodeError:
            # Try to find JSON object or array
            for opener, closer in [("{", "}"), ("[", "]")]:
                start = text.find(opener)
                end = text.rfind(closer) + 1
                if start >= 0 and end > start:
                    try:
                        return json.loads(text[start:end])
                    except json.JSONDecodeError:
                        continue
            return None

    def generate_json(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> tuple[Any, str]:
        """Generate and parse a JSON response. Returns (parsed or None, model_used)."""
        text, model = self.generate(system_prompt, user_prompt, max_tokens, temperature)
        return self._parse_json(text), model


@lru_cache()
def get_llm_service() -> LLMService:
    """Get cached LLM service singleton."""
    return LLMService()
