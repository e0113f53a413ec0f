from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

from openai import AsyncOpenAI

from cvpilot.config import Settings

logger = logging.getLogger(__name__)

_FENCED_BLOCK = re.compile(r"```(?:json)?\s*(\{.*?\})\s*```", re.DOTALL)


@dataclass(slots=True)
class ProviderConfig:
    name: str
    base_url: str
    api_key: str
    timeout_sec: int


class LLMProvider:
    """Chat-completions client that asks for a single JSON object per prompt.

    Servers that reject ``response_format`` (older local runtimes) are retried
    in plain mode, and the provider remembers that for later calls.
    """

    def __init__(self, config: ProviderConfig, client: Any | None = None):
        self.config = config
        self.client = client or AsyncOpenAI(
            base_url=config.base_url,
            api_key=config.api_key,
            timeout=float(config.timeout_sec),
        )
        self.json_mode = True

    async def complete_json(self, *, model: str, prompt: str) -> dict[str, Any]:
        if self.json_mode:
            try:
                return parse_json(await self._ask(model, prompt, json_mode=True))
            except Exception as exc:
                if not _rejects_json_mode(exc):
                    raise
                logger.warning("provider=%s rejected JSON mode; switching to plain replies (%s)", self.config.name, exc)
                self.json_mode = False
        return parse_json(await self._ask(model, prompt, json_mode=False))

    async def _ask(self, model: str, prompt: str, *, json_mode: bool) -> str:
        extra: dict[str, Any] = {"response_format": {"type": "json_object"}} if json_mode else {}
        response = await self.client.chat.completions.create(
            model=model,
            messages=[{"role": "user", "content": prompt}],
            **extra,
        )
        choices = getattr(response, "choices", None) or []
        message = getattr(choices[0], "message", None) if choices else None
        content = getattr(message, "content", None)
        return content if isinstance(content, str) else ""


def _rejects_json_mode(exc: Exception) -> bool:
    if getattr(exc, "status_code", None) not in (400, 422, None):
        return False
    text = str(exc).lower()
    return "response_format" in text or "json_object" in text


def parse_json(content: str) -> dict[str, Any]:
    """Parse a model reply into a dict; anything else yields ``{}``."""
    text = content.strip()
    if not text:
        return {}

    fenced = _FENCED_BLOCK.search(text)
    if fenced:
        text = fenced.group(1)
    try:
        value = json.loads(text)
    except json.JSONDecodeError:
        logger.warning("Model reply is not valid JSON (%s chars)", len(text))
        return {}
    return value if isinstance(value, dict) else {}


class ProviderPool:
    def __init__(self, settings: Settings):
        self.settings = settings
        self._providers: dict[str, LLMProvider] = {}

    def available(self) -> list[tuple[LLMProvider, str]]:
        """Configured providers in preference order, each with the model to call."""
        settings = self.settings
        pool: list[tuple[LLMProvider, str]] = []
        if settings.openai_api_key:
            config = ProviderConfig(
                name="openai",
                base_url=settings.openai_base_url,
                api_key=settings.openai_api_key,
                timeout_sec=settings.openai_timeout_sec,
            )
            pool.append((self._get(config), settings.openai_model_generator))
        if settings.local_llm_enabled:
            config = ProviderConfig(
                name="local",
                base_url=settings.local_llm_base_url,
                api_key=settings.local_llm_api_key,
                timeout_sec=settings.local_llm_timeout_sec,
            )
            pool.append((self._get(config), settings.local_llm_model))
        return pool

    def _get(self, config: ProviderConfig) -> LLMProvider:
        if config.name not in self._providers:
            self._providers[config.name] = LLMProvider(config)
        return self._providers[config.name]
