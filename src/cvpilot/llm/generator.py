from __future__ import annotations

import logging
from typing import Protocol

from pydantic import ValidationError

from cvpilot.config import Settings, get_settings
from cvpilot.llm.prompts import build_generation_prompt
from cvpilot.llm.providers import ProviderPool
from cvpilot.types import AppLanguage, GeneratedContent

logger = logging.getLogger(__name__)

REQUIRED_KEYS = ("analysis", "design", "cv", "coverLetter")


class GenerationError(Exception):
    pass


class ContentGenerator(Protocol):
    async def generate(
        self,
        *,
        job_description: str,
        current: GeneratedContent | None,
        user_message: str,
        master_cv: str,
        master_letter: str,
        language: AppLanguage,
    ) -> GeneratedContent: ...


class LLMContentGenerator:
    """Creates or refines an application document with an OpenAI-compatible model.

    Raises :class:`GenerationError` on any failure, including a reply that does
    not validate as a complete document.
    """

    def __init__(self, settings: Settings | None = None, pool: ProviderPool | None = None):
        self.settings = settings or get_settings()
        self.pool = pool or ProviderPool(self.settings)

    async def generate(
        self,
        *,
        job_description: str,
        current: GeneratedContent | None,
        user_message: str,
        master_cv: str,
        master_letter: str,
        language: AppLanguage,
    ) -> GeneratedContent:
        prompt = build_generation_prompt(
            job_description=job_description,
            current_json=current.model_dump_json(by_alias=True) if current is not None else None,
            user_message=user_message,
            master_cv=master_cv,
            master_letter=master_letter,
            language=language,
        )
        data = await self._call_json(prompt)

        missing = [key for key in REQUIRED_KEYS if key not in data]
        if missing:
            raise GenerationError(f"model reply is missing keys {missing}")
        try:
            return GeneratedContent.model_validate(data)
        except ValidationError as exc:
            raise GenerationError(f"model reply does not match the document shape: {exc}") from exc

    async def _call_json(self, prompt: str) -> dict:
        providers = self.pool.available()
        if not providers:
            raise GenerationError("no content generation provider is configured")

        failures: list[str] = []
        for provider, model in providers:
            try:
                data = await provider.complete_json(model=model, prompt=prompt)
            except Exception as exc:
                logger.warning("LLM JSON call failed provider=%s error=%s", provider.config.name, exc)
                failures.append(f"{provider.config.name}: {exc}")
                continue
            if data:
                return data
            failures.append(f"{provider.config.name}: empty or non-JSON reply")

        raise GenerationError("; ".join(failures))
