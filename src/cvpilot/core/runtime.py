from __future__ import annotations

from cvpilot.config import Settings, get_settings
from cvpilot.core.context import AppContext
from cvpilot.core.orchestrator import GenerationOrchestrator
from cvpilot.db.session import SessionLocal
from cvpilot.llm.generator import LLMContentGenerator

_ORCHESTRATOR: GenerationOrchestrator | None = None


def build_orchestrator(settings: Settings | None = None) -> GenerationOrchestrator:
    settings = settings or get_settings()
    context = AppContext.create(SessionLocal, settings=settings)
    return GenerationOrchestrator(context, LLMContentGenerator(settings))


def get_orchestrator() -> GenerationOrchestrator:
    global _ORCHESTRATOR
    if _ORCHESTRATOR is None:
        _ORCHESTRATOR = build_orchestrator()
    return _ORCHESTRATOR
