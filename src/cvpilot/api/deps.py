from __future__ import annotations

from fastapi import Request

from cvpilot.core.orchestrator import GenerationOrchestrator


def get_orchestrator(request: Request) -> GenerationOrchestrator:
    return request.app.state.orchestrator
