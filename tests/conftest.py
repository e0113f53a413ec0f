from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from cvpilot.config import Settings
from cvpilot.core.context import AppContext
from cvpilot.core.orchestrator import GenerationOrchestrator
from cvpilot.db.init import init_database
from cvpilot.db.session import create_session_factory
from cvpilot.types import AnalysisData, AtsAnalysis, CVData, DesignSettings, Experience, GeneratedContent

START_MS = 1_760_000_000_000


class FakeClock:
    def __init__(self, start: int = START_MS):
        self.now = start

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


class FakeGenerator:
    """Records every call; returns ``result`` or raises ``error``.

    When ``gate`` is set the call suspends until the event fires.
    """

    def __init__(self) -> None:
        self.calls: list[dict[str, Any]] = []
        self.result: GeneratedContent | None = None
        self.error: Exception | None = None
        self.gate: asyncio.Event | None = None

    async def generate(self, **kwargs: Any) -> GeneratedContent:
        self.calls.append(kwargs)
        if self.gate is not None:
            await self.gate.wait()
        if self.error is not None:
            raise self.error
        assert self.result is not None
        return self.result


def build_content(
    *,
    company: str = "Acme",
    job_title: str = "Senior Engineer",
    rationale: str | None = "I tailored your CV to the Acme posting.",
) -> GeneratedContent:
    return GeneratedContent(
        analysis=AnalysisData(company_name=company, job_title=job_title),
        ats=AtsAnalysis(score=82, missing_keywords=["Kubernetes"], feedback="Mention container work."),
        design=DesignSettings(layout="modern", color="emerald", font="sans", rationale=rationale),
        cv=CVData(
            full_name="Jane Doe",
            title=job_title,
            summary="Backend engineer with ten years of Python.",
            skills=["Python", "PostgreSQL"],
            experience=[
                Experience(
                    role="Engineer",
                    company="Globex",
                    duration="2018-2024",
                    description=["Built billing APIs"],
                )
            ],
        ),
        cover_letter=f"Dear {company} team, ...",
    )


@pytest.fixture
def session_factory(tmp_path):
    engine, factory = create_session_factory(f"sqlite:///{tmp_path / 'cvpilot-test.db'}")
    init_database(engine)
    yield factory
    engine.dispose()


@pytest.fixture
def settings() -> Settings:
    return Settings(app_env="test", openai_api_key="", local_llm_enabled=False)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def context(session_factory, settings, clock) -> AppContext:
    return AppContext.create(session_factory, settings=settings, clock=clock)


@pytest.fixture
def generator() -> FakeGenerator:
    fake = FakeGenerator()
    fake.result = build_content()
    return fake


@pytest.fixture
def orchestrator(context, generator) -> GenerationOrchestrator:
    return GenerationOrchestrator(context, generator)


@pytest.fixture
def content_factory() -> Callable[..., GeneratedContent]:
    return build_content
