from __future__ import annotations

import uuid
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

ChatRole = Literal["user", "ai"]
ApplicationStatus = Literal["todo", "applied", "interview", "offer", "rejected", "trash"]
GenerationStatus = Literal["idle", "generating", "success", "error"]
MoveDirection = Literal["prev", "next"]
AppLanguage = Literal["fr", "en"]
View = Literal["profile", "workspace", "history"]
DesignLayout = Literal["modern", "classic", "minimal"]
DesignColor = Literal["blue", "emerald", "slate", "rose", "amber"]
DesignFont = Literal["sans", "serif", "mono"]

# Board columns in display order; "trash" sits outside the track.
STATUS_TRACK: tuple[ApplicationStatus, ...] = ("todo", "applied", "interview", "offer", "rejected")
APPLICATION_STATUSES: frozenset[str] = frozenset(STATUS_TRACK) | {"trash"}


def now_ms() -> int:
    return int(datetime.now(UTC).timestamp() * 1000)


def new_id() -> str:
    return str(uuid.uuid4())


class Record(BaseModel):
    """Base for persisted records: snake_case in Python, camelCase on disk."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    def to_json(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True)


class Profile(Record):
    id: str = Field(default_factory=new_id)
    name: str = ""
    cv: str = ""
    letter: str = ""


class ChatMessage(Record):
    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    role: ChatRole
    text: str = ""
    timestamp: int = Field(default_factory=now_ms)


class AnalysisData(Record):
    company_name: str = ""
    job_title: str = ""


class AtsAnalysis(Record):
    score: int = 0
    missing_keywords: list[str] = Field(default_factory=list)
    feedback: str = ""

    @field_validator("score", mode="before")
    @classmethod
    def coerce_score(cls, value: Any) -> int:
        try:
            score = round(float(value))
        except (TypeError, ValueError, OverflowError):
            return 0
        return max(0, min(100, score))


class DesignSettings(Record):
    layout: DesignLayout = "modern"
    color: DesignColor = "blue"
    font: DesignFont = "sans"
    rationale: str | None = None


class Experience(Record):
    role: str = ""
    company: str = ""
    duration: str = ""
    description: list[str] = Field(default_factory=list)


class Education(Record):
    degree: str = ""
    institution: str = ""
    year: str = ""


class CVData(Record):
    full_name: str = ""
    title: str = ""
    email: str = ""
    phone: str = ""
    location: str = ""
    summary: str = ""
    skills: list[str] = Field(default_factory=list)
    experience: list[Experience] = Field(default_factory=list)
    education: list[Education] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)


class GeneratedContent(Record):
    analysis: AnalysisData = Field(default_factory=AnalysisData)
    ats: AtsAnalysis | None = None
    design: DesignSettings = Field(default_factory=DesignSettings)
    cv: CVData = Field(default_factory=CVData)
    cover_letter: str = ""

    def with_design(self, design: DesignSettings) -> GeneratedContent:
        return self.model_copy(update={"design": design.model_copy()})


class WorkspaceDraft(Record):
    job_description: str = Field(
        default="",
        validation_alias=AliasChoices("jobDescription", "jobDesc", "job_description"),
    )
    chat_history: list[ChatMessage] = Field(default_factory=list)
    generated_data: GeneratedContent | None = None
    last_updated: int = 0


class SavedApplication(Record):
    id: str = Field(default_factory=new_id)
    created_at: int = Field(default_factory=now_ms)
    profile_used_id: str = ""
    job_description: str = ""
    chat_history: list[ChatMessage] = Field(default_factory=list)
    generated_content: GeneratedContent
    status: ApplicationStatus = "todo"
    deleted_at: int | None = None

    @field_validator("status", mode="before")
    @classmethod
    def default_unknown_status(cls, value: Any) -> str:
        if not isinstance(value, str) or value not in APPLICATION_STATUSES:
            return "todo"
        return value

    @model_validator(mode="after")
    def drop_stray_deleted_at(self) -> SavedApplication:
        if self.status != "trash" and self.deleted_at is not None:
            self.deleted_at = None
        return self
