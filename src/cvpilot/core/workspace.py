from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from cvpilot.types import AppLanguage, ChatMessage, GeneratedContent, GenerationStatus, Profile


@dataclass(slots=True, frozen=True)
class PendingTurn:
    """Inputs captured when a chat turn starts; ``epoch`` identifies the turn."""

    epoch: int
    message: ChatMessage
    job_description: str
    current: GeneratedContent | None
    profile: Profile
    language: AppLanguage


@dataclass(slots=True)
class Workspace:
    job_description: str = ""
    chat_history: list[ChatMessage] = field(default_factory=list)
    generated_data: GeneratedContent | None = None
    status: GenerationStatus = "idle"
    input_buffer: str = ""
    language: AppLanguage = "en"
    pending: PendingTurn | None = None

    @property
    def is_locked(self) -> bool:
        # The job description is frozen once the conversation has started.
        return bool(self.chat_history)

    @property
    def is_generating(self) -> bool:
        return self.pending is not None

    def has_content(self) -> bool:
        return bool(self.job_description or self.chat_history or self.generated_data is not None)

    def clear(self) -> None:
        self.job_description = ""
        self.chat_history = []
        self.generated_data = None
        self.status = "idle"
        self.input_buffer = ""
        self.pending = None

    def snapshot(self) -> dict[str, Any]:
        return {
            "jobDescription": self.job_description,
            "chatHistory": [message.to_json() for message in self.chat_history],
            "generatedData": self.generated_data.to_json() if self.generated_data is not None else None,
            "status": self.status,
            "inputBuffer": self.input_buffer,
            "language": self.language,
            "locked": self.is_locked,
            "generating": self.is_generating,
        }
