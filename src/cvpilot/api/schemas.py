from __future__ import annotations

from pydantic import BaseModel, Field, field_validator

from cvpilot.types import AppLanguage, ApplicationStatus, MoveDirection, View


class ProfileCreateRequest(BaseModel):
    name: str = Field(min_length=1)

    @field_validator("name")
    @classmethod
    def reject_blank_name(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("name must not be blank")
        return value


class ProfileUpdateRequest(BaseModel):
    name: str | None = None
    cv: str | None = None
    letter: str | None = None


class ProfileResponse(BaseModel):
    id: str
    name: str
    cv: str
    letter: str
    active: bool


class ActiveProfileRequest(BaseModel):
    profile_id: str


class MoveRequest(BaseModel):
    direction: MoveDirection


class StatusRequest(BaseModel):
    status: ApplicationStatus


class JobDescriptionRequest(BaseModel):
    text: str


class LanguageRequest(BaseModel):
    language: AppLanguage


class MessageRequest(BaseModel):
    message: str | None = None


class ResetRequest(BaseModel):
    confirm: bool = False


class SessionResponse(BaseModel):
    initial_view: View
    active_profile_id: str
    language: AppLanguage
