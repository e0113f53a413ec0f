from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, HTTPException, Request

from cvpilot.api.deps import get_orchestrator
from cvpilot.api.schemas import (
    ActiveProfileRequest,
    JobDescriptionRequest,
    LanguageRequest,
    MessageRequest,
    MoveRequest,
    ProfileCreateRequest,
    ProfileResponse,
    ProfileUpdateRequest,
    ResetRequest,
    SessionResponse,
    StatusRequest,
)
from cvpilot.core.orchestrator import GenerationOrchestrator
from cvpilot.types import DesignSettings, Profile, SavedApplication

router = APIRouter(prefix="/api", tags=["api"])


def _profile_response(profile: Profile, active_id: str) -> ProfileResponse:
    return ProfileResponse(
        id=profile.id,
        name=profile.name,
        cv=profile.cv,
        letter=profile.letter,
        active=profile.id == active_id,
    )


def _profile_list(orchestrator: GenerationOrchestrator, profiles: list[Profile]) -> list[ProfileResponse]:
    active_id = orchestrator.context.profiles.get_active_id()
    return [_profile_response(profile, active_id) for profile in profiles]


def _application_list(applications: list[SavedApplication]) -> list[dict[str, Any]]:
    return [application.to_json() for application in applications]


@router.get("/session", response_model=SessionResponse)
async def session_state(
    request: Request,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> SessionResponse:
    return SessionResponse(
        initial_view=getattr(request.app.state, "initial_view", "profile"),
        active_profile_id=orchestrator.context.profiles.get_active_id(),
        language=orchestrator.workspace.language,
    )


# Profiles


@router.get("/profiles", response_model=list[ProfileResponse])
async def list_profiles(orchestrator: GenerationOrchestrator = Depends(get_orchestrator)) -> list[ProfileResponse]:
    return _profile_list(orchestrator, orchestrator.context.profiles.list_profiles())


@router.post("/profiles", response_model=ProfileResponse)
async def create_profile(
    payload: ProfileCreateRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> ProfileResponse:
    profile = orchestrator.create_profile(payload.name)
    return _profile_response(profile, profile.id)


@router.get("/profiles/active", response_model=ProfileResponse)
async def get_active_profile(orchestrator: GenerationOrchestrator = Depends(get_orchestrator)) -> ProfileResponse:
    profile = orchestrator.context.profiles.get_active()
    return _profile_response(profile, profile.id)


@router.put("/profiles/active", response_model=ProfileResponse)
async def set_active_profile(
    payload: ActiveProfileRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> ProfileResponse:
    if not orchestrator.select_profile(payload.profile_id):
        raise HTTPException(status_code=404, detail="Profile not found")
    profile = orchestrator.context.profiles.get_active()
    return _profile_response(profile, profile.id)


@router.put("/profiles/{profile_id}", response_model=ProfileResponse)
async def update_profile(
    profile_id: str,
    payload: ProfileUpdateRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> ProfileResponse:
    profiles = orchestrator.context.profiles
    existing = profiles.get_profile(profile_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="Profile not found")

    updated = existing.model_copy(update=payload.model_dump(exclude_none=True))
    profiles.update_profile(updated)
    return _profile_response(updated, profiles.get_active_id())


@router.delete("/profiles/{profile_id}", response_model=list[ProfileResponse])
async def delete_profile(
    profile_id: str,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> list[ProfileResponse]:
    return _profile_list(orchestrator, orchestrator.delete_profile(profile_id))


# Application history


@router.get("/applications")
async def list_applications(orchestrator: GenerationOrchestrator = Depends(get_orchestrator)) -> list[dict[str, Any]]:
    return _application_list(orchestrator.context.applications.list_applications())


@router.post("/applications")
async def save_application(orchestrator: GenerationOrchestrator = Depends(get_orchestrator)) -> dict[str, Any]:
    application = orchestrator.save_to_history()
    if application is None:
        raise HTTPException(status_code=409, detail="Nothing generated yet")
    return application.to_json()


@router.post("/applications/cleanup")
async def cleanup_trash(orchestrator: GenerationOrchestrator = Depends(get_orchestrator)) -> list[dict[str, Any]]:
    return _application_list(orchestrator.context.applications.cleanup_trash())


@router.post("/applications/{app_id}/move")
async def move_application(
    app_id: str,
    payload: MoveRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> list[dict[str, Any]]:
    return _application_list(orchestrator.context.applications.move(app_id, payload.direction))


@router.put("/applications/{app_id}/status")
async def update_application_status(
    app_id: str,
    payload: StatusRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> list[dict[str, Any]]:
    return _application_list(orchestrator.context.applications.update_status(app_id, payload.status))


@router.post("/applications/{app_id}/trash")
async def trash_application(
    app_id: str,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> list[dict[str, Any]]:
    return _application_list(orchestrator.context.applications.soft_delete(app_id))


@router.post("/applications/{app_id}/restore")
async def restore_application(
    app_id: str,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> list[dict[str, Any]]:
    return _application_list(orchestrator.context.applications.restore(app_id))


@router.delete("/applications/{app_id}")
async def purge_application(
    app_id: str,
    confirm: bool = False,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> list[dict[str, Any]]:
    if not confirm:
        raise HTTPException(status_code=400, detail="Permanent deletion requires confirm=true")
    return _application_list(orchestrator.context.applications.purge(app_id))


@router.post("/applications/{app_id}/load")
async def load_application(
    app_id: str,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    if not orchestrator.load_application(app_id):
        raise HTTPException(status_code=404, detail="Application not found")
    return orchestrator.workspace.snapshot()


# Workspace


@router.get("/workspace")
async def get_workspace(orchestrator: GenerationOrchestrator = Depends(get_orchestrator)) -> dict[str, Any]:
    return orchestrator.workspace.snapshot()


@router.put("/workspace/job-description")
async def set_job_description(
    payload: JobDescriptionRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    if not orchestrator.set_job_description(payload.text):
        raise HTTPException(status_code=409, detail="Job description is locked")
    return orchestrator.workspace.snapshot()


@router.put("/workspace/language")
async def set_language(
    payload: LanguageRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    orchestrator.set_language(payload.language)
    return orchestrator.workspace.snapshot()


@router.post("/workspace/messages")
async def send_message(
    payload: MessageRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    workspace = orchestrator.workspace
    if not workspace.job_description.strip():
        raise HTTPException(status_code=409, detail="Job description is empty")
    if workspace.is_generating:
        raise HTTPException(status_code=409, detail="Generation already in progress")

    workspace = await orchestrator.send_message(payload.message)
    return workspace.snapshot()


@router.put("/workspace/design")
async def apply_design(
    payload: DesignSettings,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    if not orchestrator.apply_design_patch(payload):
        raise HTTPException(status_code=409, detail="Nothing generated yet")
    return orchestrator.workspace.snapshot()


@router.post("/workspace/reset")
async def reset_workspace(
    payload: ResetRequest,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    if not orchestrator.reset_workspace(confirmed=payload.confirm):
        raise HTTPException(status_code=400, detail="Reset requires confirm=true")
    return orchestrator.workspace.snapshot()
