from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

import typer
import uvicorn
from pydantic import ValidationError

from cvpilot.api.app import create_app
from cvpilot.config import get_settings
from cvpilot.core.orchestrator import GenerationOrchestrator
from cvpilot.core.runtime import get_orchestrator
from cvpilot.db.init import init_database
from cvpilot.logging_config import configure_logging
from cvpilot.types import DesignSettings

app = typer.Typer(help="CV Pilot CLI")
profile_app = typer.Typer(help="Manage source profiles")
history_app = typer.Typer(help="Saved applications board and trash")
workspace_app = typer.Typer(help="Current job application workspace")

app.add_typer(profile_app, name="profile")
app.add_typer(history_app, name="history")
app.add_typer(workspace_app, name="workspace")

_RESTORED = False


def open_orchestrator() -> GenerationOrchestrator:
    """Return the process orchestrator, running the startup restore once."""
    global _RESTORED
    configure_logging()
    orchestrator = get_orchestrator()
    if not _RESTORED:
        init_database()
        orchestrator.restore()
        _RESTORED = True
    return orchestrator


def emit(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def _profiles_payload(orchestrator: GenerationOrchestrator, profiles) -> list[dict[str, Any]]:
    active_id = orchestrator.context.profiles.get_active_id()
    return [
        {"id": p.id, "name": p.name, "active": p.id == active_id, "cv_chars": len(p.cv), "letter_chars": len(p.letter)}
        for p in profiles
    ]


def _applications_payload(applications) -> list[dict[str, Any]]:
    return [
        {
            "id": a.id,
            "status": a.status,
            "company": a.generated_content.analysis.company_name,
            "job_title": a.generated_content.analysis.job_title,
            "created_at": a.created_at,
            "deleted_at": a.deleted_at,
        }
        for a in applications
    ]


@app.command("init")
def init_cmd() -> None:
    """Create the database tables and data directory."""
    configure_logging()
    result = init_database()
    emit({"ok": True, **result})


@app.command("serve")
def serve_cmd(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    settings = get_settings()
    uvicorn.run(create_app(), host=host or settings.app_host, port=port or settings.app_port)


@profile_app.command("list")
def profile_list() -> None:
    orchestrator = open_orchestrator()
    emit(_profiles_payload(orchestrator, orchestrator.context.profiles.list_profiles()))


@profile_app.command("create")
def profile_create(name: str = typer.Option(..., "--name")) -> None:
    orchestrator = open_orchestrator()
    profile = orchestrator.create_profile(name)
    emit({"id": profile.id, "name": profile.name, "active": True})


@profile_app.command("update")
def profile_update(
    profile_id: str = typer.Option(..., "--profile-id"),
    name: str | None = typer.Option(None, "--name"),
    cv_file: Path | None = typer.Option(None, "--cv-file", exists=True, readable=True),
    letter_file: Path | None = typer.Option(None, "--letter-file", exists=True, readable=True),
) -> None:
    orchestrator = open_orchestrator()
    profiles = orchestrator.context.profiles
    profile = profiles.get_profile(profile_id)
    if profile is None:
        raise typer.BadParameter(f"profile {profile_id} not found")

    changes: dict[str, str] = {}
    if name is not None:
        changes["name"] = name
    if cv_file is not None:
        changes["cv"] = cv_file.read_text(encoding="utf-8")
    if letter_file is not None:
        changes["letter"] = letter_file.read_text(encoding="utf-8")
    profiles.update_profile(profile.model_copy(update=changes))
    emit({"id": profile_id, "updated": sorted(changes)})


@profile_app.command("delete")
def profile_delete(profile_id: str = typer.Option(..., "--profile-id")) -> None:
    orchestrator = open_orchestrator()
    emit(_profiles_payload(orchestrator, orchestrator.delete_profile(profile_id)))


@profile_app.command("use")
def profile_use(profile_id: str = typer.Option(..., "--profile-id")) -> None:
    orchestrator = open_orchestrator()
    if not orchestrator.select_profile(profile_id):
        raise typer.BadParameter(f"profile {profile_id} not found")
    emit({"active_profile_id": profile_id})


@history_app.command("list")
def history_list(include_trash: bool = typer.Option(False, "--include-trash")) -> None:
    orchestrator = open_orchestrator()
    applications = orchestrator.context.applications.list_applications()
    if not include_trash:
        applications = [a for a in applications if a.status != "trash"]
    emit(_applications_payload(applications))


@history_app.command("move")
def history_move(
    app_id: str = typer.Option(..., "--id"),
    direction: str = typer.Option(..., "--direction", help="prev or next"),
) -> None:
    orchestrator = open_orchestrator()
    if direction not in ("prev", "next"):
        raise typer.BadParameter("direction must be 'prev' or 'next'")
    emit(_applications_payload(orchestrator.context.applications.move(app_id, direction)))


@history_app.command("status")
def history_status(
    app_id: str = typer.Option(..., "--id"),
    status: str = typer.Option(..., "--status"),
) -> None:
    orchestrator = open_orchestrator()
    try:
        applications = orchestrator.context.applications.update_status(app_id, status)
    except ValueError as exc:
        raise typer.BadParameter(str(exc)) from exc
    emit(_applications_payload(applications))


@history_app.command("trash")
def history_trash(app_id: str = typer.Option(..., "--id")) -> None:
    orchestrator = open_orchestrator()
    emit(_applications_payload(orchestrator.context.applications.soft_delete(app_id)))


@history_app.command("restore")
def history_restore(app_id: str = typer.Option(..., "--id")) -> None:
    orchestrator = open_orchestrator()
    emit(_applications_payload(orchestrator.context.applications.restore(app_id)))


@history_app.command("purge")
def history_purge(
    app_id: str = typer.Option(..., "--id"),
    yes: bool = typer.Option(False, "--yes", help="Confirm permanent deletion"),
) -> None:
    orchestrator = open_orchestrator()
    if not yes and not typer.confirm(f"Permanently delete application {app_id}?"):
        raise typer.Abort()
    emit(_applications_payload(orchestrator.context.applications.purge(app_id)))


@history_app.command("cleanup")
def history_cleanup() -> None:
    orchestrator = open_orchestrator()
    emit(_applications_payload(orchestrator.context.applications.cleanup_trash()))


@workspace_app.command("show")
def workspace_show() -> None:
    orchestrator = open_orchestrator()
    emit(orchestrator.workspace.snapshot())


@workspace_app.command("job")
def workspace_job(
    text: str | None = typer.Option(None, "--text"),
    file: Path | None = typer.Option(None, "--file", exists=True, readable=True),
) -> None:
    orchestrator = open_orchestrator()
    if file is not None:
        text = file.read_text(encoding="utf-8")
    if text is None:
        raise typer.BadParameter("provide --text or --file")
    if not orchestrator.set_job_description(text):
        raise typer.BadParameter("job description is locked; reset the workspace first")
    emit({"ok": True, "chars": len(text)})


@workspace_app.command("send")
def workspace_send(
    message: str = typer.Argument(...),
    language: str | None = typer.Option(None, "--language", help="fr or en"),
) -> None:
    orchestrator = open_orchestrator()
    if language is not None:
        if language not in ("fr", "en"):
            raise typer.BadParameter("language must be 'fr' or 'en'")
        orchestrator.set_language(language)
    if not orchestrator.workspace.job_description.strip():
        raise typer.BadParameter("set a job description first")

    workspace = asyncio.run(orchestrator.send_message(message))
    reply = workspace.chat_history[-1].text if workspace.chat_history else ""
    emit({"status": workspace.status, "reply": reply})
    if workspace.status == "error":
        raise typer.Exit(code=1)


@workspace_app.command("design")
def workspace_design(
    layout: str | None = typer.Option(None, "--layout"),
    color: str | None = typer.Option(None, "--color"),
    font: str | None = typer.Option(None, "--font"),
) -> None:
    orchestrator = open_orchestrator()
    current = orchestrator.workspace.generated_data
    if current is None:
        raise typer.BadParameter("nothing generated yet")

    changes = {k: v for k, v in {"layout": layout, "color": color, "font": font}.items() if v is not None}
    try:
        design = DesignSettings.model_validate(current.design.model_dump() | changes)
    except ValidationError as exc:
        raise typer.BadParameter(str(exc)) from exc
    orchestrator.apply_design_patch(design)
    emit(design.to_json())


@workspace_app.command("save")
def workspace_save() -> None:
    orchestrator = open_orchestrator()
    application = orchestrator.save_to_history()
    if application is None:
        raise typer.BadParameter("nothing generated yet")
    emit({"id": application.id, "status": application.status})


@workspace_app.command("load")
def workspace_load(app_id: str = typer.Option(..., "--id")) -> None:
    orchestrator = open_orchestrator()
    if not orchestrator.load_application(app_id):
        raise typer.BadParameter(f"application {app_id} not found")
    emit({"ok": True, "id": app_id})


@workspace_app.command("reset")
def workspace_reset(yes: bool = typer.Option(False, "--yes", help="Confirm discarding the workspace")) -> None:
    orchestrator = open_orchestrator()
    confirmed = yes or typer.confirm("Discard the current job description, chat and documents?")
    if not orchestrator.reset_workspace(confirmed=confirmed):
        raise typer.Abort()
    emit({"ok": True})


if __name__ == "__main__":
    app()
