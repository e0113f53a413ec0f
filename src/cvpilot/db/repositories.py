from __future__ import annotations

import logging
from collections.abc import Callable, Sequence

from cvpilot.db.records import decode_list, decode_one, encode_list, encode_one
from cvpilot.db.store import PersistentStore, StorageKey
from cvpilot.types import (
    APPLICATION_STATUSES,
    STATUS_TRACK,
    ChatMessage,
    GeneratedContent,
    MoveDirection,
    Profile,
    SavedApplication,
    WorkspaceDraft,
    now_ms,
)

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


class ProfileRepository:
    """Named CV/letter source bundles plus the active-profile pointer.

    The stored list is never left empty: a cold start synthesizes a default
    profile and deleting the last one is refused.
    """

    def __init__(self, store: PersistentStore, *, default_name: str = "Main Profile"):
        self.store = store
        self.default_name = default_name

    def list_profiles(self) -> list[Profile]:
        profiles = decode_list(self.store.get_json(StorageKey.PROFILES), Profile, key=StorageKey.PROFILES)
        if profiles:
            return profiles

        default = Profile(name=self.default_name)
        self._write([default])
        logger.info("Created default profile id=%s", default.id)
        return [default]

    def get_profile(self, profile_id: str) -> Profile | None:
        return next((p for p in self.list_profiles() if p.id == profile_id), None)

    def create_profile(self, name: str) -> Profile:
        profiles = self.list_profiles()
        profile = Profile(name=name.strip())
        self._write([*profiles, profile])
        return profile

    def update_profile(self, profile: Profile) -> None:
        profiles = self.list_profiles()
        if not any(p.id == profile.id for p in profiles):
            logger.debug("Ignoring update for missing profile id=%s", profile.id)
            return
        self._write([profile if p.id == profile.id else p for p in profiles])

    def delete_profile(self, profile_id: str) -> list[Profile]:
        profiles = self.list_profiles()
        remaining = [p for p in profiles if p.id != profile_id]
        if len(remaining) == len(profiles):
            return profiles
        if not remaining:
            logger.info("Refusing to delete the last profile id=%s", profile_id)
            return profiles

        self._write(remaining)
        return remaining

    def get_active_id(self) -> str:
        profiles = self.list_profiles()
        stored = (self.store.get(StorageKey.ACTIVE_PROFILE_ID) or "").strip()
        if any(p.id == stored for p in profiles):
            return stored
        return profiles[0].id

    def set_active_id(self, profile_id: str) -> None:
        self.store.set(StorageKey.ACTIVE_PROFILE_ID, profile_id)

    def get_active(self) -> Profile:
        active_id = self.get_active_id()
        profiles = self.list_profiles()
        return next((p for p in profiles if p.id == active_id), profiles[0])

    def _write(self, profiles: Sequence[Profile]) -> None:
        self.store.set_json(StorageKey.PROFILES, encode_list(profiles))


class ApplicationRepository:
    """Saved generation results with a status board and a trash lifecycle.

    Every mutation returns the full updated list, newest first. Unknown ids and
    illegal transitions leave the stored list untouched.
    """

    def __init__(self, store: PersistentStore, *, trash_retention_ms: int, clock: Clock = now_ms):
        self.store = store
        self.trash_retention_ms = trash_retention_ms
        self.clock = clock

    def list_applications(self) -> list[SavedApplication]:
        return decode_list(
            self.store.get_json(StorageKey.APPLICATIONS),
            SavedApplication,
            key=StorageKey.APPLICATIONS,
        )

    def get_application(self, app_id: str) -> SavedApplication | None:
        return next((a for a in self.list_applications() if a.id == app_id), None)

    def save_application(
        self,
        *,
        profile_used_id: str,
        job_description: str,
        chat_history: Sequence[ChatMessage],
        generated_content: GeneratedContent,
    ) -> SavedApplication:
        application = SavedApplication(
            created_at=self.clock(),
            profile_used_id=profile_used_id,
            job_description=job_description,
            chat_history=list(chat_history),
            generated_content=generated_content,
            status="todo",
        )
        self._write([application, *self.list_applications()])
        logger.info("Saved application id=%s profile_id=%s", application.id, profile_used_id)
        return application

    def move(self, app_id: str, direction: MoveDirection) -> list[SavedApplication]:
        if direction not in ("prev", "next"):
            raise ValueError(f"unsupported move direction '{direction}'")
        step = 1 if direction == "next" else -1

        def shift(app: SavedApplication) -> SavedApplication | None:
            if app.status not in STATUS_TRACK:
                return None
            index = STATUS_TRACK.index(app.status) + step
            if index < 0 or index >= len(STATUS_TRACK):
                return None
            return app.model_copy(update={"status": STATUS_TRACK[index]})

        return self._change(app_id, shift)

    def update_status(self, app_id: str, status: str) -> list[SavedApplication]:
        if status not in APPLICATION_STATUSES:
            raise ValueError(f"unsupported application status '{status}'")
        if status == "trash":
            return self.soft_delete(app_id)

        def assign(app: SavedApplication) -> SavedApplication | None:
            if app.status == status:
                return None
            return app.model_copy(update={"status": status, "deleted_at": None})

        return self._change(app_id, assign)

    def soft_delete(self, app_id: str) -> list[SavedApplication]:
        def trash(app: SavedApplication) -> SavedApplication | None:
            if app.status == "trash":
                return None
            return app.model_copy(update={"status": "trash", "deleted_at": self.clock()})

        return self._change(app_id, trash)

    def restore(self, app_id: str) -> list[SavedApplication]:
        def untrash(app: SavedApplication) -> SavedApplication | None:
            if app.status != "trash":
                return None
            return app.model_copy(update={"status": "todo", "deleted_at": None})

        return self._change(app_id, untrash)

    def purge(self, app_id: str) -> list[SavedApplication]:
        applications = self.list_applications()
        remaining = [a for a in applications if a.id != app_id]
        if len(remaining) == len(applications):
            return applications
        self._write(remaining)
        logger.info("Purged application id=%s", app_id)
        return remaining

    def cleanup_trash(self) -> list[SavedApplication]:
        now = self.clock()
        applications = self.list_applications()
        remaining = [a for a in applications if not self._is_expired(a, now)]
        removed = len(applications) - len(remaining)
        if removed:
            self._write(remaining)
            logger.info("Trash cleanup removed %s application(s)", removed)
        return remaining

    def _is_expired(self, app: SavedApplication, now: int) -> bool:
        # Trash entries without a deletion time are kept.
        if app.status != "trash" or app.deleted_at is None:
            return False
        return now - app.deleted_at > self.trash_retention_ms

    def _change(
        self,
        app_id: str,
        change: Callable[[SavedApplication], SavedApplication | None],
    ) -> list[SavedApplication]:
        applications = self.list_applications()
        for index, app in enumerate(applications):
            if app.id != app_id:
                continue
            updated = change(app)
            if updated is None:
                return applications
            applications[index] = updated
            self._write(applications)
            return applications

        logger.debug("Application id=%s not found", app_id)
        return applications

    def _write(self, applications: Sequence[SavedApplication]) -> None:
        self.store.set_json(StorageKey.APPLICATIONS, encode_list(applications))


class WorkspaceDraftStore:
    def __init__(self, store: PersistentStore, *, clock: Clock = now_ms):
        self.store = store
        self.clock = clock

    def save(
        self,
        job_description: str,
        chat_history: Sequence[ChatMessage],
        generated_data: GeneratedContent | None,
    ) -> WorkspaceDraft:
        draft = WorkspaceDraft(
            job_description=job_description,
            chat_history=list(chat_history),
            generated_data=generated_data,
            last_updated=self.clock(),
        )
        self.store.set_json(StorageKey.WORKSPACE_DRAFT, encode_one(draft))
        return draft

    def load(self) -> WorkspaceDraft | None:
        return decode_one(
            self.store.get_json(StorageKey.WORKSPACE_DRAFT),
            WorkspaceDraft,
            key=StorageKey.WORKSPACE_DRAFT,
        )

    def clear(self) -> None:
        self.store.delete(StorageKey.WORKSPACE_DRAFT)
