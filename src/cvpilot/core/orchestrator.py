from __future__ import annotations

import asyncio
import logging

from cvpilot.core.context import AppContext
from cvpilot.core.workspace import PendingTurn, Workspace
from cvpilot.db.store import StorageWriteError
from cvpilot.llm.generator import ContentGenerator
from cvpilot.types import (
    AppLanguage,
    ChatMessage,
    DesignSettings,
    GenerationStatus,
    Profile,
    SavedApplication,
    View,
)

logger = logging.getLogger(__name__)

FALLBACK_REPLY = "Changes applied."
FAILURE_REPLY = "Sorry, an error occurred while generating your documents."


class GenerationOrchestrator:
    """Drives the chat workspace: one generator call per user turn.

    A turn is split in two phases so callers can observe the pending state:
    :meth:`begin_turn` records the user message synchronously and
    :meth:`complete_turn` awaits the generator and reconciles the outcome.
    Each turn carries an epoch; a response whose epoch is no longer current
    (the workspace was reset or replaced meanwhile) is discarded.
    """

    def __init__(
        self,
        context: AppContext,
        generator: ContentGenerator,
        *,
        language: AppLanguage | None = None,
    ):
        self.context = context
        self.generator = generator
        self.workspace = Workspace(language=language or context.settings.default_language)
        self._epoch = 0

    def restore(self) -> View:
        """Startup hook: purge expired trash, reload the draft, pick the first view."""
        self.context.applications.cleanup_trash()

        draft = self.context.drafts.load()
        if draft is not None:
            self.workspace.job_description = draft.job_description
            self.workspace.chat_history = list(draft.chat_history)
            self.workspace.generated_data = draft.generated_data
            if draft.generated_data is not None:
                self.workspace.status = "success"
                logger.info("Resumed workspace draft with %s message(s)", len(draft.chat_history))
                return "workspace"

        active = self.context.profiles.get_active()
        return "workspace" if active.cv else "profile"

    # Workspace inputs

    def set_job_description(self, text: str) -> bool:
        if self.workspace.is_locked or self.workspace.is_generating:
            return False
        if text == self.workspace.job_description:
            return True
        self.workspace.job_description = text
        self._autosave()
        return True

    def set_input(self, text: str) -> None:
        self.workspace.input_buffer = text

    def set_language(self, language: AppLanguage) -> None:
        self.workspace.language = language

    # Chat turns

    def begin_turn(self, message: str | None = None) -> PendingTurn | None:
        workspace = self.workspace
        if not workspace.job_description.strip():
            logger.debug("Ignoring chat turn without a job description")
            return None
        if workspace.pending is not None:
            logger.info("Ignoring chat turn while epoch=%s is in flight", workspace.pending.epoch)
            return None

        text = workspace.input_buffer if message is None else message
        user_message = ChatMessage(role="user", text=text, timestamp=self.context.clock())
        self._epoch += 1
        turn = PendingTurn(
            epoch=self._epoch,
            message=user_message,
            job_description=workspace.job_description,
            current=workspace.generated_data,
            profile=self.context.profiles.get_active(),
            language=workspace.language,
        )

        workspace.chat_history = [*workspace.chat_history, user_message]
        workspace.input_buffer = ""
        workspace.status = "generating"
        workspace.pending = turn
        self._autosave()
        return turn

    async def complete_turn(self, turn: PendingTurn) -> Workspace:
        try:
            result = await self.generator.generate(
                job_description=turn.job_description,
                current=turn.current,
                user_message=turn.message.text,
                master_cv=turn.profile.cv,
                master_letter=turn.profile.letter,
                language=turn.language,
            )
        except asyncio.CancelledError:
            if self._is_current(turn):
                self._resolve(turn, status="error", reply=FAILURE_REPLY)
            raise
        except Exception:
            logger.exception("Generation failed epoch=%s", turn.epoch)
            if self._is_current(turn):
                self._resolve(turn, status="error", reply=FAILURE_REPLY)
            return self.workspace

        if not self._is_current(turn):
            logger.info("Discarding stale generation result epoch=%s current=%s", turn.epoch, self._epoch)
            return self.workspace

        self.workspace.generated_data = result
        self._resolve(turn, status="success", reply=result.design.rationale or FALLBACK_REPLY)
        return self.workspace

    async def send_message(self, message: str | None = None) -> Workspace:
        turn = self.begin_turn(message)
        if turn is None:
            return self.workspace
        return await self.complete_turn(turn)

    # Local edits

    def apply_design_patch(self, design: DesignSettings) -> bool:
        if self.workspace.generated_data is None:
            return False
        self.workspace.generated_data = self.workspace.generated_data.with_design(design)
        self._autosave()
        return True

    def reset_workspace(self, *, confirmed: bool) -> bool:
        if not confirmed:
            return False
        # Storage first: a failed delete leaves the workspace untouched.
        self.context.drafts.clear()
        self._epoch += 1
        self.workspace.clear()
        logger.info("Workspace reset")
        return True

    # History

    def save_to_history(self) -> SavedApplication | None:
        workspace = self.workspace
        if workspace.generated_data is None:
            return None
        return self.context.applications.save_application(
            profile_used_id=self.context.profiles.get_active_id(),
            job_description=workspace.job_description,
            chat_history=workspace.chat_history,
            generated_content=workspace.generated_data,
        )

    def load_application(self, app_id: str) -> bool:
        application = self.context.applications.get_application(app_id)
        if application is None:
            return False

        self._epoch += 1
        workspace = self.workspace
        workspace.pending = None
        workspace.job_description = application.job_description
        workspace.chat_history = list(application.chat_history)
        workspace.generated_data = application.generated_content
        workspace.status = "success"
        self._autosave()
        return True

    # Profiles

    def select_profile(self, profile_id: str) -> bool:
        if self.context.profiles.get_profile(profile_id) is None:
            return False
        self.context.profiles.set_active_id(profile_id)
        return True

    def create_profile(self, name: str) -> Profile:
        profile = self.context.profiles.create_profile(name)
        self.context.profiles.set_active_id(profile.id)
        return profile

    def delete_profile(self, profile_id: str) -> list[Profile]:
        was_active = self.context.profiles.get_active_id() == profile_id
        remaining = self.context.profiles.delete_profile(profile_id)
        if was_active and all(p.id != profile_id for p in remaining):
            self.context.profiles.set_active_id(remaining[0].id)
        return remaining

    def _is_current(self, turn: PendingTurn) -> bool:
        return turn.epoch == self._epoch and self.workspace.pending is turn

    def _resolve(self, turn: PendingTurn, *, status: GenerationStatus, reply: str) -> None:
        reply_message = ChatMessage(role="ai", text=reply, timestamp=self.context.clock())
        self.workspace.chat_history = [*self.workspace.chat_history, reply_message]
        self.workspace.status = status
        self.workspace.pending = None
        self._autosave()

    def _autosave(self) -> None:
        workspace = self.workspace
        if not workspace.has_content():
            return
        try:
            self.context.drafts.save(
                workspace.job_description,
                workspace.chat_history,
                workspace.generated_data,
            )
        except StorageWriteError:
            logger.exception("Workspace autosave failed")
