from __future__ import annotations

from cvpilot.db.repositories import WorkspaceDraftStore
from cvpilot.db.store import PersistentStore, StorageKey
from cvpilot.types import ChatMessage


def test_load_without_draft_returns_none(session_factory) -> None:
    assert WorkspaceDraftStore(PersistentStore(session_factory)).load() is None


def test_save_then_load_preserves_content(session_factory, clock, content_factory) -> None:
    drafts = WorkspaceDraftStore(PersistentStore(session_factory), clock=clock)
    chat = [
        ChatMessage(id="m1", role="user", text="Build my CV", timestamp=10),
        ChatMessage(id="m2", role="ai", text="Done, I focused on backend work.", timestamp=20),
    ]
    content = content_factory()

    saved = drafts.save("Senior Engineer at Acme", chat, content)
    loaded = drafts.load()

    assert loaded is not None
    assert loaded.job_description == "Senior Engineer at Acme"
    assert loaded.chat_history == chat
    assert loaded.generated_data == content
    assert loaded.last_updated == clock.now == saved.last_updated


def test_save_overwrites_previous_draft(session_factory, clock) -> None:
    drafts = WorkspaceDraftStore(PersistentStore(session_factory), clock=clock)
    drafts.save("First posting", [], None)
    clock.advance(500)

    drafts.save("Second posting", [], None)

    loaded = drafts.load()
    assert loaded is not None
    assert loaded.job_description == "Second posting"
    assert loaded.generated_data is None
    assert loaded.last_updated == clock.now


def test_clear_removes_draft(session_factory) -> None:
    drafts = WorkspaceDraftStore(PersistentStore(session_factory))
    drafts.save("Posting", [], None)

    drafts.clear()

    assert drafts.load() is None


def test_malformed_draft_loads_as_absent(session_factory) -> None:
    store = PersistentStore(session_factory)
    store.set(StorageKey.WORKSPACE_DRAFT, "{broken")

    assert WorkspaceDraftStore(store).load() is None
