from __future__ import annotations

import json

import pytest

from cvpilot.db.repositories import ApplicationRepository
from cvpilot.db.store import PersistentStore, StorageKey
from cvpilot.types import STATUS_TRACK, ChatMessage

WEEK_MS = 604_800_000


@pytest.fixture
def repo(session_factory, clock) -> ApplicationRepository:
    return ApplicationRepository(PersistentStore(session_factory), trash_retention_ms=WEEK_MS, clock=clock)


def _save(repo: ApplicationRepository, content_factory, company: str = "Acme"):
    return repo.save_application(
        profile_used_id="p1",
        job_description=f"Engineer at {company}",
        chat_history=[ChatMessage(role="user", text="Build my CV", timestamp=1)],
        generated_content=content_factory(company=company),
    )


def _status(repo: ApplicationRepository, app_id: str) -> str:
    app = repo.get_application(app_id)
    assert app is not None
    return app.status


def test_save_prepends_todo_record(repo, clock, content_factory) -> None:
    older = _save(repo, content_factory, "Initech")
    newer = _save(repo, content_factory, "Acme")

    apps = repo.list_applications()
    assert [a.id for a in apps] == [newer.id, older.id]
    assert newer.status == "todo"
    assert newer.created_at == clock.now
    assert newer.deleted_at is None
    assert apps[0].generated_content.analysis.company_name == "Acme"


def test_move_steps_along_the_track(repo, content_factory) -> None:
    app = _save(repo, content_factory)

    for expected in STATUS_TRACK[1:]:
        apps = repo.move(app.id, "next")
        assert apps[0].status == expected

    for expected in reversed(STATUS_TRACK[:-1]):
        repo.move(app.id, "prev")
        assert _status(repo, app.id) == expected


def test_move_next_on_rejected_is_noop(repo, content_factory) -> None:
    app = _save(repo, content_factory)
    repo.update_status(app.id, "rejected")

    apps = repo.move(app.id, "next")

    assert apps[0].status == "rejected"


def test_move_prev_on_todo_is_noop(repo, content_factory) -> None:
    app = _save(repo, content_factory)

    apps = repo.move(app.id, "prev")

    assert apps[0].status == "todo"


def test_move_ignores_trash_and_unknown_ids(repo, content_factory) -> None:
    app = _save(repo, content_factory)
    repo.soft_delete(app.id)

    assert repo.move(app.id, "next")[0].status == "trash"
    assert [a.id for a in repo.move("missing", "next")] == [app.id]


def test_move_rejects_unknown_direction(repo, content_factory) -> None:
    app = _save(repo, content_factory)
    with pytest.raises(ValueError):
        repo.move(app.id, "sideways")


@pytest.mark.parametrize("prior", STATUS_TRACK)
def test_soft_delete_then_restore_returns_to_todo(repo, clock, content_factory, prior) -> None:
    app = _save(repo, content_factory)
    repo.update_status(app.id, prior)

    trashed = repo.soft_delete(app.id)[0]
    assert trashed.status == "trash"
    assert trashed.deleted_at == clock.now

    restored = repo.restore(app.id)[0]
    assert restored.status == "todo"
    assert restored.deleted_at is None


def test_second_soft_delete_keeps_original_timestamp(repo, clock, content_factory) -> None:
    app = _save(repo, content_factory)
    repo.soft_delete(app.id)
    first_deleted_at = clock.now

    clock.advance(1000)
    apps = repo.soft_delete(app.id)

    assert apps[0].deleted_at == first_deleted_at


def test_restore_on_live_record_is_noop(repo, content_factory) -> None:
    app = _save(repo, content_factory)
    repo.update_status(app.id, "interview")

    assert repo.restore(app.id)[0].status == "interview"


def test_update_status_to_trash_stamps_deleted_at(repo, clock, content_factory) -> None:
    app = _save(repo, content_factory)

    trashed = repo.update_status(app.id, "trash")[0]
    assert trashed.deleted_at == clock.now

    revived = repo.update_status(app.id, "offer")[0]
    assert revived.status == "offer"
    assert revived.deleted_at is None


def test_update_status_rejects_unknown_status(repo, content_factory) -> None:
    app = _save(repo, content_factory)
    with pytest.raises(ValueError):
        repo.update_status(app.id, "archived")


def test_purge_hard_deletes_regardless_of_status(repo, content_factory) -> None:
    keep = _save(repo, content_factory, "Initech")
    drop = _save(repo, content_factory, "Acme")
    repo.update_status(drop.id, "offer")

    apps = repo.purge(drop.id)

    assert [a.id for a in apps] == [keep.id]
    assert repo.get_application(drop.id) is None
    assert [a.id for a in repo.purge("missing")] == [keep.id]


def test_cleanup_trash_uses_strict_seven_day_threshold(repo, clock, content_factory) -> None:
    at_threshold = _save(repo, content_factory, "Boundary")
    past_threshold = _save(repo, content_factory, "Expired")
    recent = _save(repo, content_factory, "Recent")
    live = _save(repo, content_factory, "Live")

    start = clock.now
    repo.soft_delete(past_threshold.id)
    clock.advance(1)
    repo.soft_delete(at_threshold.id)
    clock.advance(WEEK_MS // 2)
    repo.soft_delete(recent.id)

    clock.now = start + 1 + WEEK_MS
    remaining = {a.id for a in repo.cleanup_trash()}

    assert past_threshold.id not in remaining
    assert {at_threshold.id, recent.id, live.id} <= remaining
    assert {a.id for a in repo.list_applications()} == remaining


def test_cleanup_trash_keeps_trash_without_deleted_at(repo, clock, content_factory) -> None:
    content = content_factory().to_json()
    repo.store.set_json(
        StorageKey.APPLICATIONS,
        {
            "version": 1,
            "items": [
                {"id": "orphan", "createdAt": 0, "status": "trash", "generatedContent": content},
                {"id": "ancient", "createdAt": 0, "status": "trash", "deletedAt": 0, "generatedContent": content},
            ],
        },
    )
    clock.advance(10 * WEEK_MS)

    remaining = repo.cleanup_trash()

    assert [a.id for a in remaining] == ["orphan"]


def test_cleanup_trash_without_expired_records_does_not_write(repo, content_factory) -> None:
    _save(repo, content_factory)
    before = repo.store.get(StorageKey.APPLICATIONS)

    repo.cleanup_trash()

    assert repo.store.get(StorageKey.APPLICATIONS) == before


def test_legacy_bare_list_without_status_is_readable(repo, content_factory) -> None:
    repo.store.set_json(
        StorageKey.APPLICATIONS,
        [{"id": "legacy", "createdAt": 1, "generatedContent": content_factory().to_json()}],
    )

    apps = repo.move("legacy", "next")

    assert apps[0].status == "applied"
    assert repo.store.get_json(StorageKey.APPLICATIONS)["version"] == 1


def test_infinite_ats_score_does_not_break_reads(repo, content_factory) -> None:
    content = content_factory().to_json()
    content["ats"]["score"] = "__SCORE__"
    raw = json.dumps({"version": 1, "items": [{"id": "odd", "createdAt": 1, "generatedContent": content}]})
    repo.store.set(StorageKey.APPLICATIONS, raw.replace('"__SCORE__"', "1e999"))

    apps = repo.list_applications()

    assert [a.id for a in apps] == ["odd"]
    assert apps[0].generated_content.ats.score == 0
    assert repo.cleanup_trash()[0].id == "odd"
