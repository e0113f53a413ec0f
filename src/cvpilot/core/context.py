from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.orm import Session, sessionmaker

from cvpilot.config import Settings, get_settings
from cvpilot.db.repositories import ApplicationRepository, Clock, ProfileRepository, WorkspaceDraftStore
from cvpilot.db.store import PersistentStore
from cvpilot.types import now_ms


@dataclass(slots=True)
class AppContext:
    """One user's storage scope: the store plus the repositories layered on it.

    Independent contexts (separate namespaces or databases) never share the
    active-profile pointer or the workspace draft.
    """

    store: PersistentStore
    profiles: ProfileRepository
    applications: ApplicationRepository
    drafts: WorkspaceDraftStore
    settings: Settings
    clock: Clock

    @classmethod
    def create(
        cls,
        session_factory: sessionmaker[Session],
        *,
        settings: Settings | None = None,
        namespace: str | None = None,
        clock: Clock = now_ms,
    ) -> AppContext:
        settings = settings or get_settings()
        store = PersistentStore(session_factory, namespace=namespace or settings.store_namespace)
        return cls(
            store=store,
            profiles=ProfileRepository(store, default_name=settings.default_profile_name),
            applications=ApplicationRepository(
                store,
                trash_retention_ms=settings.trash_retention_ms,
                clock=clock,
            ),
            drafts=WorkspaceDraftStore(store, clock=clock),
            settings=settings,
            clock=clock,
        )
