from __future__ import annotations

import json
import logging
from enum import StrEnum
from typing import Any

from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from cvpilot.db.models import StoreRecord

logger = logging.getLogger(__name__)


class StorageKey(StrEnum):
    APPLICATIONS = "applications"
    PROFILES = "profiles"
    ACTIVE_PROFILE_ID = "active_profile_id"
    WORKSPACE_DRAFT = "workspace_draft"


class StorageError(Exception):
    pass


class StorageWriteError(StorageError):
    def __init__(self, key: str, cause: Exception):
        super().__init__(f"failed to write storage key '{key}': {cause}")
        self.key = key
        self.cause = cause


class PersistentStore:
    """Durable key-value storage, scoped to one namespace of the store_records table.

    Reads never raise: missing rows, database errors and malformed JSON all come
    back as ``None``. Writes raise :class:`StorageWriteError`.
    """

    def __init__(self, session_factory: sessionmaker[Session], namespace: str = "default"):
        self.session_factory = session_factory
        self.namespace = namespace

    def get(self, key: str) -> str | None:
        statement = select(StoreRecord.value).where(
            StoreRecord.namespace == self.namespace,
            StoreRecord.key == str(key),
        )
        try:
            with self.session_factory() as session:
                return session.scalar(statement)
        except SQLAlchemyError as exc:
            logger.error("Storage read failed namespace=%s key=%s error=%s", self.namespace, key, exc)
            return None

    def set(self, key: str, raw: str) -> None:
        try:
            with self.session_factory() as session:
                existing = session.scalar(
                    select(StoreRecord).where(
                        StoreRecord.namespace == self.namespace,
                        StoreRecord.key == str(key),
                    )
                )
                if existing:
                    existing.value = raw
                else:
                    session.add(StoreRecord(namespace=self.namespace, key=str(key), value=raw))
                session.commit()
        except SQLAlchemyError as exc:
            logger.error("Storage write failed namespace=%s key=%s error=%s", self.namespace, key, exc)
            raise StorageWriteError(str(key), exc) from exc

    def delete(self, key: str) -> None:
        try:
            with self.session_factory() as session:
                session.execute(
                    delete(StoreRecord).where(
                        StoreRecord.namespace == self.namespace,
                        StoreRecord.key == str(key),
                    )
                )
                session.commit()
        except SQLAlchemyError as exc:
            logger.error("Storage delete failed namespace=%s key=%s error=%s", self.namespace, key, exc)
            raise StorageWriteError(str(key), exc) from exc

    def get_json(self, key: str) -> Any | None:
        raw = self.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as exc:
            logger.error("Malformed stored JSON namespace=%s key=%s error=%s", self.namespace, key, exc)
            return None

    def set_json(self, key: str, value: Any) -> None:
        self.set(key, json.dumps(value, ensure_ascii=False))
