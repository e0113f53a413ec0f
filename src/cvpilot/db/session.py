from __future__ import annotations

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from cvpilot.config import get_settings


def create_session_factory(database_url: str) -> tuple[Engine, sessionmaker[Session]]:
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    db_engine = create_engine(database_url, connect_args=connect_args, future=True)
    factory = sessionmaker(bind=db_engine, autoflush=False, autocommit=False, future=True)
    return db_engine, factory


settings = get_settings()
engine, SessionLocal = create_session_factory(settings.database_url)
