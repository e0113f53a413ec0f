from __future__ import annotations

from pathlib import Path

from sqlalchemy import Engine, inspect

from cvpilot.config import get_settings
from cvpilot.db import models  # noqa: F401
from cvpilot.db.base import Base
from cvpilot.db.session import engine as default_engine


def ensure_data_directories() -> None:
    settings = get_settings()
    paths: list[Path] = [settings.data_dir]
    if settings.database_url.startswith("sqlite:///") and ":memory:" not in settings.database_url:
        paths.append(Path(settings.database_url.removeprefix("sqlite:///")).parent)
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def init_database(engine: Engine | None = None) -> dict[str, list[str]]:
    """Create the storage tables; safe to call repeatedly."""
    target = engine or default_engine
    if engine is None:
        ensure_data_directories()
    Base.metadata.create_all(bind=target)
    return {"tables": sorted(inspect(target).get_table_names())}
