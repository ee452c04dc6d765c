from __future__ import annotations

from pathlib import Path

from sqlalchemy import Engine, inspect

from victry.config import Settings, get_settings
from victry.db import models  # noqa: F401
from victry.db.base import Base


def ensure_data_directories(settings: Settings | None = None) -> None:
    settings = settings or get_settings()
    paths: list[Path] = [settings.data_dir]
    url = settings.database_url
    if url.startswith("sqlite:///") and ":memory:" not in url:
        paths.append(Path(url.removeprefix("sqlite:///")).parent)
    for path in paths:
        path.mkdir(parents=True, exist_ok=True)


def init_database(engine: Engine, settings: Settings | None = None) -> dict[str, int]:
    ensure_data_directories(settings)
    Base.metadata.create_all(bind=engine)
    return {"tables": len(inspect(engine).get_table_names())}
