import os
import sqlite3
import subprocess
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


def _alembic(db_path: Path, *args: str) -> None:
    env = os.environ.copy()
    env["DATABASE_URL"] = f"sqlite:///{db_path}"
    env["PYTHONPATH"] = os.pathsep.join(filter(None, [str(ROOT / "src"), env.get("PYTHONPATH")]))
    subprocess.run(
        [sys.executable, "-m", "alembic", "-c", "alembic.ini", *args],
        cwd=ROOT,
        env=env,
        check=True,
    )


def _tables(db_path: Path) -> set[str]:
    conn = sqlite3.connect(db_path)
    try:
        rows = conn.execute("SELECT name FROM sqlite_master WHERE type='table'").fetchall()
    finally:
        conn.close()
    return {row[0] for row in rows}


def test_upgrade_creates_schema_and_downgrade_drops_it(tmp_path: Path) -> None:
    db_path = tmp_path / "migrated.db"

    _alembic(db_path, "upgrade", "head")
    tables = _tables(db_path)
    assert {
        "resumes",
        "personal_info",
        "professional_summary",
        "work_experiences",
        "education",
        "skills",
        "projects",
        "certifications",
        "social_links",
        "custom_sections",
        "custom_entries",
        "job_descriptions",
        "job_analysis",
        "alembic_version",
    } <= tables

    _alembic(db_path, "downgrade", "base")
    assert _tables(db_path) == {"alembic_version"}
