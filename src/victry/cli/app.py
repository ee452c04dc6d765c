from __future__ import annotations

import json
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import typer
import uvicorn
from sqlalchemy.orm import Session

from victry.api.app import create_app
from victry.config import get_settings
from victry.core.job_descriptions import JobDescriptionService
from victry.core.resumes import ResumeService
from victry.db.init import init_database
from victry.db.session import build_engine, build_session_factory, open_owner_session
from victry.errors import VictryError
from victry.llm.router import LLMRouter
from victry.logging_config import configure_logging

app = typer.Typer(help="Victry CLI")
resume_app = typer.Typer(help="Inspect and manage resumes")
jobs_app = typer.Typer(help="Job description commands")

app.add_typer(resume_app, name="resume")
app.add_typer(jobs_app, name="jobs")


@contextmanager
def owner_session(user_id: str) -> Iterator[Session]:
    configure_logging()
    settings = get_settings()
    engine = build_engine(settings)
    init_database(engine, settings)
    session = open_owner_session(build_session_factory(engine), user_id)
    try:
        yield session
    except VictryError as exc:
        typer.echo(json.dumps({"error": exc.message, "code": exc.code}, indent=2), err=True)
        raise typer.Exit(code=1) from exc
    finally:
        session.close()
        engine.dispose()


def emit(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, default=str))


@app.command("init")
def init_cmd() -> None:
    """Create the database schema and data directories."""
    configure_logging()
    settings = get_settings()
    engine = build_engine(settings)
    result = init_database(engine, settings)
    engine.dispose()
    emit({"ok": True, **result})


@resume_app.command("list")
def resume_list(
    user_id: str = typer.Option(..., "--user-id"),
    page: int = typer.Option(1, "--page"),
    limit: int = typer.Option(10, "--limit"),
    search: str | None = typer.Option(None, "--search"),
    base_only: bool = typer.Option(False, "--base-only"),
) -> None:
    with owner_session(user_id) as db:
        result = ResumeService(db, user_id).list(
            page=page, limit=limit, search=search, is_base_resume=True if base_only else None
        )
        emit(result)


@resume_app.command("show")
def resume_show(
    resume_id: str = typer.Argument(...),
    user_id: str = typer.Option(..., "--user-id"),
) -> None:
    with owner_session(user_id) as db:
        emit(ResumeService(db, user_id).get(resume_id))


@resume_app.command("duplicate")
def resume_duplicate(
    resume_id: str = typer.Argument(...),
    user_id: str = typer.Option(..., "--user-id"),
    title: str | None = typer.Option(None, "--title"),
) -> None:
    with owner_session(user_id) as db:
        copy = ResumeService(db, user_id).duplicate(resume_id, title=title)
        emit({"id": copy["id"], "title": copy["title"], "originalResumeId": copy["originalResumeId"]})


@resume_app.command("delete")
def resume_delete(
    resume_id: str = typer.Argument(...),
    user_id: str = typer.Option(..., "--user-id"),
) -> None:
    with owner_session(user_id) as db:
        ResumeService(db, user_id).delete(resume_id)
        emit({"deleted": resume_id})


@jobs_app.command("list")
def jobs_list(
    user_id: str = typer.Option(..., "--user-id"),
    limit: int = typer.Option(20, "--limit"),
    search: str | None = typer.Option(None, "--search"),
) -> None:
    with owner_session(user_id) as db:
        result = JobDescriptionService(db, user_id).list(limit=limit, search=search)
        emit(
            [
                {
                    "id": job["id"],
                    "title": job["title"],
                    "company": job["company"],
                    "applicationStatus": job["applicationStatus"],
                    "createdAt": job["createdAt"],
                }
                for job in result["data"]
            ]
        )


@jobs_app.command("analyze")
def jobs_analyze(
    job_id: str = typer.Argument(...),
    user_id: str = typer.Option(..., "--user-id"),
) -> None:
    with owner_session(user_id) as db:
        service = JobDescriptionService(db, user_id, LLMRouter(get_settings()))
        emit(service.analyze(job_id))


@app.command("serve")
def serve(
    host: str | None = typer.Option(None, "--host"),
    port: int | None = typer.Option(None, "--port"),
) -> None:
    configure_logging()
    settings = get_settings()
    uvicorn.run(create_app(settings), host=host or settings.app_host, port=port or settings.app_port)
