from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, StatementError
from sqlalchemy.orm import Session

from victry.db.base import Base, utcnow
from victry.db.models import CustomEntry, JobAnalysis, JobDescription, Resume
from victry.errors import ValidationFailedError, VictryError

logger = logging.getLogger(__name__)


def contains_pattern(text: str) -> str:
    """LIKE pattern matching ``text`` literally anywhere, with backslash as the escape character."""
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def describe_storage_error(exc: Exception) -> str:
    if isinstance(exc, IntegrityError) and exc.orig is not None:
        return str(exc.orig)
    if isinstance(exc, StatementError) and exc.orig is not None:
        return str(exc.orig)
    return str(exc)


class Repository:
    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def writing(self) -> Iterator[None]:
        """Commit the enclosed changes; storage rejections become ``ValidationFailedError``."""
        try:
            yield
            self.session.commit()
        except VictryError:
            self.session.rollback()
            raise
        except (StatementError, ValueError, TypeError) as exc:
            self.session.rollback()
            raise ValidationFailedError(describe_storage_error(exc)) from exc

    def delete(self, obj: Base) -> None:
        with self.writing():
            self.session.delete(obj)


class ResumeRepository(Repository):
    def get_resume(self, resume_id: str) -> Resume | None:
        return self.session.scalar(select(Resume).where(Resume.id == resume_id))

    def list_resumes(
        self,
        *,
        page: int,
        limit: int,
        search: str | None = None,
        sort_by: str = "updated_at",
        sort_order: str = "desc",
        is_base_resume: bool | None = None,
    ) -> tuple[list[Resume], int]:
        filters = []
        if search:
            pattern = contains_pattern(search)
            filters.append(
                or_(Resume.title.ilike(pattern, escape="\\"), Resume.target_job_title.ilike(pattern, escape="\\"))
            )
        if is_base_resume is not None:
            filters.append(Resume.is_base_resume == is_base_resume)

        total = self.session.scalar(select(func.count()).select_from(Resume).where(*filters)) or 0
        column = getattr(Resume, sort_by)
        ordering = column.desc() if sort_order == "desc" else column.asc()
        rows = self.session.scalars(
            select(Resume).where(*filters).order_by(ordering, Resume.id).offset((page - 1) * limit).limit(limit)
        ).all()
        return list(rows), total

    def create_resume(self, user_id: str, values: dict[str, Any]) -> Resume:
        with self.writing():
            resume = Resume(user_id=user_id, **values)
            self.session.add(resume)
        return resume

    def update_fields(self, resume: Resume, values: dict[str, Any]) -> Resume:
        """Stage parent changes; the caller commits through :meth:`writing`."""
        for key, value in values.items():
            setattr(resume, key, value)
        resume.updated_at = utcnow()
        return resume

    def add_rows(self, rows: list[Base]) -> list[Base]:
        with self.writing():
            self.session.add_all(rows)
        return rows

    def get_item(self, model: type[Base], item_id: str) -> Any:
        return self.session.scalar(select(model).where(model.id == item_id))

    def max_position(self, order_column: Any, parent_column: Any, parent_id: str) -> int:
        value = self.session.scalar(select(func.max(order_column)).where(parent_column == parent_id))
        return -1 if value is None else int(value)

    def get_custom_entry(self, entry_id: str) -> CustomEntry | None:
        return self.session.scalar(select(CustomEntry).where(CustomEntry.id == entry_id))


class JobDescriptionRepository(Repository):
    def get_job_description(self, job_id: str) -> JobDescription | None:
        return self.session.scalar(select(JobDescription).where(JobDescription.id == job_id))

    def list_job_descriptions(
        self,
        *,
        page: int,
        limit: int,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> tuple[list[JobDescription], int]:
        filters = []
        if search:
            pattern = contains_pattern(search)
            filters.append(
                or_(
                    JobDescription.title.ilike(pattern, escape="\\"),
                    JobDescription.company.ilike(pattern, escape="\\"),
                    JobDescription.content.ilike(pattern, escape="\\"),
                )
            )

        total = self.session.scalar(select(func.count()).select_from(JobDescription).where(*filters)) or 0
        column = getattr(JobDescription, sort_by)
        ordering = column.desc() if sort_order == "desc" else column.asc()
        rows = self.session.scalars(
            select(JobDescription)
            .where(*filters)
            .order_by(ordering, JobDescription.id)
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return list(rows), total

    def create_job_description(self, user_id: str, values: dict[str, Any]) -> JobDescription:
        with self.writing():
            job = JobDescription(user_id=user_id, **values)
            self.session.add(job)
        return job

    def update_job_description(self, job: JobDescription, values: dict[str, Any]) -> JobDescription:
        with self.writing():
            for key, value in values.items():
                setattr(job, key, value)
            job.updated_at = utcnow()
        return job

    def get_analysis(self, job_id: str) -> JobAnalysis | None:
        return self.session.scalar(select(JobAnalysis).where(JobAnalysis.job_description_id == job_id))

    def upsert_analysis(self, job_id: str, values: dict[str, Any]) -> JobAnalysis:
        existing = self.get_analysis(job_id)
        with self.writing():
            if existing:
                for key, value in values.items():
                    setattr(existing, key, value)
                existing.updated_at = utcnow()
                analysis = existing
            else:
                analysis = JobAnalysis(job_description_id=job_id, **values)
                self.session.add(analysis)
        return analysis
