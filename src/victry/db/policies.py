"""Row ownership policies.

Every session opened through :func:`victry.db.session.open_owner_session`
carries the caller id in ``session.info``. ORM SELECTs through such a
session only see the caller's rows, and flushes refuse rows that hang off
someone else's parent. Sessions without a caller id (migrations, init) are
unrestricted.
"""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import event, select
from sqlalchemy.orm import ORMExecuteState, Session, with_loader_criteria

from victry.db.models import (
    RESUME_SECTION_MODELS,
    CustomEntry,
    CustomSection,
    JobAnalysis,
    JobDescription,
    Resume,
)
from victry.errors import AccessDeniedError

logger = logging.getLogger(__name__)

def session_user_id(session: Session) -> str | None:
    return session.info.get("user_id")


def _ownership_options(user_id: str) -> list[Any]:
    owned_resumes = select(Resume.id).where(Resume.user_id == user_id)
    owned_sections = select(CustomSection.id).where(CustomSection.resume_id.in_(owned_resumes))
    owned_jobs = select(JobDescription.id).where(JobDescription.user_id == user_id)

    options: list[Any] = [
        with_loader_criteria(Resume, Resume.user_id == user_id, include_aliases=True),
        with_loader_criteria(JobDescription, JobDescription.user_id == user_id, include_aliases=True),
        with_loader_criteria(CustomEntry, CustomEntry.custom_section_id.in_(owned_sections), include_aliases=True),
        with_loader_criteria(JobAnalysis, JobAnalysis.job_description_id.in_(owned_jobs), include_aliases=True),
    ]
    for model in RESUME_SECTION_MODELS:
        options.append(with_loader_criteria(model, model.resume_id.in_(owned_resumes), include_aliases=True))
    return options


@event.listens_for(Session, "do_orm_execute")
def _restrict_reads_to_owner(execute_state: ORMExecuteState) -> None:
    user_id = session_user_id(execute_state.session)
    if user_id is None:
        return
    if execute_state.is_select and not execute_state.is_column_load and not execute_state.is_relationship_load:
        execute_state.statement = execute_state.statement.options(*_ownership_options(user_id))


class _OwnershipCheck:
    def __init__(self, session: Session, user_id: str):
        self.session = session
        self.user_id = user_id
        self._resumes: dict[str, bool] = {}
        self._jobs: dict[str, bool] = {}
        self._sections: dict[str, bool] = {}

    def _pending(self, model: type, key: str) -> Any:
        for obj in self.session.new:
            if isinstance(obj, model) and obj.id == key:
                return obj
        return None

    def owns_resume(self, resume_id: str | None, resume: Resume | None = None) -> bool:
        if resume is not None:
            return resume.user_id == self.user_id
        if resume_id is None:
            return False
        if resume_id not in self._resumes:
            pending = self._pending(Resume, resume_id)
            if pending is not None:
                self._resumes[resume_id] = pending.user_id == self.user_id
            else:
                found = self.session.scalar(select(Resume.id).where(Resume.id == resume_id))
                self._resumes[resume_id] = found is not None
        return self._resumes[resume_id]

    def owns_job(self, job_id: str | None, job: JobDescription | None = None) -> bool:
        if job is not None:
            return job.user_id == self.user_id
        if job_id is None:
            return False
        if job_id not in self._jobs:
            pending = self._pending(JobDescription, job_id)
            if pending is not None:
                self._jobs[job_id] = pending.user_id == self.user_id
            else:
                found = self.session.scalar(select(JobDescription.id).where(JobDescription.id == job_id))
                self._jobs[job_id] = found is not None
        return self._jobs[job_id]

    def owns_section(self, section_id: str | None, section: CustomSection | None = None) -> bool:
        if section is not None:
            return self.owns_resume(section.resume_id, section.resume)
        if section_id is None:
            return False
        if section_id not in self._sections:
            pending = self._pending(CustomSection, section_id)
            if pending is not None:
                self._sections[section_id] = self.owns_resume(pending.resume_id, pending.resume)
            else:
                found = self.session.scalar(select(CustomSection.id).where(CustomSection.id == section_id))
                self._sections[section_id] = found is not None
        return self._sections[section_id]

    def check(self, obj: Any) -> None:
        if isinstance(obj, Resume):
            allowed = obj.user_id == self.user_id
            if allowed and obj.original_resume_id is not None:
                allowed = self.owns_resume(obj.original_resume_id)
            if allowed and obj.job_description_id is not None:
                allowed = self.owns_job(obj.job_description_id)
        elif isinstance(obj, RESUME_SECTION_MODELS):
            allowed = self.owns_resume(obj.resume_id, obj.resume)
        elif isinstance(obj, CustomEntry):
            allowed = self.owns_section(obj.custom_section_id, obj.section)
        elif isinstance(obj, JobDescription):
            allowed = obj.user_id == self.user_id
        elif isinstance(obj, JobAnalysis):
            allowed = self.owns_job(obj.job_description_id, obj.job_description)
        else:
            return

        if not allowed:
            logger.warning(
                "Rejected write of %s %s for user %s", type(obj).__name__, getattr(obj, "id", None), self.user_id
            )
            raise AccessDeniedError(f"Not allowed to write {type(obj).__name__}")


@event.listens_for(Session, "before_flush")
def _check_writes_against_owner(session: Session, _flush_context: Any, _instances: Any) -> None:
    user_id = session_user_id(session)
    if user_id is None:
        return
    checker = _OwnershipCheck(session, user_id)
    for obj in list(session.new) + [o for o in session.dirty if session.is_modified(o)]:
        checker.check(obj)
