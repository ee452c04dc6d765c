from __future__ import annotations

import logging
import math
from datetime import datetime
from typing import Any

from pydantic import TypeAdapter, ValidationError
from sqlalchemy.orm import Session

from victry.core.fields import to_camel, to_snake
from victry.core.resumes import SORT_ORDERS, require_text
from victry.db.base import new_id, utcnow
from victry.db.models import APPLICATION_STATUSES, JobAnalysis, JobDescription
from victry.db.repositories import JobDescriptionRepository
from victry.errors import NotFoundError, ValidationFailedError
from victry.llm.router import LLMRouter
from victry.types import AnalysisItem, JobAnalysisPayload, JobKeyword, JobRequirement

logger = logging.getLogger(__name__)

JOB_WRITABLE_FIELDS = (
    "title",
    "company",
    "location",
    "content",
    "url",
    "application_deadline",
    "has_applied",
    "application_date",
    "application_status",
    "notes",
    "is_favorite",
    "tags",
    "employment_type",
    "workplace_type",
    "is_active",
    "salary_range",
    "industry",
    "department",
)
JOB_REQUIRED_FIELDS = ("title", "company", "content")
JOB_SORT_FIELDS = ("created_at", "updated_at", "title", "company")
DATETIME_FIELDS = ("application_deadline", "application_date")
MAX_PAGE_SIZE = 100
REQUIREMENT_IMPORTANCE = ("must_have", "preferred", "nice_to_have")

_datetime_adapter = TypeAdapter(datetime)


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def assemble_analysis(analysis: JobAnalysis) -> dict[str, Any]:
    return {
        "id": analysis.id,
        "jobDescriptionId": analysis.job_description_id,
        "requirements": analysis.requirements or [],
        "keywords": analysis.keywords or [],
        "experienceLevel": analysis.experience_level,
        "companyCulture": analysis.company_culture or [],
        "responsibilities": analysis.responsibilities or [],
        "industry": analysis.industry,
        "department": analysis.department,
        "employmentType": analysis.employment_type,
        "remoteWork": analysis.remote_work,
        "salaryRange": to_camel(analysis.salary_range),
        "atsCompatibilityScore": analysis.ats_compatibility_score,
        "createdAt": _isoformat(analysis.created_at),
        "updatedAt": _isoformat(analysis.updated_at),
    }


def assemble_job_description(job: JobDescription, *, include_analysis: bool = True) -> dict[str, Any]:
    values: dict[str, Any] = {"id": job.id, "user_id": job.user_id}
    for name in JOB_WRITABLE_FIELDS:
        value = getattr(job, name)
        values[name] = _isoformat(value) if name in DATETIME_FIELDS else value
    values["created_at"] = _isoformat(job.created_at)
    values["updated_at"] = _isoformat(job.updated_at)
    tree = to_camel(values)
    if include_analysis:
        tree["analysis"] = assemble_analysis(job.analysis) if job.analysis is not None else None
    return tree


def importance_of(item: AnalysisItem) -> str:
    value = (item.importance or "").lower()
    return value if value in REQUIREMENT_IMPORTANCE else "nice_to_have"


def map_analysis(payload: JobAnalysisPayload) -> dict[str, Any]:
    """Flatten the model's analysis into job_analysis column values."""
    requirements: list[dict[str, Any]] = []

    def add(kind: str, content: str | None, item: AnalysisItem) -> None:
        if not content:
            return
        requirements.append(
            JobRequirement(id=new_id(), type=kind, content=content, importance=importance_of(item)).dump()
        )

    for item in payload.hardSkills:
        add("hard_skill", item.skill, item)
    for item in payload.softSkills:
        add("soft_skill", item.skill, item)
    for item in payload.qualifications.experience:
        add("experience", item.description, item)
    for item in payload.qualifications.education:
        add("education", f"{item.type} in {item.field}" if item.type or item.field else None, item)
    for item in payload.qualifications.certifications:
        add("certification", item.name, item)

    keywords = [
        JobKeyword(id=new_id(), text=keyword.text, frequency=int(keyword.frequency or 1), context=keyword.context).dump()
        for keyword in payload.keywords
        if keyword.text
    ]
    return {
        "requirements": requirements,
        "keywords": keywords,
        "experience_level": payload.experienceLevel.level or "mid",
        "company_culture": [culture.trait for culture in payload.companyCulture if culture.trait],
        "industry": payload.industry,
        "remote_work": payload.remoteStatus,
    }


class JobDescriptionService:
    def __init__(self, session: Session, user_id: str, llm: LLMRouter | None = None):
        self.session = session
        self.user_id = user_id
        self.llm = llm
        self.repository = JobDescriptionRepository(session)

    def load(self, job_id: str) -> JobDescription:
        job = self.repository.get_job_description(job_id)
        if job is None:
            raise NotFoundError("Job description not found")
        return job

    def get(self, job_id: str) -> dict[str, Any]:
        return assemble_job_description(self.load(job_id))

    def list(
        self,
        *,
        page: int = 1,
        limit: int = 50,
        search: str | None = None,
        sort_by: str = "created_at",
        sort_order: str = "desc",
    ) -> dict[str, Any]:
        if page < 1:
            raise ValidationFailedError("page must be at least 1")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationFailedError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if sort_by not in JOB_SORT_FIELDS:
            raise ValidationFailedError(f"sortBy must be one of {list(JOB_SORT_FIELDS)}")
        if sort_order not in SORT_ORDERS:
            raise ValidationFailedError("sortOrder must be asc or desc")

        rows, total = self.repository.list_job_descriptions(
            page=page, limit=limit, search=search, sort_by=sort_by, sort_order=sort_order
        )
        return {
            "data": [assemble_job_description(row) for row in rows],
            "count": total,
            "pagination": {
                "page": page,
                "limit": limit,
                "totalPages": math.ceil(total / limit) if total else 0,
                "hasMore": page * limit < total,
            },
        }

    def _values(self, payload: dict[str, Any]) -> dict[str, Any]:
        snake = to_snake(payload)
        values = {name: snake[name] for name in JOB_WRITABLE_FIELDS if name in snake}
        for name in DATETIME_FIELDS:
            if values.get(name) is not None:
                try:
                    values[name] = _datetime_adapter.validate_python(values[name])
                except ValidationError as exc:
                    raise ValidationFailedError(f"{name} must be an ISO 8601 date-time") from exc
        return values

    def create(self, payload: dict[str, Any]) -> dict[str, Any]:
        for name in JOB_REQUIRED_FIELDS:
            require_text(payload, name, name)
        job = self.repository.create_job_description(self.user_id, self._values(payload))
        logger.info("Created job description %s for user %s", job.id, self.user_id)
        return assemble_job_description(job)

    def update(self, job_id: str, partial: dict[str, Any]) -> dict[str, Any]:
        job = self.load(job_id)
        for name in JOB_REQUIRED_FIELDS:
            if name in partial:
                require_text(partial, name, name)
        self.repository.update_job_description(job, self._values(partial))
        return assemble_job_description(job)

    def delete(self, job_id: str) -> None:
        job = self.load(job_id)
        self.repository.delete(job)
        logger.info("Deleted job description %s", job_id)

    def set_application_status(
        self,
        job_id: str,
        status: str,
        *,
        notes: str | None = None,
        application_date: str | datetime | None = None,
    ) -> dict[str, Any]:
        if status not in APPLICATION_STATUSES:
            raise ValidationFailedError(f"status must be one of {list(APPLICATION_STATUSES)}")

        job = self.load(job_id)
        values: dict[str, Any] = {"application_status": status, "has_applied": status != "not_applied"}
        if notes is not None:
            values["notes"] = notes
        if status == "not_applied":
            values["application_date"] = None
        elif application_date is not None:
            values.update(self._values({"applicationDate": application_date}))
        elif status == "applied":
            values["application_date"] = utcnow()

        self.repository.update_job_description(job, values)
        return assemble_job_description(job)

    def analyze(self, job_id: str) -> dict[str, Any]:
        if self.llm is None:
            raise RuntimeError("JobDescriptionService.analyze requires an LLM router")

        job = self.load(job_id)
        try:
            payload = self.llm.analyze_job(job_description=job.content)
        except ValueError as exc:
            raise ValidationFailedError(str(exc)) from exc

        analysis = self.repository.upsert_analysis(job.id, map_analysis(payload))
        logger.info("Stored analysis %s for job description %s", analysis.id, job.id)
        return assemble_analysis(analysis)
