"""Assemble stored rows into the nested camelCase resume object."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from victry.core.fields import to_camel
from victry.core.sections import SECTIONS, content_columns
from victry.db.base import Base
from victry.db.models import CustomSection, Resume

DEFAULT_PERSONAL_INFO = {"fullName": "", "email": "", "phone": "", "location": ""}
DEFAULT_PROFESSIONAL_SUMMARY = {"content": ""}


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def row_to_dict(row: Base) -> dict[str, Any]:
    values = {"id": row.id}
    for column in content_columns(type(row)):
        values[column] = getattr(row, column)
    return values


def assemble_custom_section(section: CustomSection) -> dict[str, Any]:
    values = row_to_dict(section)
    values["entries"] = [row_to_dict(entry) for entry in section.entries]
    return to_camel(values)


def assemble_parent(resume: Resume) -> dict[str, Any]:
    return to_camel(
        {
            "id": resume.id,
            "user_id": resume.user_id,
            "title": resume.title,
            "target_job_title": resume.target_job_title,
            "template_id": resume.template_id,
            "created_at": _isoformat(resume.created_at),
            "updated_at": _isoformat(resume.updated_at),
            "is_base_resume": resume.is_base_resume,
            "original_resume_id": resume.original_resume_id,
            "job_description_id": resume.job_description_id,
            "ats_score": resume.ats_score,
            "version": resume.version,
            "metadata": resume.metadata_json,
            "format_options": resume.format_options,
        }
    )


def assemble_resume(resume: Resume) -> dict[str, Any]:
    tree = assemble_parent(resume)
    for spec in SECTIONS:
        related = getattr(resume, spec.table)
        if spec.many:
            if spec.model is CustomSection:
                tree[spec.tree_key] = [assemble_custom_section(section) for section in related]
            else:
                tree[spec.tree_key] = [to_camel(row_to_dict(row)) for row in related]
        else:
            tree[spec.tree_key] = to_camel(row_to_dict(related)) if related is not None else None

    if tree["personalInfo"] is None:
        tree["personalInfo"] = dict(DEFAULT_PERSONAL_INFO)
    if tree["professionalSummary"] is None:
        tree["professionalSummary"] = dict(DEFAULT_PROFESSIONAL_SUMMARY)
    return tree

