from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import inspect

from victry.db.base import Base
from victry.db.models import (
    Certification,
    CustomEntry,
    CustomSection,
    Education,
    PersonalInfo,
    ProfessionalSummary,
    Project,
    Skill,
    SocialLink,
    WorkExperience,
)

INTERNAL_COLUMNS = frozenset({"id", "resume_id", "custom_section_id", "sort_order"})

# Parent scalars the client may write. "metadata" is stored on Resume.metadata_json.
PARENT_FIELDS: tuple[str, ...] = (
    "title",
    "target_job_title",
    "template_id",
    "is_base_resume",
    "original_resume_id",
    "job_description_id",
    "ats_score",
    "version",
    "metadata",
    "format_options",
)
PARENT_ATTRIBUTES = {"metadata": "metadata_json"}


def content_columns(model: type[Base]) -> tuple[str, ...]:
    return tuple(attr.key for attr in inspect(model).column_attrs if attr.key not in INTERNAL_COLUMNS)


@dataclass(frozen=True)
class SectionSpec:
    table: str
    tree_key: str
    model: type[Base]
    many: bool
    order_key: str = "sort_order"

    @property
    def columns(self) -> tuple[str, ...]:
        return content_columns(self.model)


SECTIONS: tuple[SectionSpec, ...] = (
    SectionSpec("personal_info", "personalInfo", PersonalInfo, many=False),
    SectionSpec("professional_summary", "professionalSummary", ProfessionalSummary, many=False),
    SectionSpec("work_experiences", "workExperiences", WorkExperience, many=True),
    SectionSpec("education", "education", Education, many=True),
    SectionSpec("skills", "skills", Skill, many=True),
    SectionSpec("projects", "projects", Project, many=True),
    SectionSpec("certifications", "certifications", Certification, many=True),
    SectionSpec("social_links", "socialLinks", SocialLink, many=True),
    SectionSpec("custom_sections", "customSections", CustomSection, many=True, order_key="order"),
)

# Sections addressable by the per-item delete operation.
ITEM_MODELS: dict[str, type[Base]] = {
    spec.table: spec.model for spec in SECTIONS if spec.many
} | {"custom_entries": CustomEntry}

