from __future__ import annotations

import re
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from victry.db.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

SKILL_LEVELS = ("beginner", "intermediate", "advanced", "expert")
APPLICATION_STATUSES = (
    "not_applied",
    "applied",
    "interview_scheduled",
    "interview_completed",
    "offer_received",
    "accepted",
    "rejected",
    "withdrawn",
)

EMAIL_PATTERN = re.compile(r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$")
PHONE_PATTERN = re.compile(r"^\+?[0-9\s\-\(\)]+$")
URL_PATTERN = re.compile(r"^https?://")

DATE_RANGE_CHECK = (
    '("end_date" IS NULL AND "current") OR '
    '("end_date" IS NOT NULL AND NOT "current" AND "start_date" <= "end_date")'
)


def check_email(key: str, value: str) -> str:
    if value and not EMAIL_PATTERN.match(value):
        raise ValueError(f"{key} is not a valid email address")
    return value


def check_phone(key: str, value: str) -> str:
    if value and (len(value) > 20 or not PHONE_PATTERN.match(value)):
        raise ValueError(f"{key} is not a valid phone number")
    return value


def check_url(key: str, value: str | None, *, required: bool = False) -> str | None:
    if value is None or value == "":
        if required:
            raise ValueError(f"{key} is required")
        return None
    if not URL_PATTERN.match(value):
        raise ValueError(f"{key} must start with http:// or https://")
    return value


class Resume(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "resumes"
    __table_args__ = (CheckConstraint("length(title) > 0", name="valid_resume_title"),)

    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    target_job_title: Mapped[str | None] = mapped_column(Text, nullable=True)
    template_id: Mapped[str] = mapped_column(String(120), nullable=False)
    is_base_resume: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    original_resume_id: Mapped[str | None] = mapped_column(
        ForeignKey("resumes.id", ondelete="SET NULL"), nullable=True, index=True
    )
    job_description_id: Mapped[str | None] = mapped_column(
        ForeignKey("job_descriptions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    ats_score: Mapped[float | None] = mapped_column(Float, nullable=True)
    version: Mapped[int] = mapped_column(Integer, default=1, nullable=False)
    metadata_json: Mapped[dict[str, Any] | None] = mapped_column("metadata", JSON, nullable=True)
    format_options: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    personal_info: Mapped[PersonalInfo | None] = relationship(
        back_populates="resume", uselist=False, cascade="all, delete-orphan", passive_deletes=True
    )
    professional_summary: Mapped[ProfessionalSummary | None] = relationship(
        back_populates="resume", uselist=False, cascade="all, delete-orphan", passive_deletes=True
    )
    work_experiences: Mapped[list[WorkExperience]] = relationship(
        back_populates="resume",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="WorkExperience.sort_order",
    )
    education: Mapped[list[Education]] = relationship(
        back_populates="resume",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Education.sort_order",
    )
    skills: Mapped[list[Skill]] = relationship(
        back_populates="resume",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Skill.sort_order",
    )
    projects: Mapped[list[Project]] = relationship(
        back_populates="resume",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Project.sort_order",
    )
    certifications: Mapped[list[Certification]] = relationship(
        back_populates="resume",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Certification.sort_order",
    )
    social_links: Mapped[list[SocialLink]] = relationship(
        back_populates="resume",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="SocialLink.sort_order",
    )
    custom_sections: Mapped[list[CustomSection]] = relationship(
        back_populates="resume",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CustomSection.order",
    )

    @validates("title")
    def _validate_title(self, key: str, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("title must not be empty")
        return value


class PersonalInfo(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "personal_info"
    __table_args__ = (CheckConstraint("length(full_name) > 0", name="valid_full_name"),)

    resume_id: Mapped[str] = mapped_column(ForeignKey("resumes.id", ondelete="CASCADE"), unique=True)
    full_name: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(String(320), default="", nullable=False)
    phone: Mapped[str] = mapped_column(String(20), default="", nullable=False)
    location: Mapped[str] = mapped_column(Text, default="", nullable=False)
    linkedin: Mapped[str | None] = mapped_column(String(800), nullable=True)
    website: Mapped[str | None] = mapped_column(String(800), nullable=True)
    github: Mapped[str | None] = mapped_column(String(800), nullable=True)
    additional_info: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)

    resume: Mapped[Resume] = relationship(back_populates="personal_info")

    @validates("full_name")
    def _validate_full_name(self, key: str, value: str) -> str:
        if not value or not value.strip():
            raise ValueError("full_name must not be empty")
        return value

    @validates("email")
    def _validate_email(self, key: str, value: str) -> str:
        return check_email(key, value)

    @validates("phone")
    def _validate_phone(self, key: str, value: str) -> str:
        return check_phone(key, value)

    @validates("linkedin", "website", "github")
    def _validate_links(self, key: str, value: str | None) -> str | None:
        return check_url(key, value)


class ProfessionalSummary(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "professional_summary"

    resume_id: Mapped[str] = mapped_column(ForeignKey("resumes.id", ondelete="CASCADE"), unique=True)
    content: Mapped[str] = mapped_column(Text, default="", nullable=False)

    resume: Mapped[Resume] = relationship(back_populates="professional_summary")


class WorkExperience(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "work_experiences"
    __table_args__ = (CheckConstraint(DATE_RANGE_CHECK, name="valid_work_dates"),)

    resume_id: Mapped[str] = mapped_column(ForeignKey("resumes.id", ondelete="CASCADE"), index=True)
    company: Mapped[str] = mapped_column(Text, nullable=False)
    position: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str] = mapped_column(Text, default="", nullable=False)
    start_date: Mapped[str] = mapped_column(String(32), nullable=False)
    end_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    current: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    highlights: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    industry: Mapped[str | None] = mapped_column(Text, nullable=True)
    department: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    resume: Mapped[Resume] = relationship(back_populates="work_experiences")


class Education(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "education"
    __table_args__ = (CheckConstraint(DATE_RANGE_CHECK, name="valid_education_dates"),)

    resume_id: Mapped[str] = mapped_column(ForeignKey("resumes.id", ondelete="CASCADE"), index=True)
    institution: Mapped[str] = mapped_column(Text, nullable=False)
    degree: Mapped[str] = mapped_column(Text, nullable=False)
    field: Mapped[str] = mapped_column(Text, default="", nullable=False)
    location: Mapped[str] = mapped_column(Text, default="", nullable=False)
    start_date: Mapped[str] = mapped_column(String(32), nullable=False)
    end_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    current: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    gpa: Mapped[str | None] = mapped_column(String(20), nullable=True)
    highlights: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    honors: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    thesis: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    resume: Mapped[Resume] = relationship(back_populates="education")


class Skill(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "skills"

    resume_id: Mapped[str] = mapped_column(ForeignKey("resumes.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    level: Mapped[str | None] = mapped_column(
        Enum(*SKILL_LEVELS, name="skill_level_enum", create_constraint=True), nullable=True
    )
    category: Mapped[str | None] = mapped_column(String(255), nullable=True)
    years_of_experience: Mapped[int | None] = mapped_column(Integer, nullable=True)
    is_key_skill: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    resume: Mapped[Resume] = relationship(back_populates="skills")

    @validates("level")
    def _validate_level(self, key: str, value: str | None) -> str | None:
        if value is not None and value not in SKILL_LEVELS:
            raise ValueError(f"level must be one of {list(SKILL_LEVELS)}")
        return value


class Project(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "projects"

    resume_id: Mapped[str] = mapped_column(ForeignKey("resumes.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, default="", nullable=False)
    start_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    end_date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    url: Mapped[str | None] = mapped_column(String(800), nullable=True)
    highlights: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    technologies: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    role: Mapped[str | None] = mapped_column(String(255), nullable=True)
    organization: Mapped[str | None] = mapped_column(String(255), nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    resume: Mapped[Resume] = relationship(back_populates="projects")

    @validates("url")
    def _validate_url(self, key: str, value: str | None) -> str | None:
        return check_url(key, value)


class Certification(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "certifications"

    resume_id: Mapped[str] = mapped_column(ForeignKey("resumes.id", ondelete="CASCADE"), index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    issuer: Mapped[str] = mapped_column(String(255), nullable=False)
    date: Mapped[str] = mapped_column(String(32), nullable=False)
    expires: Mapped[str | None] = mapped_column(String(32), nullable=True)
    url: Mapped[str | None] = mapped_column(String(800), nullable=True)
    credential_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    resume: Mapped[Resume] = relationship(back_populates="certifications")

    @validates("url")
    def _validate_url(self, key: str, value: str | None) -> str | None:
        return check_url(key, value)


class SocialLink(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "social_links"

    resume_id: Mapped[str] = mapped_column(ForeignKey("resumes.id", ondelete="CASCADE"), index=True)
    platform: Mapped[str] = mapped_column(String(120), nullable=False)
    url: Mapped[str] = mapped_column(String(800), nullable=False)
    username: Mapped[str | None] = mapped_column(String(255), nullable=True)
    display_text: Mapped[str | None] = mapped_column(String(255), nullable=True)
    is_primary: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    resume: Mapped[Resume] = relationship(back_populates="social_links")

    @validates("url")
    def _validate_url(self, key: str, value: str) -> str | None:
        return check_url(key, value, required=True)


class CustomSection(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "custom_sections"

    resume_id: Mapped[str] = mapped_column(ForeignKey("resumes.id", ondelete="CASCADE"), index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    order: Mapped[int | None] = mapped_column("order", Integer, nullable=True)
    is_visible: Mapped[bool | None] = mapped_column(Boolean, default=True, nullable=True)

    resume: Mapped[Resume] = relationship(back_populates="custom_sections")
    entries: Mapped[list[CustomEntry]] = relationship(
        back_populates="section",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="CustomEntry.sort_order",
    )


class CustomEntry(UUIDPrimaryKeyMixin, Base):
    __tablename__ = "custom_entries"

    custom_section_id: Mapped[str] = mapped_column(
        ForeignKey("custom_sections.id", ondelete="CASCADE"), index=True
    )
    title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    subtitle: Mapped[str | None] = mapped_column(String(255), nullable=True)
    date: Mapped[str | None] = mapped_column(String(32), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    bullets: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    section: Mapped[CustomSection] = relationship(back_populates="entries")


class JobDescription(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "job_descriptions"

    user_id: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    company: Mapped[str] = mapped_column(Text, nullable=False)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    url: Mapped[str | None] = mapped_column(String(800), nullable=True)
    application_deadline: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    has_applied: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    application_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    application_status: Mapped[str] = mapped_column(
        Enum(*APPLICATION_STATUSES, name="application_status_enum", create_constraint=True),
        default="not_applied",
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_favorite: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    tags: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    employment_type: Mapped[str | None] = mapped_column(String(120), nullable=True)
    workplace_type: Mapped[str | None] = mapped_column(String(120), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    salary_range: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    industry: Mapped[str | None] = mapped_column(String(255), nullable=True)
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)

    analysis: Mapped[JobAnalysis | None] = relationship(
        back_populates="job_description",
        uselist=False,
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @validates("url")
    def _validate_url(self, key: str, value: str | None) -> str | None:
        return check_url(key, value)

    @validates("application_status")
    def _validate_status(self, key: str, value: str) -> str:
        if value not in APPLICATION_STATUSES:
            raise ValueError(f"application_status must be one of {list(APPLICATION_STATUSES)}")
        return value


class JobAnalysis(UUIDPrimaryKeyMixin, TimestampMixin, Base):
    __tablename__ = "job_analysis"

    job_description_id: Mapped[str] = mapped_column(
        ForeignKey("job_descriptions.id", ondelete="CASCADE"), unique=True
    )
    requirements: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    keywords: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list, nullable=False)
    experience_level: Mapped[str] = mapped_column(String(40), default="mid", nullable=False)
    company_culture: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    responsibilities: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    industry: Mapped[str | None] = mapped_column(String(255), nullable=True)
    department: Mapped[str | None] = mapped_column(String(255), nullable=True)
    employment_type: Mapped[str | None] = mapped_column(String(120), nullable=True)
    remote_work: Mapped[str | None] = mapped_column(String(40), nullable=True)
    salary_range: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    ats_compatibility_score: Mapped[float | None] = mapped_column(Float, nullable=True)

    job_description: Mapped[JobDescription] = relationship(back_populates="analysis")


RESUME_SECTION_MODELS: tuple[type[Base], ...] = (
    PersonalInfo,
    ProfessionalSummary,
    WorkExperience,
    Education,
    Skill,
    Project,
    Certification,
    SocialLink,
    CustomSection,
)
