"""Bidirectional field-name mapping between stored rows and the client tree.

Stored rows use snake_case column names; the nested resume object the
client exchanges uses camelCase. Names whose casing does not follow the
regular rule are listed explicitly; everything else is converted
mechanically.
"""

from __future__ import annotations

import re
from typing import Any

FIELD_NAME_PAIRS: tuple[tuple[str, str], ...] = (
    ("user_id", "userId"),
    ("resume_id", "resumeId"),
    ("target_job_title", "targetJobTitle"),
    ("template_id", "templateId"),
    ("created_at", "createdAt"),
    ("updated_at", "updatedAt"),
    ("is_base_resume", "isBaseResume"),
    ("original_resume_id", "originalResumeId"),
    ("job_description_id", "jobDescriptionId"),
    ("ats_score", "atsScore"),
    ("format_options", "formatOptions"),
    ("full_name", "fullName"),
    ("linkedin", "linkedIn"),
    ("additional_info", "additionalInfo"),
    ("start_date", "startDate"),
    ("end_date", "endDate"),
    ("years_of_experience", "yearsOfExperience"),
    ("is_key_skill", "isKeySkill"),
    ("credential_id", "credentialId"),
    ("display_text", "displayText"),
    ("is_primary", "isPrimary"),
    ("is_visible", "isVisible"),
    ("custom_section_id", "customSectionId"),
    ("personal_info", "personalInfo"),
    ("professional_summary", "professionalSummary"),
    ("work_experiences", "workExperiences"),
    ("social_links", "socialLinks"),
    ("custom_sections", "customSections"),
    ("application_deadline", "applicationDeadline"),
    ("has_applied", "hasApplied"),
    ("application_date", "applicationDate"),
    ("application_status", "applicationStatus"),
    ("is_favorite", "isFavorite"),
    ("employment_type", "employmentType"),
    ("workplace_type", "workplaceType"),
    ("is_active", "isActive"),
    ("salary_range", "salaryRange"),
    ("experience_level", "experienceLevel"),
    ("company_culture", "companyCulture"),
    ("remote_work", "remoteWork"),
    ("ats_compatibility_score", "atsCompatibilityScore"),
)

SNAKE_TO_CAMEL = dict(FIELD_NAME_PAIRS)
CAMEL_TO_SNAKE = {camel: snake for snake, camel in FIELD_NAME_PAIRS}

# Only identifier-like keys starting with a lowercase letter are renamed; others pass through.
_MAPPABLE = re.compile(r"[a-z][A-Za-z0-9_]*")
_UPPER = re.compile(r"[A-Z]")


def camel_name(name: str) -> str:
    """``address_line_2`` -> ``addressLine_2``: an underscore survives unless a letter follows it."""
    if name in SNAKE_TO_CAMEL:
        return SNAKE_TO_CAMEL[name]
    if not _MAPPABLE.fullmatch(name):
        return name
    head, *rest = name.split("_")
    parts = [head]
    for part in rest:
        if part[:1].isalpha() and part[:1].islower():
            parts.append(part[:1].upper() + part[1:])
        else:
            parts.append("_" + part)
    camel = "".join(parts)
    # "linked_in" must not collide with the irregular "linkedIn" pair.
    if CAMEL_TO_SNAKE.get(camel, name) != name:
        return name
    return camel


def snake_name(name: str) -> str:
    """Every capital starts a new word, so ``isATS`` -> ``is_a_t_s`` and back again."""
    if name in CAMEL_TO_SNAKE:
        return CAMEL_TO_SNAKE[name]
    if not _MAPPABLE.fullmatch(name):
        return name
    return _UPPER.sub(lambda match: "_" + match.group(0).lower(), name)


def to_camel(value: Any) -> Any:
    """Rename every mapping key to camelCase, recursing through lists and nested documents."""
    if isinstance(value, dict):
        return {camel_name(key) if isinstance(key, str) else key: to_camel(item) for key, item in value.items()}
    if isinstance(value, list):
        return [to_camel(item) for item in value]
    return value


def to_snake(value: Any) -> Any:
    if isinstance(value, dict):
        return {snake_name(key) if isinstance(key, str) else key: to_snake(item) for key, item in value.items()}
    if isinstance(value, list):
        return [to_snake(item) for item in value]
    return value
