from __future__ import annotations

import logging
import math
from typing import Any

from sqlalchemy.orm import Session

from victry.core.assembly import assemble_parent, assemble_resume
from victry.core.decompose import ResumeRows, decompose_resume
from victry.core.sections import ITEM_MODELS, PARENT_ATTRIBUTES, SECTIONS, SectionSpec
from victry.db.base import Base
from victry.db.models import CustomEntry, CustomSection, Resume
from victry.db.repositories import ResumeRepository
from victry.errors import NotFoundError, ValidationFailedError

logger = logging.getLogger(__name__)

RESUME_SORT_FIELDS = ("created_at", "updated_at", "title", "target_job_title")
SORT_ORDERS = ("asc", "desc")
MAX_PAGE_SIZE = 50


def clean_values(model: type[Base], values: dict[str, Any]) -> dict[str, Any]:
    """Drop explicit nulls for required columns that have a default, so the default applies."""
    columns = model.__table__.columns
    cleaned = {}
    for key, value in values.items():
        column = columns.get(key)
        if value is None and column is not None and not column.nullable and column.default is not None:
            continue
        cleaned[key] = value
    return cleaned


def build_section(spec: SectionSpec, payload: Any) -> list[Base]:
    """Instantiate unattached rows for one section. Validators may raise ``ValueError``."""
    items = payload if spec.many else [payload]
    objects: list[Base] = []
    for values in items:
        values = dict(values)
        entries = values.pop("entries", None)
        position = values.pop("sort_order", None)
        if spec.many and values.get(spec.order_key) is None:
            values[spec.order_key] = position
        obj = spec.model(**clean_values(spec.model, values))
        if isinstance(obj, CustomSection) and entries:
            obj.entries = [CustomEntry(**clean_values(CustomEntry, entry)) for entry in entries]
        objects.append(obj)
    return objects


def parent_values(values: dict[str, Any]) -> dict[str, Any]:
    return {PARENT_ATTRIBUTES.get(key, key): value for key, value in values.items()}


def require_text(values: dict[str, Any], key: str, label: str) -> None:
    value = values.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailedError(f"{label} is required")


class ResumeService:
    def __init__(self, session: Session, user_id: str):
        self.session = session
        self.user_id = user_id
        self.repository = ResumeRepository(session)

    def load(self, resume_id: str) -> Resume:
        resume = self.repository.get_resume(resume_id)
        if resume is None:
            raise NotFoundError("Resume not found")
        return resume

    def get(self, resume_id: str) -> dict[str, Any]:
        return assemble_resume(self.load(resume_id))

    def list(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        sort_by: str = "updated_at",
        sort_order: str = "desc",
        is_base_resume: bool | None = None,
        include_details: bool = False,
    ) -> dict[str, Any]:
        if page < 1:
            raise ValidationFailedError("page must be at least 1")
        if limit < 1 or limit > MAX_PAGE_SIZE:
            raise ValidationFailedError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        if sort_by not in RESUME_SORT_FIELDS:
            raise ValidationFailedError(f"sortBy must be one of {list(RESUME_SORT_FIELDS)}")
        if sort_order not in SORT_ORDERS:
            raise ValidationFailedError("sortOrder must be asc or desc")

        rows, total = self.repository.list_resumes(
            page=page,
            limit=limit,
            search=search,
            sort_by=sort_by,
            sort_order=sort_order,
            is_base_resume=is_base_resume,
        )
        total_pages = math.ceil(total / limit) if total else 0
        return {
            "data": [assemble_resume(row) if include_details else assemble_parent(row) for row in rows],
            "count": total,
            "pagination": {
                "page": page,
                "limit": limit,
                "totalPages": total_pages,
                "hasMore": page * limit < total,
            },
        }

    def create(self, tree: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
        require_text(tree, "title", "title")
        require_text(tree, "templateId", "templateId")

        rows = decompose_resume(tree)
        values = clean_values(Resume, parent_values(rows.parent))
        values.pop("version", None)
        resume = self.repository.create_resume(self.user_id, values)
        logger.info("Created resume %s for user %s", resume.id, self.user_id)

        warnings = self.insert_sections(resume.id, rows)
        self.session.expire_all()
        return self.get(resume.id), warnings

    def insert_sections(self, resume_id: str, rows: ResumeRows) -> list[str]:
        """Insert each section in its own transaction; failures are skipped and reported."""
        warnings: list[str] = []
        for spec in SECTIONS:
            payload = rows.sections.get(spec.table)
            if payload is None or (spec.many and not payload):
                continue
            try:
                objects = build_section(spec, payload)
                for obj in objects:
                    obj.resume_id = resume_id
                self.repository.add_rows(objects)
            except (ValidationFailedError, ValueError, TypeError) as exc:
                self.session.rollback()
                logger.warning("Skipped %s for resume %s: %s", spec.table, resume_id, exc)
                warnings.append(f"{spec.table}: {exc}")
        return warnings

    def update(self, resume_id: str, partial: dict[str, Any]) -> tuple[dict[str, Any], list[str]]:
        resume = self.load(resume_id)
        if "title" in partial:
            require_text(partial, "title", "title")
        if "templateId" in partial:
            require_text(partial, "templateId", "templateId")

        rows = decompose_resume(partial, assign_ids=False)
        warnings: list[str] = []
        with self.repository.writing():
            self.repository.update_fields(resume, clean_values(Resume, parent_values(rows.parent)))
            for spec in SECTIONS:
                if spec.table not in rows.sections:
                    continue
                payload = rows.sections[spec.table]
                if spec.many:
                    warnings.extend(self._merge_items(resume, spec, payload))
                else:
                    self._upsert_single(resume, spec, payload)
        logger.info("Updated resume %s", resume_id)

        self.session.expire_all()
        return self.get(resume_id), warnings

    def _upsert_single(self, resume: Resume, spec: SectionSpec, values: dict[str, Any]) -> None:
        existing = getattr(resume, spec.table)
        values = {key: value for key, value in values.items() if key != "id"}
        if existing is not None:
            for key, value in clean_values(spec.model, values).items():
                setattr(existing, key, value)
            return
        obj = spec.model(**clean_values(spec.model, values))
        obj.resume_id = resume.id
        self.session.add(obj)

    def _merge_items(self, resume: Resume, spec: SectionSpec, items: list[dict[str, Any]]) -> list[str]:
        warnings: list[str] = []
        order_column = getattr(spec.model, spec.order_key)
        next_order = self.repository.max_position(order_column, spec.model.resume_id, resume.id) + 1
        for values in items:
            values = dict(values)
            values.pop("sort_order", None)
            entries = values.pop("entries", None)
            item_id = values.pop("id", None)

            if item_id is None:
                obj = spec.model(**clean_values(spec.model, values))
                obj.resume_id = resume.id
                if getattr(obj, spec.order_key) is None:
                    setattr(obj, spec.order_key, next_order)
                next_order += 1
                if isinstance(obj, CustomSection) and entries:
                    obj.entries = [CustomEntry(**clean_values(CustomEntry, entry)) for entry in entries]
                    entries = None
                self.session.add(obj)
            else:
                obj = self.repository.get_item(spec.model, item_id)
                if obj is None or obj.resume_id != resume.id:
                    logger.warning("Skipping %s item %s not part of resume %s", spec.table, item_id, resume.id)
                    warnings.append(f"{spec.table}: item {item_id} does not belong to this resume")
                    continue
                for key, value in clean_values(spec.model, values).items():
                    setattr(obj, key, value)

            if isinstance(obj, CustomSection) and entries:
                warnings.extend(self._merge_entries(obj, entries))
        return warnings

    def _merge_entries(self, section: CustomSection, entries: list[dict[str, Any]]) -> list[str]:
        warnings: list[str] = []
        next_order = self.repository.max_position(CustomEntry.sort_order, CustomEntry.custom_section_id, section.id) + 1
        for values in entries:
            values = dict(values)
            values.pop("sort_order", None)
            entry_id = values.pop("id", None)
            if entry_id is None:
                entry = CustomEntry(**clean_values(CustomEntry, values))
                entry.custom_section_id = section.id
                entry.sort_order = next_order
                next_order += 1
                self.session.add(entry)
                continue
            entry = self.repository.get_custom_entry(entry_id)
            if entry is None or entry.custom_section_id != section.id:
                logger.warning("Skipping custom entry %s not part of section %s", entry_id, section.id)
                warnings.append(f"custom_entries: item {entry_id} does not belong to this section")
                continue
            for key, value in clean_values(CustomEntry, values).items():
                setattr(entry, key, value)
        return warnings

    def delete_item(self, resume_id: str, section: str, item_id: str) -> None:
        resume = self.load(resume_id)
        model = ITEM_MODELS.get(section)
        if model is None:
            raise ValidationFailedError(f"Unknown resume section: {section}")

        obj = self.repository.get_item(model, item_id)
        if isinstance(obj, CustomEntry):
            owner = obj.section.resume_id if obj.section is not None else None
        else:
            owner = getattr(obj, "resume_id", None)
        if obj is None or owner != resume.id:
            raise NotFoundError(f"{section} item not found")

        self.repository.delete(obj)
        logger.info("Deleted %s item %s from resume %s", section, item_id, resume_id)

    def delete(self, resume_id: str) -> None:
        resume = self.load(resume_id)
        self.repository.delete(resume)
        logger.info("Deleted resume %s", resume_id)

    def duplicate(self, resume_id: str, title: str | None = None) -> dict[str, Any]:
        source = self.load(resume_id)
        rows = decompose_resume(assemble_resume(source), fresh_ids=True)
        for spec in SECTIONS:
            if not spec.many and getattr(source, spec.table) is None:
                rows.sections.pop(spec.table, None)

        with self.repository.writing():
            copy = Resume(
                user_id=self.user_id,
                title=title or f"{source.title} (Copy)",
                target_job_title=source.target_job_title,
                template_id=source.template_id,
                is_base_resume=False,
                original_resume_id=source.id,
                version=1,
                format_options=source.format_options,
            )
            for spec in SECTIONS:
                payload = rows.sections.get(spec.table)
                if payload is None:
                    continue
                objects = build_section(spec, payload)
                if spec.many:
                    getattr(copy, spec.table).extend(objects)
                else:
                    setattr(copy, spec.table, objects[0])
            self.session.add(copy)
        logger.info("Duplicated resume %s into %s", source.id, copy.id)

        self.session.expire_all()
        return self.get(copy.id)
