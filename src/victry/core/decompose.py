"""Split the nested camelCase resume object into per-table snake_case rows."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from victry.core.fields import snake_name, to_snake
from victry.core.sections import PARENT_FIELDS, SECTIONS, content_columns
from victry.db.base import new_id
from victry.db.models import CustomEntry

logger = logging.getLogger(__name__)


@dataclass
class ResumeRows:
    """Rows for one resume; sections missing from the input are absent from ``sections``."""

    parent: dict[str, Any] = field(default_factory=dict)
    sections: dict[str, Any] = field(default_factory=dict)


def _row(values: Any, columns: tuple[str, ...], *, assign_id: bool, fresh_ids: bool) -> dict[str, Any] | None:
    if not isinstance(values, dict):
        return None
    snake = to_snake(values)
    row = {column: snake[column] for column in columns if column in snake}
    if fresh_ids:
        row["id"] = new_id()
    elif snake.get("id"):
        row["id"] = snake["id"]
    elif assign_id:
        row["id"] = new_id()
    return row


def decompose_resume(tree: dict[str, Any], *, assign_ids: bool = True, fresh_ids: bool = False) -> ResumeRows:
    """Inverse of :func:`victry.core.assembly.assemble_resume`.

    ``fresh_ids`` discards every incoming child id, as duplication and
    tailoring do. With ``assign_ids`` rows missing an id get a new one;
    updates pass ``assign_ids=False`` so id-less rows are recognised as new.
    """
    rows = ResumeRows()
    for key, value in tree.items():
        name = snake_name(key)
        if name in PARENT_FIELDS:
            rows.parent[name] = to_snake(value)

    for spec in SECTIONS:
        if spec.tree_key not in tree or tree[spec.tree_key] is None:
            continue
        raw = tree[spec.tree_key]
        columns = spec.columns
        if not spec.many:
            row = _row(raw, columns, assign_id=assign_ids, fresh_ids=fresh_ids)
            if row is None:
                logger.warning("Ignoring malformed %s section", spec.table)
                continue
            rows.sections[spec.table] = row
            continue

        if not isinstance(raw, list):
            logger.warning("Ignoring malformed %s section; expected a list", spec.table)
            continue
        items: list[dict[str, Any]] = []
        for index, item in enumerate(raw):
            row = _row(item, columns, assign_id=assign_ids, fresh_ids=fresh_ids)
            if row is None:
                logger.warning("Ignoring malformed %s item at position %d", spec.table, index)
                continue
            row["sort_order"] = index
            if spec.table == "custom_sections":
                row["entries"] = _entries(item.get("entries"), assign_ids=assign_ids, fresh_ids=fresh_ids)
            items.append(row)
        rows.sections[spec.table] = items
    return rows


def _entries(raw: Any, *, assign_ids: bool, fresh_ids: bool) -> list[dict[str, Any]] | None:
    if raw is None:
        return None
    if not isinstance(raw, list):
        logger.warning("Ignoring malformed custom section entries; expected a list")
        return None
    columns = content_columns(CustomEntry)
    entries = []
    for index, item in enumerate(raw):
        row = _row(item, columns, assign_id=assign_ids, fresh_ids=fresh_ids)
        if row is None:
            continue
        row["sort_order"] = index
        entries.append(row)
    return entries
