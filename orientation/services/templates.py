"""Data access for reusable program task templates."""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from orientation.core.errors import InvalidInputError
from orientation.models import ProgramTaskTemplate
from orientation.services.coerce import normalize_status, optional_bool, optional_int, optional_text
from orientation.services.pagination import Page, normalize_limit, normalize_offset, search_pattern

logger = logging.getLogger(__name__)

TEMPLATE_STATUSES: tuple[str, ...] = ("draft", "published", "deprecated")

# Columns a client may set on create/update.
TEMPLATE_FIELDS: tuple[str, ...] = (
    "week_number",
    "label",
    "notes",
    "due_offset_days",
    "required",
    "visibility",
    "sort_order",
    "status",
    "organization",
    "sub_unit",
    "discipline_type",
    "type_delivery",
    "department",
    "external_link",
)
_INT_FIELDS = {
    "week_number": "invalid_week_number",
    "sort_order": "invalid_sort_order",
    "due_offset_days": "invalid_due_offset_days",
}
_TEXT_FIELDS = (
    "notes",
    "visibility",
    "organization",
    "sub_unit",
    "discipline_type",
    "type_delivery",
    "department",
    "external_link",
)


def is_template_status(value: object) -> bool:
    return isinstance(value, str) and value in TEMPLATE_STATUSES


def clean_template_values(raw: dict[str, Any], *, partial: bool) -> dict[str, Any]:
    """
    Validate and coerce a create/update payload into column values.

    Unknown keys are dropped. On create (partial=False) a non-blank label is
    required and status defaults to draft. Raises InvalidInputError with
    codes invalid_label, invalid_week_number, invalid_sort_order,
    invalid_due_offset_days, invalid_required or invalid_status.
    """
    values: dict[str, Any] = {}
    if "label" in raw or not partial:
        label = optional_text(raw.get("label"))
        if label is None:
            raise InvalidInputError("invalid_label")
        values["label"] = label
    for key, code in _INT_FIELDS.items():
        if key in raw:
            values[key] = optional_int(raw[key], code)
    if "required" in raw:
        values["required"] = optional_bool(raw["required"], "invalid_required")
    for key in _TEXT_FIELDS:
        if key in raw:
            values[key] = optional_text(raw[key])
    if "status" in raw and raw["status"] is not None:
        status = str(raw["status"]).strip().lower()
        if not is_template_status(status):
            raise InvalidInputError("invalid_status")
        values["status"] = status
    elif not partial:
        values["status"] = "draft"
    return values


def list_templates(
    db: Session,
    limit: object = None,
    offset: object = None,
    include_deleted: bool = False,
    status: str | None = None,
    search: str | None = None,
) -> Page:
    """
    Page through templates ordered by week, sort order and id (nulls last).

    Soft-deleted rows are hidden unless include_deleted. Unknown status values
    are ignored here; the API layer rejects them. search matches label or
    notes case-insensitively.
    """
    lim = normalize_limit(limit)
    off = normalize_offset(offset)
    q = db.query(ProgramTaskTemplate)
    if not include_deleted:
        q = q.filter(ProgramTaskTemplate.deleted_at.is_(None))
    status = normalize_status(status)
    if is_template_status(status):
        q = q.filter(ProgramTaskTemplate.status == status)
    pattern = search_pattern(search)
    if pattern is not None:
        q = q.filter(
            or_(
                ProgramTaskTemplate.label.ilike(pattern, escape="\\"),
                ProgramTaskTemplate.notes.ilike(pattern, escape="\\"),
            )
        )
    total = q.count()
    rows = (
        q.order_by(
            ProgramTaskTemplate.week_number.asc().nulls_last(),
            ProgramTaskTemplate.sort_order.asc().nulls_last(),
            ProgramTaskTemplate.template_id.asc(),
        )
        .limit(lim)
        .offset(off)
        .all()
    )
    return Page(data=rows, total=total, limit=lim, offset=off)


def get_template(
    db: Session, template_id: int, include_deleted: bool = False
) -> ProgramTaskTemplate | None:
    q = db.query(ProgramTaskTemplate).filter(ProgramTaskTemplate.template_id == template_id)
    if not include_deleted:
        q = q.filter(ProgramTaskTemplate.deleted_at.is_(None))
    return q.first()


def create_template(db: Session, values: dict[str, Any]) -> ProgramTaskTemplate:
    template = ProgramTaskTemplate(**{k: v for k, v in values.items() if k in TEMPLATE_FIELDS})
    if template.status is None:
        template.status = "draft"
    db.add(template)
    db.commit()
    db.refresh(template)
    logger.info("Created template %s (%s)", template.template_id, template.status)
    return template


def update_template(
    db: Session, template_id: int, patch: dict[str, Any]
) -> ProgramTaskTemplate | None:
    """Apply patch to a non-deleted template. An empty patch returns the current row."""
    template = get_template(db, template_id)
    if template is None:
        return None
    changes = {k: v for k, v in patch.items() if k in TEMPLATE_FIELDS}
    if not changes:
        return template
    for key, value in changes.items():
        setattr(template, key, value)
    db.commit()
    db.refresh(template)
    return template


def soft_delete_template(db: Session, template_id: int) -> ProgramTaskTemplate | None:
    """Mark a template deleted. Returns None when missing or already deleted."""
    template = get_template(db, template_id)
    if template is None:
        return None
    template.deleted_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(template)
    logger.info("Soft-deleted template %s", template_id)
    return template


def restore_template(db: Session, template_id: int) -> ProgramTaskTemplate | None:
    """Clear deleted_at. Returns None when missing or not deleted."""
    template = (
        db.query(ProgramTaskTemplate)
        .filter(
            ProgramTaskTemplate.template_id == template_id,
            ProgramTaskTemplate.deleted_at.isnot(None),
        )
        .first()
    )
    if template is None:
        return None
    template.deleted_at = None
    db.commit()
    db.refresh(template)
    logger.info("Restored template %s", template_id)
    return template


def set_template_status(db: Session, template_id: int, status: str) -> ProgramTaskTemplate | None:
    """Unconditional lifecycle write (publish/deprecate); the caller has already checked RBAC."""
    if not is_template_status(status):
        raise InvalidInputError("invalid_status")
    template = get_template(db, template_id)
    if template is None:
        return None
    previous = template.status
    template.status = status
    db.commit()
    db.refresh(template)
    logger.info("Template %s status %s -> %s", template_id, previous, status)
    return template
