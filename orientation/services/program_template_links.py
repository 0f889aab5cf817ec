"""
Data access for the program <-> template many-to-many links.

A link row carries per-program overrides. When a program's templates are
listed or instantiated, a non-null override on the link wins over the
template's own value.
"""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from orientation.core.errors import InvalidInputError
from orientation.models import Program, ProgramTaskTemplate, ProgramTemplateLink
from orientation.services.coerce import normalize_status, optional_bool, optional_int, optional_text
from orientation.services.pagination import Page, normalize_limit, normalize_offset
from orientation.services.templates import (
    TEMPLATE_FIELDS,
    is_template_status,
    restore_template,
    soft_delete_template,
)

logger = logging.getLogger(__name__)

# Override columns shared by the link and the template.
OVERRIDE_FIELDS: tuple[str, ...] = (
    "week_number",
    "sort_order",
    "due_offset_days",
    "required",
    "visibility",
    "notes",
    "external_link",
    "type_delivery",
)
LINK_FIELDS: tuple[str, ...] = OVERRIDE_FIELDS + ("visible",)

_INT_FIELDS = {
    "week_number": "invalid_week_number",
    "sort_order": "invalid_sort_order",
    "due_offset_days": "invalid_due_offset_days",
}

_T = ProgramTaskTemplate
_L = ProgramTemplateLink


def effective_week():
    return func.coalesce(_L.week_number, _T.week_number)


def effective_sort_order():
    return func.coalesce(_L.sort_order, _T.sort_order)


def merge_link(link: ProgramTemplateLink, template: ProgramTaskTemplate) -> dict[str, Any]:
    """Flatten a template and its link into one row; link overrides win."""
    row: dict[str, Any] = {
        "template_id": template.template_id,
        "label": template.label,
        "status": template.status,
        "organization": template.organization,
        "sub_unit": template.sub_unit,
        "discipline_type": template.discipline_type,
        "department": template.department,
        "deleted_at": template.deleted_at,
    }
    for key in OVERRIDE_FIELDS:
        override = getattr(link, key)
        row[key] = override if override is not None else getattr(template, key)
    row.update(
        program_id=link.program_id,
        link_id=link.id,
        linked_at=link.created_at,
        visible=link.visible if link.visible is not None else True,
        updated_by=link.updated_by,
    )
    return row


def clean_link_patch(raw: dict[str, Any]) -> dict[str, Any]:
    """Coerce a per-program metadata patch; unknown keys are dropped."""
    values: dict[str, Any] = {}
    for key, code in _INT_FIELDS.items():
        if key in raw:
            values[key] = optional_int(raw[key], code)
    if "required" in raw:
        values["required"] = optional_bool(raw["required"], "invalid_required")
    if "visible" in raw:
        values["visible"] = optional_bool(raw["visible"], "invalid_visible")
    for key in ("visibility", "notes", "external_link", "type_delivery"):
        if key in raw:
            values[key] = optional_text(raw[key])
    return values


def list_templates_for_program(
    db: Session,
    program_id: str,
    limit: object = None,
    offset: object = None,
    include_deleted: bool = False,
    status: str | None = None,
) -> Page:
    """Templates linked to a program with overrides applied, ordered by effective week/sort/id."""
    lim = normalize_limit(limit)
    off = normalize_offset(offset)
    q = (
        db.query(_L, _T)
        .join(_T, _T.template_id == _L.template_id)
        .filter(_L.program_id == program_id)
    )
    if not include_deleted:
        q = q.filter(_T.deleted_at.is_(None))
    status = normalize_status(status)
    if is_template_status(status):
        q = q.filter(_T.status == status)
    total = q.count()
    rows = (
        q.order_by(
            effective_week().asc().nulls_last(),
            effective_sort_order().asc().nulls_last(),
            _T.template_id.asc(),
        )
        .limit(lim)
        .offset(off)
        .all()
    )
    return Page(data=[merge_link(link, t) for link, t in rows], total=total, limit=lim, offset=off)


def list_programs_for_template(
    db: Session,
    template_id: int,
    limit: object = None,
    offset: object = None,
) -> Page:
    """Programs a template is attached to, ordered by title."""
    lim = normalize_limit(limit)
    off = normalize_offset(offset)
    q = (
        db.query(Program, _L.created_at)
        .join(_L, _L.program_id == Program.program_id)
        .filter(_L.template_id == template_id)
    )
    total = q.count()
    rows = q.order_by(Program.title.asc(), Program.program_id.asc()).limit(lim).offset(off).all()
    data = [
        {
            "program_id": program.program_id,
            "title": program.title,
            "status": program.status,
            "deleted_at": program.deleted_at,
            "linked_at": linked_at,
        }
        for program, linked_at in rows
    ]
    return Page(data=data, total=total, limit=lim, offset=off)


def get_link(db: Session, program_id: str, template_id: int) -> ProgramTemplateLink | None:
    return (
        db.query(_L)
        .filter(_L.program_id == program_id, _L.template_id == template_id)
        .first()
    )


def attach(
    db: Session,
    program_id: str,
    template: ProgramTaskTemplate,
    user_id: int | None = None,
) -> tuple[ProgramTemplateLink, bool]:
    """
    Idempotently link a template to a program.

    New links start with a copy of the template's values. Returns
    (link, already_attached).
    """
    existing = get_link(db, program_id, template.template_id)
    if existing is not None:
        return existing, True
    link = _L(
        program_id=program_id,
        template_id=template.template_id,
        visible=True,
        created_by=user_id,
        updated_by=user_id,
        **{key: getattr(template, key) for key in OVERRIDE_FIELDS},
    )
    db.add(link)
    try:
        db.commit()
    except IntegrityError:
        # Lost a race with a concurrent attach; the unique key keeps one row.
        db.rollback()
        existing = get_link(db, program_id, template.template_id)
        if existing is None:
            raise
        return existing, True
    db.refresh(link)
    logger.info("Attached template %s to program %s", template.template_id, program_id)
    return link, False


def create_linked_template(
    db: Session,
    program_id: str,
    values: dict[str, Any],
    visible: object = None,
    user_id: int | None = None,
) -> tuple[ProgramTemplateLink, ProgramTaskTemplate]:
    """Create a template and link it to the program in a single commit."""
    link_visible = optional_bool(visible, "invalid_visible")
    template = _T(**{k: v for k, v in values.items() if k in TEMPLATE_FIELDS})
    if template.status is None:
        template.status = "draft"
    try:
        db.add(template)
        db.flush()
        link = _L(
            program_id=program_id,
            template_id=template.template_id,
            visible=True if link_visible is None else link_visible,
            created_by=user_id,
            updated_by=user_id,
            **{key: getattr(template, key) for key in OVERRIDE_FIELDS},
        )
        db.add(link)
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(template)
    db.refresh(link)
    logger.info("Created template %s in program %s", template.template_id, program_id)
    return link, template


def soft_delete_linked_template(
    db: Session, program_id: str, template_id: int
) -> ProgramTaskTemplate | None:
    """Soft-delete a template via one of its programs. None when unlinked or already deleted."""
    if get_link(db, program_id, template_id) is None:
        return None
    return soft_delete_template(db, template_id)


def restore_linked_template(
    db: Session, program_id: str, template_id: int
) -> ProgramTaskTemplate | None:
    if get_link(db, program_id, template_id) is None:
        return None
    return restore_template(db, template_id)


def detach(db: Session, program_id: str, template_id: int) -> bool:
    """Idempotently unlink; returns whether a link existed."""
    deleted = (
        db.query(_L)
        .filter(_L.program_id == program_id, _L.template_id == template_id)
        .delete(synchronize_session=False)
    )
    db.commit()
    if deleted:
        logger.info("Detached template %s from program %s", template_id, program_id)
    return deleted > 0


def _apply_link_patch(link: ProgramTemplateLink, values: dict[str, Any], user_id: int | None) -> None:
    for key, value in values.items():
        setattr(link, key, value)
    link.updated_by = user_id
    link.updated_at = datetime.now(timezone.utc)


def update_link(
    db: Session,
    program_id: str,
    template_id: int,
    patch: dict[str, Any],
    user_id: int | None = None,
) -> ProgramTemplateLink | None:
    """Update one program's overrides for a template. None when not linked."""
    link = get_link(db, program_id, template_id)
    if link is None:
        return None
    values = clean_link_patch(patch)
    if values:
        _apply_link_patch(link, values, user_id)
        db.commit()
        db.refresh(link)
    return link


def apply_metadata_updates(
    db: Session,
    program_id: str,
    updates: list[dict[str, Any]],
    user_id: int | None = None,
) -> int:
    """
    Apply a batch of per-template override patches to one program's links.

    Each update names its template via template_id (or templateId). Entries
    for templates not linked to the program are skipped. Commits once;
    returns the number of links changed.
    """
    prepared: list[tuple[int, dict[str, Any]]] = []
    for update in updates:
        if not isinstance(update, dict):
            raise InvalidInputError("invalid_updates")
        template_id = optional_int(
            update.get("template_id", update.get("templateId")), "invalid_template_id"
        )
        if template_id is None:
            raise InvalidInputError("invalid_template_id")
        prepared.append((template_id, clean_link_patch(update)))

    updated = 0
    try:
        for template_id, values in prepared:
            if not values:
                continue
            link = get_link(db, program_id, template_id)
            if link is None:
                continue
            _apply_link_patch(link, values, user_id)
            updated += 1
        db.commit()
    except Exception:
        db.rollback()
        raise
    if updated:
        logger.info("Updated %s template link(s) for program %s", updated, program_id)
    return updated


def reorder(
    db: Session,
    program_id: str,
    order: list[Any],
    user_id: int | None = None,
) -> int:
    """
    Set sort_order on the program's links from ``order``.

    Null and blank entries are dropped; each remaining template id gets its
    1-based position, so ids that are not linked still take up a slot.
    Returns the number of links changed.
    """
    template_ids = [optional_int(value, "invalid_order") for value in order]
    template_ids = [template_id for template_id in template_ids if template_id is not None]
    if not template_ids:
        raise InvalidInputError("invalid_order")
    links = {link.template_id: link for link in db.query(_L).filter(_L.program_id == program_id)}
    updated = 0
    for position, template_id in enumerate(template_ids, start=1):
        link = links.get(template_id)
        if link is None:
            continue
        _apply_link_patch(link, {"sort_order": position}, user_id)
        updated += 1
    db.commit()
    return updated
