"""Orientation tasks: instantiation from program templates and per-user task CRUD."""

import logging
from datetime import date
from typing import Any, Protocol

from sqlalchemy import and_
from sqlalchemy.orm import Session

from orientation.core.errors import InvalidInputError, NotFoundError, ProgramArchivedError
from orientation.core.rbac import has_role
from orientation.models import (
    OrientationTask,
    ProgramTaskTemplate,
    ProgramTemplateLink,
    User,
)
from orientation.services import preferences as preferences_service
from orientation.services import programs as programs_service
from orientation.services.coerce import optional_bool, optional_int, optional_text
from orientation.services.program_template_links import effective_sort_order, effective_week

logger = logging.getLogger(__name__)

TASK_FIELDS: tuple[str, ...] = (
    "label",
    "scheduled_for",
    "scheduled_time",
    "done",
    "program_id",
    "week_number",
    "notes",
    "journal_entry",
    "responsible_person",
    "type_delivery",
)
FIELD_ALIASES = {"time": "scheduled_time"}
# Fields a trainee may change on their own task.
OWNER_EDITABLE_FIELDS = frozenset({"done"})
# Fields a manager holding task.assign but not task.update may change.
SCHEDULE_FIELDS = frozenset({"scheduled_for", "scheduled_time"})


class Actor(Protocol):
    id: int
    roles: list[str]


def canonical_field(key: str) -> str:
    return FIELD_ALIASES.get(key, key)


def _parse_date(value: object) -> date | None:
    if value is None or value == "":
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise InvalidInputError("invalid_scheduled_for") from None


def clean_task_values(raw: dict[str, Any]) -> dict[str, Any]:
    """Map request keys (``time`` alias included) to coerced column values."""
    values: dict[str, Any] = {}
    for key, value in raw.items():
        field = canonical_field(key)
        if field not in TASK_FIELDS:
            continue
        if field == "label":
            label = optional_text(value)
            if label is None:
                raise InvalidInputError("invalid_label")
            values[field] = label
        elif field == "scheduled_for":
            values[field] = _parse_date(value)
        elif field == "done":
            values[field] = bool(optional_bool(value, "invalid_done"))
        elif field == "week_number":
            values[field] = optional_int(value, "invalid_week_number")
        else:
            values[field] = optional_text(value)
    return values


def can_manage_tasks(db: Session, actor: Actor, program_id: str | None) -> bool:
    """Admins and managers manage all tasks; others only those of programs they manage."""
    if has_role(actor, "admin", "manager"):
        return True
    if not program_id:
        return False
    return programs_service.is_program_manager(db, actor.id, program_id)


def instantiate_program(db: Session, user: User, program_id: str) -> int:
    """
    Copy every linked, non-deleted template of a program into the user's tasks.

    Link overrides win for week and notes. Templates already present as a
    non-deleted task with the same label and week are skipped, so the call is
    safe to repeat. Returns the number of tasks created.
    """
    program = programs_service.get_program(db, program_id)
    if program is None:
        raise NotFoundError("program_not_found")
    if program.status == "archived":
        raise ProgramArchivedError()

    rows = (
        db.query(ProgramTemplateLink, ProgramTaskTemplate)
        .join(
            ProgramTaskTemplate,
            ProgramTaskTemplate.template_id == ProgramTemplateLink.template_id,
        )
        .filter(
            and_(
                ProgramTemplateLink.program_id == program_id,
                ProgramTaskTemplate.deleted_at.is_(None),
            )
        )
        .order_by(
            effective_week().asc().nulls_last(),
            effective_sort_order().asc().nulls_last(),
            ProgramTaskTemplate.template_id.asc(),
        )
        .all()
    )
    existing = {
        (label, week)
        for label, week in db.query(OrientationTask.label, OrientationTask.week_number).filter(
            OrientationTask.user_id == user.id,
            OrientationTask.program_id == program_id,
            OrientationTask.deleted.is_(False),
        )
    }
    trainee = user.full_name or ""
    created = 0
    try:
        for link, template in rows:
            week = link.week_number if link.week_number is not None else template.week_number
            if (template.label, week) in existing:
                continue
            db.add(
                OrientationTask(
                    user_id=user.id,
                    trainee=trainee,
                    label=template.label,
                    done=False,
                    program_id=program_id,
                    week_number=week,
                    notes=link.notes if link.notes is not None else template.notes,
                    type_delivery=(
                        link.type_delivery
                        if link.type_delivery is not None
                        else template.type_delivery
                    ),
                    deleted=False,
                )
            )
            existing.add((template.label, week))
            created += 1
        # The instantiated program becomes the user's current one.
        preferences_service.stage_preferences(db, user.id, {"program_id": program_id})
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Instantiated program %s for user %s: %s task(s)", program_id, user.id, created)
    return created


def assign_program(db: Session, user: User, program_id: str) -> int:
    """Record a trainee membership and instantiate the program's tasks."""
    program = programs_service.get_program(db, program_id)
    if program is None:
        raise NotFoundError("program_not_found")
    if program.status == "archived":
        raise ProgramArchivedError()
    programs_service.add_membership(db, user.id, program_id, "trainee")
    db.commit()
    return instantiate_program(db, user, program_id)


def unassign_program(db: Session, user: User, program_id: str) -> int:
    """Drop the trainee membership and soft-delete the user's tasks for the program."""
    programs_service.remove_membership(db, user.id, program_id, "trainee")
    removed = (
        db.query(OrientationTask)
        .filter(
            OrientationTask.user_id == user.id,
            OrientationTask.program_id == program_id,
            OrientationTask.deleted.is_(False),
        )
        .update({OrientationTask.deleted: True}, synchronize_session=False)
    )
    db.commit()
    logger.info("Unassigned program %s from user %s (%s task(s) removed)", program_id, user.id, removed)
    return removed


def list_tasks(
    db: Session,
    actor: Actor,
    start: date | None = None,
    end: date | None = None,
    program_id: str | None = None,
    user_id: int | None = None,
    include_deleted: bool = False,
) -> list[OrientationTask]:
    """Tasks visible to the actor; non-managers only ever see their own."""
    q = db.query(OrientationTask)
    if not include_deleted:
        q = q.filter(OrientationTask.deleted.is_(False))
    if start is not None:
        q = q.filter(OrientationTask.scheduled_for >= start)
    if end is not None:
        q = q.filter(OrientationTask.scheduled_for <= end)
    if program_id:
        q = q.filter(OrientationTask.program_id == program_id)
    if can_manage_tasks(db, actor, program_id):
        if user_id is not None:
            q = q.filter(OrientationTask.user_id == user_id)
    else:
        q = q.filter(OrientationTask.user_id == actor.id)
    return q.order_by(
        OrientationTask.scheduled_for.asc().nulls_last(), OrientationTask.task_id.asc()
    ).all()


def get_task(db: Session, task_id: int) -> OrientationTask | None:
    return db.get(OrientationTask, task_id)


def create_task(db: Session, owner: User, values: dict[str, Any]) -> OrientationTask:
    if "label" not in values:
        raise InvalidInputError("invalid_label")
    task = OrientationTask(
        user_id=owner.id,
        trainee=owner.full_name or "",
        done=values.pop("done", False),
        deleted=False,
        **values,
    )
    db.add(task)
    db.commit()
    db.refresh(task)
    return task


def update_task(db: Session, task: OrientationTask, values: dict[str, Any]) -> OrientationTask:
    for key, value in values.items():
        setattr(task, key, value)
    db.commit()
    db.refresh(task)
    return task


def set_task_deleted(db: Session, task: OrientationTask, deleted: bool) -> OrientationTask:
    task.deleted = deleted
    db.commit()
    db.refresh(task)
    return task
