"""Programs: CRUD, lifecycle transitions, membership and cloning."""

import logging
import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import or_
from sqlalchemy.orm import Session

from orientation.core.errors import ConflictError, InvalidInputError
from orientation.core.rbac import HasRoles, has_role
from orientation.models import Program, ProgramMembership, ProgramTemplateLink
from orientation.models.program import PROGRAM_STATUSES
from orientation.services.coerce import normalize_status, optional_int, optional_text
from orientation.services.pagination import Page, normalize_limit, normalize_offset, search_pattern

logger = logging.getLogger(__name__)

# Accepted request keys -> column. ``dept``/``discipline`` are legacy aliases.
_METADATA_ALIASES = {
    "department": "department",
    "dept": "department",
    "discipline_type": "discipline_type",
    "discipline": "discipline_type",
}


def is_program_status(value: object) -> bool:
    return isinstance(value, str) and value in PROGRAM_STATUSES


def clean_program_values(raw: dict[str, Any], *, partial: bool) -> dict[str, Any]:
    """
    Validate a create/update payload.

    Title is required on create. total_weeks must be an integer >= 1.
    Blank description/department/discipline values are stored as null.
    """
    values: dict[str, Any] = {}
    if "title" in raw or not partial:
        title = optional_text(raw.get("title"))
        if title is None:
            raise InvalidInputError("invalid_title")
        values["title"] = title
    if "description" in raw:
        values["description"] = optional_text(raw["description"])
    if "total_weeks" in raw or not partial:
        weeks = optional_int(raw.get("total_weeks"), "invalid_total_weeks")
        if weeks is None or weeks < 1:
            raise InvalidInputError("invalid_total_weeks")
        values["total_weeks"] = weeks
    for key, column in _METADATA_ALIASES.items():
        if key in raw:
            values[column] = optional_text(raw[key])
    if "status" in raw and raw["status"] is not None:
        status = str(raw["status"]).strip().lower()
        if not is_program_status(status):
            raise InvalidInputError("invalid_status")
        values["status"] = status
    return values


def list_programs(
    db: Session,
    limit: object = None,
    offset: object = None,
    include_deleted: bool = False,
    status: str | None = None,
    search: str | None = None,
) -> Page:
    lim = normalize_limit(limit)
    off = normalize_offset(offset)
    q = db.query(Program)
    if not include_deleted:
        q = q.filter(Program.deleted_at.is_(None))
    status = normalize_status(status)
    if is_program_status(status):
        q = q.filter(Program.status == status)
    pattern = search_pattern(search)
    if pattern is not None:
        q = q.filter(
            or_(
                Program.title.ilike(pattern, escape="\\"),
                Program.program_id.ilike(pattern, escape="\\"),
            )
        )
    total = q.count()
    rows = q.order_by(Program.title.asc(), Program.program_id.asc()).limit(lim).offset(off).all()
    return Page(data=rows, total=total, limit=lim, offset=off)


def get_program(db: Session, program_id: str, include_deleted: bool = False) -> Program | None:
    q = db.query(Program).filter(Program.program_id == program_id)
    if not include_deleted:
        q = q.filter(Program.deleted_at.is_(None))
    return q.first()


def is_program_manager(db: Session, user_id: int, program_id: str) -> bool:
    """True if the user holds a manager membership for the program."""
    return (
        db.query(ProgramMembership)
        .filter(
            ProgramMembership.user_id == user_id,
            ProgramMembership.program_id == program_id,
            ProgramMembership.role == "manager",
        )
        .first()
        is not None
    )


def can_manage_program(db: Session, user: HasRoles, user_id: int, program_id: str) -> bool:
    """Admins manage every program; anyone else needs a manager membership."""
    if has_role(user, "admin"):
        return True
    return is_program_manager(db, user_id, program_id)


def add_membership(db: Session, user_id: int, program_id: str, role: str) -> bool:
    """Idempotently add a membership row (not committed). Returns True if created."""
    exists = (
        db.query(ProgramMembership)
        .filter(
            ProgramMembership.user_id == user_id,
            ProgramMembership.program_id == program_id,
            ProgramMembership.role == role,
        )
        .first()
    )
    if exists is not None:
        return False
    db.add(ProgramMembership(user_id=user_id, program_id=program_id, role=role))
    return True


def remove_membership(db: Session, user_id: int, program_id: str, role: str) -> bool:
    """Delete a membership row (not committed). Returns True if one existed."""
    deleted = (
        db.query(ProgramMembership)
        .filter(
            ProgramMembership.user_id == user_id,
            ProgramMembership.program_id == program_id,
            ProgramMembership.role == role,
        )
        .delete(synchronize_session=False)
    )
    return deleted > 0


def list_member_program_ids(db: Session, user_id: int, role: str) -> list[str]:
    rows = (
        db.query(ProgramMembership.program_id)
        .filter(ProgramMembership.user_id == user_id, ProgramMembership.role == role)
        .order_by(ProgramMembership.program_id)
        .all()
    )
    return [program_id for (program_id,) in rows]


def create_program(
    db: Session, values: dict[str, Any], owner_id: int | None, program_id: str | None = None
) -> Program:
    """Create a draft program; the creator becomes owner and a manager member."""
    program_id = optional_text(program_id) or str(uuid.uuid4())
    if db.get(Program, program_id) is not None:
        raise ConflictError("already_exists")
    now = datetime.now(timezone.utc)
    program = Program(
        program_id=program_id,
        status=values.get("status") or "draft",
        created_by=owner_id,
        created_at=now,
        updated_at=now,
        **{k: v for k, v in values.items() if k != "status"},
    )
    db.add(program)
    db.flush()
    if owner_id is not None:
        add_membership(db, owner_id, program_id, "manager")
    db.commit()
    db.refresh(program)
    logger.info("Created program %s owned by user %s", program_id, owner_id)
    return program


def update_program(db: Session, program: Program, values: dict[str, Any]) -> Program:
    if not values:
        return program
    for key, value in values.items():
        setattr(program, key, value)
    program.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(program)
    return program


def set_program_status(db: Session, program: Program, status: str) -> Program:
    """Unconditional lifecycle write; RBAC on the action name is the only gate."""
    if not is_program_status(status):
        raise InvalidInputError("invalid_status")
    previous = program.status
    program.status = status
    program.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(program)
    logger.info("Program %s status %s -> %s", program.program_id, previous, status)
    return program


def restore_program(db: Session, program: Program) -> Program:
    """Back to draft and undeleted."""
    program.status = "draft"
    program.deleted_at = None
    program.updated_at = datetime.now(timezone.utc)
    db.commit()
    db.refresh(program)
    logger.info("Restored program %s", program.program_id)
    return program


def soft_delete_program(db: Session, program: Program) -> Program:
    now = datetime.now(timezone.utc)
    program.deleted_at = now
    program.updated_at = now
    db.commit()
    db.refresh(program)
    logger.info("Soft-deleted program %s", program.program_id)
    return program


def clone_program(
    db: Session,
    source: Program,
    owner_id: int | None,
    new_program_id: str | None = None,
    title: str | None = None,
) -> Program:
    """Copy a program as a new draft together with all of its template links."""
    program_id = optional_text(new_program_id) or str(uuid.uuid4())
    if db.get(Program, program_id) is not None:
        raise ConflictError("already_exists")
    now = datetime.now(timezone.utc)
    clone = Program(
        program_id=program_id,
        title=optional_text(title) or f"{source.title} (copy)",
        description=source.description,
        status="draft",
        total_weeks=source.total_weeks,
        department=source.department,
        discipline_type=source.discipline_type,
        created_by=owner_id,
        created_at=now,
        updated_at=now,
    )
    try:
        db.add(clone)
        db.flush()
        links = (
            db.query(ProgramTemplateLink)
            .filter(ProgramTemplateLink.program_id == source.program_id)
            .all()
        )
        for link in links:
            db.add(
                ProgramTemplateLink(
                    program_id=program_id,
                    template_id=link.template_id,
                    week_number=link.week_number,
                    sort_order=link.sort_order,
                    due_offset_days=link.due_offset_days,
                    required=link.required,
                    visibility=link.visibility,
                    visible=link.visible,
                    notes=link.notes,
                    external_link=link.external_link,
                    type_delivery=link.type_delivery,
                    created_by=owner_id,
                    updated_by=owner_id,
                )
            )
        if owner_id is not None:
            add_membership(db, owner_id, program_id, "manager")
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(clone)
    logger.info(
        "Cloned program %s -> %s with %s link(s)", source.program_id, program_id, len(links)
    )
    return clone
