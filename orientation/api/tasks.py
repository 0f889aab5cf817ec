"""Orientation task endpoints with per-field edit rules."""

from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, status
from sqlalchemy.orm import Session

from orientation.api.auth import get_current_user, require_permission
from orientation.api.errors import bad_request, forbidden, not_found
from orientation.api.templates import flag
from orientation.core.database import get_db
from orientation.core.rbac import has_role, is_allowed
from orientation.models import OrientationTask
from orientation.schemas.auth import CurrentUser
from orientation.schemas.tasks import TaskCreate, TaskOut
from orientation.schemas.templates import DeletedResponse
from orientation.services import programs as programs_service
from orientation.services import tasks as tasks_service
from orientation.services import users as users_service

router = APIRouter()


def load_task(db: Session, task_id: int) -> OrientationTask:
    task = tasks_service.get_task(db, task_id)
    if task is None:
        raise not_found("task_not_found")
    return task


def require_task_edit(
    current_user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Editing a task needs task.update or task.assign."""
    perms = current_user.perms
    if not (
        is_allowed(current_user, "update", "task", perms)
        or is_allowed(current_user, "assign", "task", perms)
    ):
        raise forbidden()
    return current_user


def editable_fields(db: Session, actor: CurrentUser, task: OrientationTask) -> set[str]:
    """Canonical field names the actor may change on this task."""
    if tasks_service.can_manage_tasks(db, actor, task.program_id):
        if not is_allowed(actor, "update", "task", actor.perms):
            return set(tasks_service.SCHEDULE_FIELDS)
        return set(tasks_service.TASK_FIELDS)
    if task.user_id == actor.id and has_role(actor, "trainee"):
        return set(tasks_service.OWNER_EDITABLE_FIELDS)
    raise forbidden()


@router.get("", response_model=list[TaskOut])
def list_tasks(
    actor: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
    start: date | None = None,
    end: date | None = None,
    program_id: str | None = None,
    user_id: int | None = None,
    include_deleted: str | None = None,
) -> list[TaskOut]:
    """Managers may filter by user_id; everyone else only sees their own tasks."""
    rows = tasks_service.list_tasks(
        db,
        actor,
        start=start,
        end=end,
        program_id=program_id,
        user_id=user_id,
        include_deleted=flag(include_deleted),
    )
    return [TaskOut.model_validate(t) for t in rows]


@router.post("", response_model=TaskOut, status_code=status.HTTP_201_CREATED)
def create_task(
    body: TaskCreate,
    actor: Annotated[CurrentUser, Depends(require_permission("task", "create"))],
    db: Annotated[Session, Depends(get_db)],
) -> TaskOut:
    """Create a task for yourself, or for another user in a program you manage."""
    raw = body.model_dump(exclude_unset=True)
    owner_id = raw.pop("user_id", None) or actor.id
    values = tasks_service.clean_task_values(raw)
    if owner_id != actor.id and not tasks_service.can_manage_tasks(db, actor, values.get("program_id")):
        raise forbidden()
    owner = users_service.get_user(db, owner_id)
    if owner is None:
        raise not_found("user_not_found")
    return TaskOut.model_validate(tasks_service.create_task(db, owner, values))


@router.patch("/{task_id}", response_model=TaskOut)
def update_task(
    task_id: int,
    actor: Annotated[CurrentUser, Depends(require_task_edit)],
    db: Annotated[Session, Depends(get_db)],
    body: Annotated[dict[str, Any], Body()],
) -> TaskOut:
    """
    Managers of the task's program edit any field, or only the schedule
    (scheduled_for, time) when they hold task.assign without task.update.
    A trainee may only toggle ``done`` on their own task. Any other field in
    the body returns 403.
    """
    task = load_task(db, task_id)
    allowed = editable_fields(db, actor, task)
    for key in body:
        if tasks_service.canonical_field(key) not in allowed:
            raise forbidden()
    new_program = body.get("program_id")
    if (
        "program_id" in body
        and new_program != task.program_id
        and not has_role(actor, "admin", "manager")
        and not (new_program and programs_service.is_program_manager(db, actor.id, new_program))
    ):
        raise forbidden()
    values = tasks_service.clean_task_values(body)
    if not values:
        raise bad_request("no_fields")
    return TaskOut.model_validate(tasks_service.update_task(db, task, values))


@router.delete("/{task_id}", response_model=DeletedResponse)
def delete_task(
    task_id: int,
    actor: Annotated[CurrentUser, Depends(require_permission("task", "delete"))],
    db: Annotated[Session, Depends(get_db)],
) -> DeletedResponse:
    task = load_task(db, task_id)
    if not tasks_service.can_manage_tasks(db, actor, task.program_id):
        raise forbidden()
    tasks_service.set_task_deleted(db, task, True)
    return DeletedResponse()


@router.post("/{task_id}/restore", response_model=TaskOut)
def restore_task(
    task_id: int,
    actor: Annotated[CurrentUser, Depends(get_current_user)],
    db: Annotated[Session, Depends(get_db)],
) -> TaskOut:
    """Owners can bring back their own deleted tasks."""
    task = tasks_service.get_task(db, task_id)
    if task is None or task.user_id != actor.id:
        raise not_found("task_not_found")
    return TaskOut.model_validate(tasks_service.set_task_deleted(db, task, False))
