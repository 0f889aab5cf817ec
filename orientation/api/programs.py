"""Program endpoints: CRUD, lifecycle transitions, cloning and template links."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from orientation.api.auth import require_permission
from orientation.api.errors import bad_request, forbidden, not_found
from orientation.api.templates import flag
from orientation.core.database import get_db
from orientation.core.errors import InvalidInputError
from orientation.models import Program
from orientation.schemas.auth import CurrentUser
from orientation.schemas.common import PageMeta
from orientation.schemas.programs import (
    InstantiateResponse,
    ProgramCloneRequest,
    ProgramOut,
    ProgramPayload,
    ProgramsPage,
)
from orientation.schemas.templates import (
    AttachResponse,
    DeletedResponse,
    DetachResponse,
    MetadataUpdateRequest,
    MetadataUpdateResponse,
    ProgramTemplateOut,
    ProgramTemplatesPage,
    ReorderRequest,
    ReorderResponse,
    RestoredResponse,
    TemplatePayload,
    TemplateRef,
)
from orientation.services import program_template_links as links_service
from orientation.services import programs as programs_service
from orientation.services import tasks as tasks_service
from orientation.services import templates as templates_service
from orientation.services import users as users_service
from orientation.services.coerce import normalize_status, optional_int

router = APIRouter()


def load_program(db: Session, program_id: str, include_deleted: bool = False) -> Program:
    program = programs_service.get_program(db, program_id, include_deleted=include_deleted)
    if program is None:
        raise not_found("program_not_found")
    return program


def ensure_can_manage(db: Session, actor: CurrentUser, program_id: str) -> None:
    """Admins manage any program; others need a manager membership for it."""
    if not programs_service.can_manage_program(db, actor, actor.id, program_id):
        raise forbidden()


def _template_id(ref: TemplateRef) -> int:
    template_id = optional_int(ref.resolved_id(), "invalid_template_id")
    if template_id is None:
        raise InvalidInputError("invalid_template_id")
    return template_id


def _program_template(db: Session, program_id: str, template_id: int) -> ProgramTemplateOut:
    link = links_service.get_link(db, program_id, template_id)
    template = templates_service.get_template(db, template_id, include_deleted=True)
    if link is None or template is None:
        raise not_found("link_not_found")
    return ProgramTemplateOut(**links_service.merge_link(link, template))


@router.get("", response_model=ProgramsPage)
def list_programs(
    _user: Annotated[CurrentUser, Depends(require_permission("program", "read"))],
    db: Annotated[Session, Depends(get_db)],
    limit: str | None = None,
    offset: str | None = None,
    include_deleted: str | None = None,
    status: str | None = None,
    search: str | None = None,
) -> ProgramsPage:
    status = normalize_status(status)
    if status is not None and not programs_service.is_program_status(status):
        raise bad_request("invalid_status")
    page = programs_service.list_programs(
        db,
        limit,
        offset,
        include_deleted=flag(include_deleted),
        status=status,
        search=search,
    )
    return ProgramsPage(
        data=[ProgramOut.model_validate(p) for p in page.data],
        meta=PageMeta(total=page.total, limit=page.limit, offset=page.offset),
    )


@router.post("", response_model=ProgramOut, status_code=status.HTTP_201_CREATED)
def create_program(
    body: ProgramPayload,
    actor: Annotated[CurrentUser, Depends(require_permission("program", "create"))],
    db: Annotated[Session, Depends(get_db)],
) -> ProgramOut:
    """Create a draft program. The creator owns it and becomes a program manager."""
    raw = body.model_dump(exclude_unset=True)
    program_id = raw.pop("program_id", None)
    values = programs_service.clean_program_values(raw, partial=False)
    program = programs_service.create_program(
        db, values, owner_id=actor.id, program_id=str(program_id) if program_id is not None else None
    )
    return ProgramOut.model_validate(program)


@router.get("/{program_id}", response_model=ProgramOut)
def get_program(
    program_id: str,
    _user: Annotated[CurrentUser, Depends(require_permission("program", "read"))],
    db: Annotated[Session, Depends(get_db)],
    include_deleted: str | None = None,
) -> ProgramOut:
    return ProgramOut.model_validate(load_program(db, program_id, flag(include_deleted)))


@router.patch("/{program_id}", response_model=ProgramOut)
def update_program(
    program_id: str,
    body: ProgramPayload,
    actor: Annotated[CurrentUser, Depends(require_permission("program", "update"))],
    db: Annotated[Session, Depends(get_db)],
) -> ProgramOut:
    """
    Edit title, description, total_weeks and metadata (department/dept,
    discipline_type/discipline). Blank metadata is stored as null.
    """
    program = load_program(db, program_id)
    ensure_can_manage(db, actor, program_id)
    raw = body.model_dump(exclude_unset=True)
    raw.pop("program_id", None)
    if not raw:
        raise bad_request("no_fields")
    values = programs_service.clean_program_values(raw, partial=True)
    return ProgramOut.model_validate(programs_service.update_program(db, program, values))


@router.delete("/{program_id}", response_model=DeletedResponse)
def delete_program(
    program_id: str,
    _user: Annotated[CurrentUser, Depends(require_permission("program", "delete"))],
    db: Annotated[Session, Depends(get_db)],
) -> DeletedResponse:
    programs_service.soft_delete_program(db, load_program(db, program_id))
    return DeletedResponse()


@router.post("/{program_id}/publish", response_model=ProgramOut)
def publish_program(
    program_id: str,
    _user: Annotated[CurrentUser, Depends(require_permission("program", "publish"))],
    db: Annotated[Session, Depends(get_db)],
) -> ProgramOut:
    program = programs_service.set_program_status(db, load_program(db, program_id), "published")
    return ProgramOut.model_validate(program)


@router.post("/{program_id}/deprecate", response_model=ProgramOut)
def deprecate_program(
    program_id: str,
    _user: Annotated[CurrentUser, Depends(require_permission("program", "deprecate"))],
    db: Annotated[Session, Depends(get_db)],
) -> ProgramOut:
    program = programs_service.set_program_status(db, load_program(db, program_id), "deprecated")
    return ProgramOut.model_validate(program)


@router.post("/{program_id}/archive", response_model=ProgramOut)
def archive_program(
    program_id: str,
    _user: Annotated[CurrentUser, Depends(require_permission("program", "archive"))],
    db: Annotated[Session, Depends(get_db)],
) -> ProgramOut:
    program = programs_service.set_program_status(db, load_program(db, program_id), "archived")
    return ProgramOut.model_validate(program)


@router.post("/{program_id}/restore", response_model=ProgramOut)
def restore_program(
    program_id: str,
    _user: Annotated[CurrentUser, Depends(require_permission("program", "restore"))],
    db: Annotated[Session, Depends(get_db)],
) -> ProgramOut:
    """Undelete and/or unarchive; the program returns to draft."""
    program = load_program(db, program_id, include_deleted=True)
    return ProgramOut.model_validate(programs_service.restore_program(db, program))


@router.post("/{program_id}/clone", response_model=ProgramOut, status_code=status.HTTP_201_CREATED)
def clone_program(
    program_id: str,
    actor: Annotated[CurrentUser, Depends(require_permission("program", "create"))],
    db: Annotated[Session, Depends(get_db)],
    body: ProgramCloneRequest | None = None,
) -> ProgramOut:
    """Copy the program and all of its template links into a new draft."""
    source = load_program(db, program_id)
    clone = programs_service.clone_program(
        db,
        source,
        owner_id=actor.id,
        new_program_id=body.program_id if body else None,
        title=body.title if body else None,
    )
    return ProgramOut.model_validate(clone)


@router.post("/{program_id}/instantiate", response_model=InstantiateResponse)
def instantiate_for_self(
    program_id: str,
    actor: Annotated[CurrentUser, Depends(require_permission("program", "read"))],
    db: Annotated[Session, Depends(get_db)],
) -> InstantiateResponse:
    """Copy the program's templates into the caller's own task list."""
    user = users_service.get_user(db, actor.id)
    created = tasks_service.instantiate_program(db, user, program_id)
    return InstantiateResponse(created=created)


@router.get("/{program_id}/templates", response_model=ProgramTemplatesPage)
def list_program_templates(
    program_id: str,
    _user: Annotated[CurrentUser, Depends(require_permission("program", "read"))],
    db: Annotated[Session, Depends(get_db)],
    limit: str | None = None,
    offset: str | None = None,
    include_deleted: str | None = None,
    status: str | None = None,
) -> ProgramTemplatesPage:
    """Templates linked to the program; per-program overrides replace template values."""
    load_program(db, program_id, include_deleted=True)
    page = links_service.list_templates_for_program(
        db,
        program_id,
        limit,
        offset,
        include_deleted=flag(include_deleted),
        status=status,
    )
    return ProgramTemplatesPage(
        data=[ProgramTemplateOut(**row) for row in page.data],
        meta=PageMeta(total=page.total, limit=page.limit, offset=page.offset),
    )


@router.post("/{program_id}/templates/attach", response_model=AttachResponse)
def attach_template(
    program_id: str,
    body: TemplateRef,
    actor: Annotated[CurrentUser, Depends(require_permission("template", "update"))],
    db: Annotated[Session, Depends(get_db)],
) -> AttachResponse:
    """Idempotent: attaching an already linked template reports alreadyAttached=true."""
    load_program(db, program_id)
    ensure_can_manage(db, actor, program_id)
    template = templates_service.get_template(db, _template_id(body))
    if template is None:
        raise not_found("template_not_found")
    link, already = links_service.attach(db, program_id, template, user_id=actor.id)
    return AttachResponse(
        attached=True,
        alreadyAttached=already,
        template=ProgramTemplateOut(**links_service.merge_link(link, template)),
    )


@router.post("/{program_id}/templates/detach", response_model=DetachResponse)
def detach_template(
    program_id: str,
    body: TemplateRef,
    actor: Annotated[CurrentUser, Depends(require_permission("template", "update"))],
    db: Annotated[Session, Depends(get_db)],
) -> DetachResponse:
    """Idempotent: detaching an unlinked template reports wasAttached=false."""
    load_program(db, program_id, include_deleted=True)
    ensure_can_manage(db, actor, program_id)
    was_attached = links_service.detach(db, program_id, _template_id(body))
    return DetachResponse(detached=True, wasAttached=was_attached)


def apply_template_metadata(
    program_id: str, body: MetadataUpdateRequest, actor: CurrentUser, db: Session
) -> MetadataUpdateResponse:
    load_program(db, program_id, include_deleted=True)
    ensure_can_manage(db, actor, program_id)
    updated = links_service.apply_metadata_updates(db, program_id, body.updates, user_id=actor.id)
    return MetadataUpdateResponse(updated=updated)


@router.patch("/{program_id}/templates/metadata", response_model=MetadataUpdateResponse)
def update_template_metadata(
    program_id: str,
    body: MetadataUpdateRequest,
    actor: Annotated[CurrentUser, Depends(require_permission("template", "update"))],
    db: Annotated[Session, Depends(get_db)],
) -> MetadataUpdateResponse:
    """Batch-edit per-program overrides; other programs linking the same templates are untouched."""
    return apply_template_metadata(program_id, body, actor, db)


@router.post("/{program_id}/templates/reorder", response_model=ReorderResponse)
def reorder_templates(
    program_id: str,
    body: ReorderRequest,
    actor: Annotated[CurrentUser, Depends(require_permission("template", "update"))],
    db: Annotated[Session, Depends(get_db)],
) -> ReorderResponse:
    """Set sort_order on the program's links to each template's 1-based position in ``order``."""
    load_program(db, program_id)
    ensure_can_manage(db, actor, program_id)
    return ReorderResponse(reordered=links_service.reorder(db, program_id, body.order, user_id=actor.id))


@router.patch("/{program_id}/templates/{template_id}", response_model=ProgramTemplateOut)
def update_program_template(
    program_id: str,
    template_id: int,
    body: TemplatePayload,
    actor: Annotated[CurrentUser, Depends(require_permission("template", "update"))],
    db: Annotated[Session, Depends(get_db)],
) -> ProgramTemplateOut:
    """Edit one template's overrides for this program only."""
    load_program(db, program_id, include_deleted=True)
    ensure_can_manage(db, actor, program_id)
    if links_service.update_link(
        db, program_id, template_id, body.model_dump(exclude_unset=True), user_id=actor.id
    ) is None:
        raise not_found("link_not_found")
    return _program_template(db, program_id, template_id)


@router.post(
    "/{program_id}/templates",
    response_model=ProgramTemplateOut,
    status_code=status.HTTP_201_CREATED,
)
def create_program_template(
    program_id: str,
    body: TemplatePayload,
    actor: Annotated[CurrentUser, Depends(require_permission("template", "create"))],
    db: Annotated[Session, Depends(get_db)],
) -> ProgramTemplateOut:
    """Create a new template already linked to this program."""
    load_program(db, program_id)
    ensure_can_manage(db, actor, program_id)
    raw = body.model_dump(exclude_unset=True)
    values = templates_service.clean_template_values(raw, partial=False)
    link, template = links_service.create_linked_template(
        db, program_id, values, visible=raw.get("visible"), user_id=actor.id
    )
    return ProgramTemplateOut(**links_service.merge_link(link, template))


@router.delete("/{program_id}/templates/{template_id}", response_model=DeletedResponse)
def delete_program_template(
    program_id: str,
    template_id: int,
    actor: Annotated[CurrentUser, Depends(require_permission("template", "delete"))],
    db: Annotated[Session, Depends(get_db)],
) -> DeletedResponse:
    """Soft-delete a template linked to this program; the link itself is kept."""
    load_program(db, program_id, include_deleted=True)
    ensure_can_manage(db, actor, program_id)
    if links_service.soft_delete_linked_template(db, program_id, template_id) is None:
        raise not_found("template_not_found")
    return DeletedResponse()


@router.post("/{program_id}/templates/{template_id}/restore", response_model=RestoredResponse)
def restore_program_template(
    program_id: str,
    template_id: int,
    actor: Annotated[CurrentUser, Depends(require_permission("template", "delete"))],
    db: Annotated[Session, Depends(get_db)],
) -> RestoredResponse:
    load_program(db, program_id, include_deleted=True)
    ensure_can_manage(db, actor, program_id)
    if links_service.restore_linked_template(db, program_id, template_id) is None:
        raise not_found("template_not_found")
    return RestoredResponse()
