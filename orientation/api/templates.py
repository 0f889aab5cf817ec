"""Task template endpoints: paginated listing, CRUD, soft delete and lifecycle."""

from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from orientation.api.auth import require_permission
from orientation.api.errors import bad_request, not_found
from orientation.core.database import get_db
from orientation.schemas.auth import CurrentUser
from orientation.schemas.common import PageMeta
from orientation.schemas.templates import (
    DeletedResponse,
    RestoredResponse,
    TemplateOut,
    TemplatePayload,
    TemplateProgramOut,
    TemplateProgramsPage,
    TemplatesPage,
)
from orientation.services import program_template_links as links_service
from orientation.services import templates as templates_service
from orientation.services.coerce import normalize_status

router = APIRouter()


_TRUTHY = frozenset({"1", "true", "yes", "y", "on"})


def flag(value: str | None) -> bool:
    """Query-string boolean: 1/true/yes/y/on count as set, anything else does not."""
    return value is not None and value.strip().lower() in _TRUTHY


@router.get("", response_model=TemplatesPage)
def list_templates(
    _user: Annotated[CurrentUser, Depends(require_permission("template", "read"))],
    db: Annotated[Session, Depends(get_db)],
    limit: str | None = None,
    offset: str | None = None,
    include_deleted: str | None = None,
    status: str | None = None,
    search: str | None = None,
) -> TemplatesPage:
    """
    Page through templates (default 25, max 100 per page). Soft-deleted rows
    appear only with include_deleted=true. An unknown status returns 400.
    """
    status = normalize_status(status)
    if status is not None and not templates_service.is_template_status(status):
        raise bad_request("invalid_status")
    page = templates_service.list_templates(
        db,
        limit,
        offset,
        include_deleted=flag(include_deleted),
        status=status,
        search=search,
    )
    return TemplatesPage(
        data=[TemplateOut.model_validate(t) for t in page.data],
        meta=PageMeta(total=page.total, limit=page.limit, offset=page.offset),
    )


@router.post("", response_model=TemplateOut, status_code=status.HTTP_201_CREATED)
def create_template(
    body: TemplatePayload,
    _user: Annotated[CurrentUser, Depends(require_permission("template", "create"))],
    db: Annotated[Session, Depends(get_db)],
) -> TemplateOut:
    values = templates_service.clean_template_values(body.model_dump(exclude_unset=True), partial=False)
    return TemplateOut.model_validate(templates_service.create_template(db, values))


@router.get("/{template_id}", response_model=TemplateOut)
def get_template(
    template_id: int,
    _user: Annotated[CurrentUser, Depends(require_permission("template", "read"))],
    db: Annotated[Session, Depends(get_db)],
    include_deleted: str | None = None,
) -> TemplateOut:
    template = templates_service.get_template(db, template_id, include_deleted=flag(include_deleted))
    if template is None:
        raise not_found("template_not_found")
    return TemplateOut.model_validate(template)


@router.patch("/{template_id}", response_model=TemplateOut)
def update_template(
    template_id: int,
    body: TemplatePayload,
    _user: Annotated[CurrentUser, Depends(require_permission("template", "update"))],
    db: Annotated[Session, Depends(get_db)],
) -> TemplateOut:
    raw = body.model_dump(exclude_unset=True)
    if not raw:
        raise bad_request("no_fields")
    values = templates_service.clean_template_values(raw, partial=True)
    template = templates_service.update_template(db, template_id, values)
    if template is None:
        raise not_found("template_not_found")
    return TemplateOut.model_validate(template)


@router.delete("/{template_id}", response_model=DeletedResponse)
def delete_template(
    template_id: int,
    _user: Annotated[CurrentUser, Depends(require_permission("template", "delete"))],
    db: Annotated[Session, Depends(get_db)],
) -> DeletedResponse:
    """Soft delete; the row stays linked to programs but is hidden from listings."""
    if templates_service.soft_delete_template(db, template_id) is None:
        raise not_found("template_not_found")
    return DeletedResponse()


@router.post("/{template_id}/archive", response_model=DeletedResponse)
def archive_template(
    template_id: int,
    _user: Annotated[CurrentUser, Depends(require_permission("template", "delete"))],
    db: Annotated[Session, Depends(get_db)],
) -> DeletedResponse:
    """Templates have no archived status; archiving soft-deletes them."""
    if templates_service.soft_delete_template(db, template_id) is None:
        raise not_found("template_not_found")
    return DeletedResponse()


@router.post("/{template_id}/restore", response_model=RestoredResponse)
def restore_template(
    template_id: int,
    _user: Annotated[CurrentUser, Depends(require_permission("template", "delete"))],
    db: Annotated[Session, Depends(get_db)],
) -> RestoredResponse:
    if templates_service.restore_template(db, template_id) is None:
        raise not_found("template_not_found")
    return RestoredResponse()


def _transition(db: Session, template_id: int, new_status: str) -> TemplateOut:
    template = templates_service.set_template_status(db, template_id, new_status)
    if template is None:
        raise not_found("template_not_found")
    return TemplateOut.model_validate(template)


@router.post("/{template_id}/publish", response_model=TemplateOut)
def publish_template(
    template_id: int,
    _user: Annotated[CurrentUser, Depends(require_permission("template", "update"))],
    db: Annotated[Session, Depends(get_db)],
) -> TemplateOut:
    return _transition(db, template_id, "published")


@router.post("/{template_id}/deprecate", response_model=TemplateOut)
def deprecate_template(
    template_id: int,
    _user: Annotated[CurrentUser, Depends(require_permission("template", "update"))],
    db: Annotated[Session, Depends(get_db)],
) -> TemplateOut:
    return _transition(db, template_id, "deprecated")


@router.get("/{template_id}/programs", response_model=TemplateProgramsPage)
def list_template_programs(
    template_id: int,
    _user: Annotated[CurrentUser, Depends(require_permission("template", "read"))],
    db: Annotated[Session, Depends(get_db)],
    limit: str | None = None,
    offset: str | None = None,
) -> TemplateProgramsPage:
    """Programs this template is attached to, ordered by title."""
    if templates_service.get_template(db, template_id, include_deleted=True) is None:
        raise not_found("template_not_found")
    page = links_service.list_programs_for_template(db, template_id, limit, offset)
    return TemplateProgramsPage(
        data=[TemplateProgramOut(**row) for row in page.data],
        meta=PageMeta(total=page.total, limit=page.limit, offset=page.offset),
    )
