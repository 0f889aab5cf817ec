"""Schemas for task templates and their program links."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from orientation.schemas.common import PageMeta


class TemplateOut(BaseModel):
    model_config = {"from_attributes": True}

    template_id: int
    week_number: int | None = None
    label: str
    notes: str | None = None
    due_offset_days: int | None = None
    required: bool | None = None
    visibility: str | None = None
    sort_order: int | None = None
    status: str
    organization: str | None = None
    sub_unit: str | None = None
    discipline_type: str | None = None
    type_delivery: str | None = None
    department: str | None = None
    external_link: str | None = None
    deleted_at: datetime | None = None


class TemplatesPage(BaseModel):
    data: list[TemplateOut]
    meta: PageMeta


class TemplatePayload(BaseModel):
    """
    Create/update body. Fields are loosely typed so that bad values produce
    400 error codes (invalid_week_number, invalid_status, ...) rather than 422.
    """

    model_config = {"extra": "ignore"}

    label: Any = None
    week_number: Any = None
    notes: Any = None
    due_offset_days: Any = None
    required: Any = None
    visibility: Any = None
    sort_order: Any = None
    status: Any = None
    organization: Any = None
    sub_unit: Any = None
    discipline_type: Any = None
    type_delivery: Any = None
    department: Any = None
    external_link: Any = None
    visible: Any = None


class TemplateProgramOut(BaseModel):
    program_id: str
    title: str
    status: str
    deleted_at: datetime | None = None
    linked_at: datetime | None = None


class TemplateProgramsPage(BaseModel):
    data: list[TemplateProgramOut]
    meta: PageMeta


class ProgramTemplateOut(BaseModel):
    """A template as seen through one program: link overrides already applied."""

    template_id: int
    program_id: str
    link_id: int
    label: str
    status: str
    week_number: int | None = None
    sort_order: int | None = None
    due_offset_days: int | None = None
    required: bool | None = None
    visibility: str | None = None
    visible: bool = True
    notes: str | None = None
    external_link: str | None = None
    type_delivery: str | None = None
    organization: str | None = None
    sub_unit: str | None = None
    discipline_type: str | None = None
    department: str | None = None
    deleted_at: datetime | None = None
    linked_at: datetime | None = None
    updated_by: int | None = None


class ProgramTemplatesPage(BaseModel):
    data: list[ProgramTemplateOut]
    meta: PageMeta


class TemplateRef(BaseModel):
    """Body naming a template; accepts template_id or templateId."""

    model_config = {"extra": "ignore"}

    template_id: Any = None
    templateId: Any = None

    def resolved_id(self) -> Any:
        return self.template_id if self.template_id is not None else self.templateId


class AttachResponse(BaseModel):
    attached: bool = True
    alreadyAttached: bool
    template: ProgramTemplateOut


class DetachResponse(BaseModel):
    detached: bool = True
    wasAttached: bool


class MetadataUpdateRequest(BaseModel):
    updates: list[dict[str, Any]] = Field(default_factory=list, max_length=500)


class MetadataUpdateResponse(BaseModel):
    updated: int


class ReorderRequest(BaseModel):
    order: list[Any] = Field(default_factory=list, max_length=1000)


class ReorderResponse(BaseModel):
    reordered: int


class DeletedResponse(BaseModel):
    deleted: bool = True


class RestoredResponse(BaseModel):
    restored: bool = True
