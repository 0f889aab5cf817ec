"""Shared response pieces: pagination metadata and simple acknowledgements."""

from pydantic import BaseModel, Field


class PageMeta(BaseModel):
    """Pagination metadata returned next to ``data`` by list endpoints."""

    total: int = Field(..., ge=0, description="Rows matching the filters")
    limit: int = Field(..., ge=1, le=100, description="Page size actually applied")
    offset: int = Field(..., ge=0, description="Rows skipped")


class OkResponse(BaseModel):
    ok: bool = True
