"""Role catalogue for the role manager UI."""

from typing import Annotated

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from orientation.api.auth import require_permission
from orientation.core.database import get_db
from orientation.models import Role
from orientation.schemas.auth import CurrentUser
from orientation.schemas.users import RoleOut

router = APIRouter()


@router.get("", response_model=list[RoleOut])
def list_roles(
    _actor: Annotated[CurrentUser, Depends(require_permission("user", "read"))],
    db: Annotated[Session, Depends(get_db)],
) -> list[RoleOut]:
    roles = db.query(Role).order_by(Role.role_key).all()
    return [RoleOut.model_validate(r) for r in roles]
