# partner_directory/api/v1/endpoints/users.py
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from partner_directory.core.access_context import AccessContext
from partner_directory.core.database import get_db
from partner_directory.dependencies.authz import get_access_context
from partner_directory.schemas.user import UserResponse, UserRoleUpdate
from partner_directory.services import user_service

router = APIRouter()


@router.get("/{user_id}", response_model=UserResponse, tags=["users"])
def get_user(
    user_id: int,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> UserResponse:
    return UserResponse.model_validate(user_service.get_user(db, ctx, user_id))


@router.patch("/{user_id}/role", response_model=UserResponse, tags=["users"])
def update_user_role(
    user_id: int,
    payload: UserRoleUpdate,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> UserResponse:
    """
    Change a user's role. Assigning "root" requires edit-all-users.
    """
    user = user_service.update_user_role(db, ctx, user_id, payload.role)
    return UserResponse.model_validate(user)
