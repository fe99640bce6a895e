# partner_directory/api/v1/endpoints/auth.py
from fastapi import APIRouter, Depends
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.orm import Session

from partner_directory.core.access_context import AccessContext
from partner_directory.core.database import get_db
from partner_directory.dependencies.authz import get_access_context
from partner_directory.schemas.auth import TokenResponse
from partner_directory.schemas.user import CurrentUserResponse
from partner_directory.services.auth_service import authenticate_user, issue_access_token_for_user

router = APIRouter()


@router.post("/login", response_model=TokenResponse, tags=["auth"])
def login(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: Session = Depends(get_db),
) -> TokenResponse:
    """
    OAuth2-style login.

    - username: email
    - password: password
    """
    user = authenticate_user(db, email=form_data.username, password=form_data.password)
    token = issue_access_token_for_user(user)
    return TokenResponse(access_token=token)


@router.get("/me", response_model=CurrentUserResponse, tags=["auth"])
def read_current_user(
    ctx: AccessContext = Depends(get_access_context),
) -> CurrentUserResponse:
    """
    Return the current authenticated user and the policies they hold.
    """
    return CurrentUserResponse(
        user_id=ctx.user_id,
        organization_id=ctx.organization_id,
        email=ctx.email,
        role=ctx.role,
        status=ctx.account_status,
        policies=sorted(ctx.policies),
    )
