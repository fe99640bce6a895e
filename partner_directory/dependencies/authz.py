# partner_directory/dependencies/authz.py
from typing import Iterable

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.orm import Session

from partner_directory.core.access_context import AccessContext
from partner_directory.core.config import get_settings
from partner_directory.core.database import get_db
from partner_directory.core.list_query import ListQuery
from partner_directory.core.policies import PolicyRegistry, get_policy_registry, has_access
from partner_directory.core.security import decode_token
from partner_directory.models.user import User, UserStatus

settings = get_settings()

oauth2_scheme = OAuth2PasswordBearer(tokenUrl=f"{settings.api_v1_prefix}/auth/login")


def get_registry(request: Request) -> PolicyRegistry:
    """
    The registry built at startup (app.state), or the process-wide one when
    the app was created without it.
    """
    registry = getattr(request.app.state, "policy_registry", None)
    return registry or get_policy_registry()


def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: Session = Depends(get_db),
) -> User:
    """
    Dependency to retrieve the current user from a JWT bearer token.
    """
    try:
        payload = decode_token(token)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload.get("sub")
    if not user_id or not str(user_id).isdigit():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token payload",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = db.query(User).filter(User.id == int(user_id)).first()
    if not user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="User not found",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return user


def get_access_context(
    current_user: User = Depends(get_current_user),
    registry: PolicyRegistry = Depends(get_registry),
) -> AccessContext:
    """
    AccessContext for the authenticated caller.

    Only ENABLED accounts may act; unverified, disabled and deleted users
    are turned away even with a valid token.
    """
    if UserStatus(current_user.status) != UserStatus.ENABLED:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is not active",
        )
    return AccessContext.for_user(current_user, registry)


def require_policy(policies: str | Iterable[str], match: str = "any"):
    """
    Dependency factory for endpoints guarded by a fixed policy.

    Usage:

    @router.get("/nodes")
    def list_all(ctx: AccessContext = Depends(require_policy(VIEW_NODES_ALL_ORGANIZATIONS))):
        ...

    Returns the AccessContext if the check passes.
    """
    required = [policies] if isinstance(policies, str) else list(policies)

    def dependency(ctx: AccessContext = Depends(get_access_context)) -> AccessContext:
        if not has_access(ctx, required, match=match):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied",
            )
        return ctx

    return dependency


def get_list_query(request: Request) -> ListQuery:
    """
    ListQuery from the query string.

    page, page_size, search, sort_by and sort_order map directly; any
    parameter of the form filter[<key>] becomes a filter.
    """
    params = request.query_params
    filters: dict[str, str | list[str]] = {}
    for key in params.keys():
        if key.startswith("filter[") and key.endswith("]"):
            values = params.getlist(key)
            filters[key[len("filter[") : -1]] = values[0] if len(values) == 1 else values

    return ListQuery.parse(
        {
            "page": params.get("page"),
            "page_size": params.get("page_size"),
            "search": params.get("search"),
            "sort_by": params.get("sort_by"),
            "sort_order": params.get("sort_order"),
            "filters": filters,
        }
    )
