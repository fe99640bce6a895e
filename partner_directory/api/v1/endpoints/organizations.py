# partner_directory/api/v1/endpoints/organizations.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from partner_directory.core.access_context import AccessContext
from partner_directory.core.database import get_db
from partner_directory.core.list_query import ListQuery, ListResult
from partner_directory.dependencies.authz import get_access_context, get_list_query
from partner_directory.schemas.node import NodeCreate, NodeResponse
from partner_directory.schemas.organization import (
    OrganizationCreate,
    OrganizationMember,
    OrganizationResponse,
)
from partner_directory.schemas.user import UserAddToOrganization, UserResponse
from partner_directory.services import node_service, organization_service, user_service

router = APIRouter()


@router.post(
    "",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["organizations"],
)
def create_organization(
    payload: OrganizationCreate,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> OrganizationResponse:
    organization = organization_service.create_organization(db, ctx, payload)
    return OrganizationResponse.model_validate(organization)


@router.get(
    "/{organization_id}",
    response_model=None,
    tags=["organizations"],
)
def get_organization(
    organization_id: int,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> OrganizationResponse:
    """
    One organization. Credentials are included only for the caller's own.
    """
    return organization_service.get_organization(db, ctx, organization_id)


@router.get(
    "/{organization_id}/descendants",
    response_model=list[OrganizationResponse],
    tags=["organizations"],
)
def list_descendants(
    organization_id: int,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> list[OrganizationResponse]:
    organizations = organization_service.list_descendants(db, ctx, organization_id)
    return [OrganizationResponse.model_validate(o) for o in organizations]


@router.get(
    "/{organization_id}/members",
    response_model=list[OrganizationMember],
    tags=["organizations"],
)
def list_members(
    organization_id: int,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> list[OrganizationMember]:
    members = organization_service.list_members(db, ctx, organization_id)
    return [OrganizationMember.model_validate(m) for m in members]


@router.post(
    "/{organization_id}/users",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["organizations"],
)
def add_user(
    organization_id: int,
    payload: UserAddToOrganization,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> UserResponse:
    user = user_service.add_user_to_organization(
        db,
        ctx,
        organization_id,
        full_name=payload.full_name,
        email=payload.email,
        role=payload.role,
    )
    return UserResponse.model_validate(user)


@router.get(
    "/{organization_id}/nodes",
    response_model=ListResult[NodeResponse],
    tags=["organizations", "nodes"],
)
def list_organization_nodes(
    organization_id: int,
    query: ListQuery = Depends(get_list_query),
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> ListResult[NodeResponse]:
    """
    Nodes of one organization.

    Supports page, page_size, search (node name), sort_by, sort_order and
    filter[type] / filter[status].
    """
    return node_service.list_nodes(db, ctx, organization_id, query)


@router.post(
    "/{organization_id}/nodes",
    response_model=NodeResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["organizations", "nodes"],
)
def create_node(
    organization_id: int,
    payload: NodeCreate,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> NodeResponse:
    node = node_service.create_node(db, ctx, organization_id, payload)
    return NodeResponse.model_validate(node)
