# partner_directory/api/v1/endpoints/nodes.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from partner_directory.core.access_context import AccessContext
from partner_directory.core.database import get_db
from partner_directory.core.list_query import ListQuery, ListResult
from partner_directory.core.policies import VIEW_NODES_ALL_ORGANIZATIONS
from partner_directory.dependencies.authz import get_access_context, get_list_query, require_policy
from partner_directory.schemas.connection import ConnectionResponse
from partner_directory.schemas.node import NodeResponse, NodeUpdate
from partner_directory.services import node_connection_service, node_service

router = APIRouter()


@router.get("", response_model=ListResult[NodeResponse], tags=["nodes"])
def list_all_nodes(
    query: ListQuery = Depends(get_list_query),
    ctx: AccessContext = Depends(require_policy(VIEW_NODES_ALL_ORGANIZATIONS)),
    db: Session = Depends(get_db),
) -> ListResult[NodeResponse]:
    """
    Nodes across every organization.

    search matches node or organization name; filter[organization_id]
    narrows to one organization.
    """
    return node_service.list_all_nodes(db, ctx, query)


@router.get("/{node_id}", response_model=NodeResponse, tags=["nodes"])
def get_node(
    node_id: int,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> NodeResponse:
    return NodeResponse.model_validate(node_service.get_node(db, ctx, node_id))


@router.patch("/{node_id}", response_model=NodeResponse, tags=["nodes"])
def update_node(
    node_id: int,
    payload: NodeUpdate,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> NodeResponse:
    return NodeResponse.model_validate(node_service.update_node(db, ctx, node_id, payload))


@router.delete("/{node_id}", status_code=status.HTTP_204_NO_CONTENT, tags=["nodes"])
def delete_node(
    node_id: int,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> None:
    """
    Soft delete: the node is kept with status "inactive".
    """
    node_service.delete_node(db, ctx, node_id)


@router.get(
    "/{node_id}/invitations",
    response_model=ListResult[ConnectionResponse],
    tags=["nodes", "connections"],
)
def list_invitations(
    node_id: int,
    query: ListQuery = Depends(get_list_query),
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> ListResult[ConnectionResponse]:
    """
    Pending invitations addressed to this node.
    """
    return node_connection_service.list_invitations(db, ctx, node_id, query)


@router.get(
    "/{node_id}/connections",
    response_model=ListResult[ConnectionResponse],
    tags=["nodes", "connections"],
)
def list_connections(
    node_id: int,
    query: ListQuery = Depends(get_list_query),
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> ListResult[ConnectionResponse]:
    """
    Accepted connections this node takes part in, on either side.
    """
    return node_connection_service.list_connections(db, ctx, node_id, query)
