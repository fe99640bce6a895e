# partner_directory/services/node_service.py
"""
Nodes: the API endpoints organizations register in the directory.

Nodes are never deleted; delete_node marks them INACTIVE.
"""

import logging

from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Query, Session, joinedload

from partner_directory.core.access_context import AccessContext
from partner_directory.core.config import get_settings
from partner_directory.core.errors import BadRequestError, ForbiddenError, NotFoundError
from partner_directory.core.list_query import ListQuery, ListResult
from partner_directory.core.policies import (
    EDIT_NODES_ALL_ORGANIZATIONS,
    EDIT_NODES_OWN_ORGANIZATION,
    VIEW_NODES_ALL_ORGANIZATIONS,
    VIEW_NODES_OWN_ORGANIZATION,
    check_access,
)
from partner_directory.models.node import Node, NodeStatus, NodeType
from partner_directory.models.organization import Organization
from partner_directory.schemas.node import NodeCreate, NodeResponse, NodeUpdate

logger = logging.getLogger(__name__)

NODE_SORT_FIELDS = ("name", "type", "status", "created_at", "updated_at")
ALL_NODES_SORT_FIELDS = NODE_SORT_FIELDS + ("organization_id",)

_NODE_TYPES = {t.value for t in NodeType}
_NODE_STATUSES = {s.value for s in NodeStatus}


def can_view_nodes(ctx: AccessContext, organization_id: int) -> bool:
    return ctx.has_policy(VIEW_NODES_ALL_ORGANIZATIONS) or (
        ctx.has_policy(VIEW_NODES_OWN_ORGANIZATION) and ctx.organization_id == organization_id
    )


def can_edit_nodes(ctx: AccessContext, organization_id: int) -> bool:
    return ctx.has_policy(EDIT_NODES_ALL_ORGANIZATIONS) or (
        ctx.has_policy(EDIT_NODES_OWN_ORGANIZATION) and ctx.organization_id == organization_id
    )


def internal_node_api_url(node_id: int) -> str:
    base_url = get_settings().directory_base_url.rstrip("/")
    return f"{base_url}/api/nodes/{node_id}"


def load_node(db: Session, node_id: int) -> Node:
    """
    Fetch a node without any authorization check.

    For callers that authorize by other policies (the connection service
    checks connection policies against the node's organization).
    """
    node = (
        db.query(Node)
        .options(joinedload(Node.organization))
        .filter(Node.id == node_id)
        .first()
    )
    if not node:
        raise NotFoundError("Node not found")
    return node


def get_node(db: Session, ctx: AccessContext, node_id: int) -> Node:
    node = load_node(db, node_id)
    if not can_view_nodes(ctx, node.organization_id):
        raise ForbiddenError("You are not allowed to view this node")
    return node


def create_node(
    db: Session,
    ctx: AccessContext,
    organization_id: int,
    payload: NodeCreate,
) -> Node:
    """
    Register a node for an organization.

    Internal nodes get an api_url built from their own id, so the row is
    flushed first to obtain the id and both writes commit together.
    """
    if not can_edit_nodes(ctx, organization_id):
        raise ForbiddenError("You are not allowed to create nodes for this organization")

    if not payload.name or not payload.name.strip():
        raise BadRequestError("Node name is required")

    if payload.type not in _NODE_TYPES:
        raise BadRequestError('Node type must be either "internal" or "external"')
    node_type = NodeType(payload.type)

    if node_type == NodeType.EXTERNAL:
        if not payload.api_url or not payload.api_url.strip():
            raise BadRequestError("API URL is required for external nodes")
        api_url = payload.api_url.strip()
    else:
        api_url = ""

    organization = db.query(Organization).filter(Organization.id == organization_id).first()
    if not organization:
        raise NotFoundError("Organization not found")

    node = Node(
        organization_id=organization_id,
        name=payload.name.strip(),
        type=node_type,
        api_url=api_url,
        status=NodeStatus.ACTIVE,
    )

    try:
        db.add(node)
        db.flush()  # assign node.id

        if node_type == NodeType.INTERNAL:
            node.api_url = internal_node_api_url(node.id)

        db.commit()
        db.refresh(node)
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("Node %s (%s) created for organization %s", node.id, node_type.value, organization_id)
    return node


def update_node(
    db: Session,
    ctx: AccessContext,
    node_id: int,
    payload: NodeUpdate,
) -> Node:
    node = get_node(db, ctx, node_id)
    if not can_edit_nodes(ctx, node.organization_id):
        raise ForbiddenError("You are not allowed to update this node")

    # Validate everything before touching the row
    name = None
    if payload.name is not None:
        if not payload.name.strip():
            raise BadRequestError("Node name cannot be empty")
        name = payload.name.strip()

    status = None
    if payload.status is not None:
        if payload.status not in _NODE_STATUSES:
            raise BadRequestError("Invalid status value")
        status = NodeStatus(payload.status)

    api_url = None
    if payload.api_url is not None:
        if node.type == NodeType.INTERNAL:
            raise BadRequestError("Cannot change API URL for internal nodes")
        if not payload.api_url.strip():
            raise BadRequestError("API URL cannot be empty for external nodes")
        api_url = payload.api_url.strip()

    if name is not None:
        node.name = name
    if status is not None:
        node.status = status
    if api_url is not None:
        node.api_url = api_url

    try:
        db.commit()
        db.refresh(node)
    except SQLAlchemyError:
        db.rollback()
        raise

    return node


def delete_node(db: Session, ctx: AccessContext, node_id: int) -> None:
    node = get_node(db, ctx, node_id)
    if not can_edit_nodes(ctx, node.organization_id):
        raise ForbiddenError("You are not allowed to delete this node")

    node.status = NodeStatus.INACTIVE
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("Node %s deactivated by user %s", node_id, ctx.user_id)


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


def _apply_filters(q: Query, query: ListQuery) -> Query:
    node_type = query.filter_value("type")
    if node_type:
        if node_type not in _NODE_TYPES:
            raise BadRequestError("Invalid node type filter")
        q = q.filter(Node.type == NodeType(node_type))
    node_status = query.filter_value("status")
    if node_status:
        if node_status not in _NODE_STATUSES:
            raise BadRequestError("Invalid node status filter")
        q = q.filter(Node.status == NodeStatus(node_status))
    return q


def _paginate(q: Query, query: ListQuery, sort_fields: tuple[str, ...]) -> ListResult[NodeResponse]:
    # Count against the filtered query, not the page
    total = q.order_by(None).count()

    sort_by = query.sort_by if query.sort_by in sort_fields else "created_at"
    column = getattr(Node, sort_by)
    if (query.sort_order or "desc") == "asc":
        q = q.order_by(column.asc(), Node.id.asc())
    else:
        q = q.order_by(column.desc(), Node.id.desc())

    rows = q.offset(query.offset).limit(query.limit).all()
    return ListResult[NodeResponse](
        data=[NodeResponse.model_validate(n) for n in rows],
        pagination=query.pagination(total),
    )


def list_nodes(
    db: Session,
    ctx: AccessContext,
    organization_id: int,
    query: ListQuery | None = None,
) -> ListResult[NodeResponse]:
    query = query or ListQuery.default()
    if not can_view_nodes(ctx, organization_id):
        raise ForbiddenError("You are not allowed to view nodes for this organization")

    q = (
        db.query(Node)
        .options(joinedload(Node.organization))
        .filter(Node.organization_id == organization_id)
    )
    q = _apply_filters(q, query)
    if query.search:
        q = q.filter(Node.name.ilike(_like_pattern(query.search), escape="\\"))

    return _paginate(q, query, NODE_SORT_FIELDS)


def list_all_nodes(
    db: Session,
    ctx: AccessContext,
    query: ListQuery | None = None,
) -> ListResult[NodeResponse]:
    query = query or ListQuery.default()
    check_access(ctx, VIEW_NODES_ALL_ORGANIZATIONS)

    q = db.query(Node).join(Organization, Organization.id == Node.organization_id)
    q = _apply_filters(q, query)

    organization_filter = query.filter_value("organization_id")
    if organization_filter:
        try:
            q = q.filter(Node.organization_id == int(organization_filter))
        except ValueError:
            raise BadRequestError("organization_id filter must be an integer") from None

    if query.search:
        term = _like_pattern(query.search)
        q = q.filter(or_(Node.name.ilike(term, escape="\\"), Organization.name.ilike(term, escape="\\")))

    return _paginate(q, query, ALL_NODES_SORT_FIELDS)
