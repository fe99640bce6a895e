# partner_directory/services/node_connection_service.py
"""
Connection lifecycle between two nodes.

    PENDING --accept--> ACCEPTED --remove--> REJECTED
       |                   |
       +-----reject------> REJECTED      (rotate keeps ACCEPTED)

REJECTED is terminal and rows are never deleted. Only one row may ever
exist per unordered node pair, whatever its status.

Every transition is a single UPDATE guarded by the expected current
status. If it touches no row, another request got there first and the
call fails with ConflictError.

Plaintext client secrets leave this module only from accept_invitation,
rotate_credentials and get_credentials; create_invitation returns the
stored (encoded) form.
"""

import logging

from sqlalchemy import and_, or_, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session

from partner_directory.core.access_context import AccessContext
from partner_directory.core.config import get_settings
from partner_directory.core.credentials import generate_credentials, get_credential_encoder
from partner_directory.core.errors import BadRequestError, ConflictError, ForbiddenError, NotFoundError
from partner_directory.core.list_query import ListQuery, ListResult
from partner_directory.core.policies import (
    MANAGE_CONNECTIONS_ALL_NODES,
    MANAGE_CONNECTIONS_OWN_NODES,
    MANAGE_CONNECTIONS_SUB_ORGANIZATION_NODES,
)
from partner_directory.models.connection import ConnectionStatus, NodeConnection
from partner_directory.models.node import Node
from partner_directory.schemas.connection import ConnectionCredentials, ConnectionResponse
from partner_directory.services.node_service import load_node
from partner_directory.services.notification_service import send_connection_request_notification
from partner_directory.services.organization_service import is_descendant_or_self
from partner_directory.utils.datetime_utils import days_from_now, utc_now

logger = logging.getLogger(__name__)

CONNECTION_SORT_FIELDS = ("created_at", "updated_at", "expires_at", "status")


def can_manage_connections(db: Session, ctx: AccessContext, organization_id: int) -> bool:
    """
    May the caller manage connections of nodes owned by organization_id?
    """
    if ctx.has_policy(MANAGE_CONNECTIONS_ALL_NODES):
        return True
    if ctx.has_policy(MANAGE_CONNECTIONS_OWN_NODES) and ctx.organization_id == organization_id:
        return True
    if ctx.has_policy(MANAGE_CONNECTIONS_SUB_ORGANIZATION_NODES):
        return is_descendant_or_self(db, ctx.organization_id, organization_id)
    return False


def _authorize_node(db: Session, ctx: AccessContext, node: Node, message: str) -> None:
    if not can_manage_connections(db, ctx, node.organization_id):
        raise ForbiddenError(message)


def _get_connection(
    db: Session,
    connection_id: int,
    status: ConnectionStatus | None,
    not_found_message: str,
) -> NodeConnection:
    """
    Load a connection, optionally only if it is currently in `status`.

    A row in any other status is reported as missing, so callers cannot
    tell "never existed" from "already processed".
    """
    q = db.query(NodeConnection).filter(NodeConnection.id == connection_id)
    if status is not None:
        q = q.filter(NodeConnection.status == status)
    connection = q.first()
    if not connection:
        raise NotFoundError(not_found_message)
    return connection


def _transition(
    db: Session,
    connection_id: int,
    expected_status: ConnectionStatus,
    **values,
) -> None:
    """
    UPDATE ... WHERE id = :id AND status = :expected_status, then commit.
    """
    try:
        result = db.execute(
            update(NodeConnection)
            .where(
                NodeConnection.id == connection_id,
                NodeConnection.status == expected_status,
            )
            .values(updated_at=utc_now(), **values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            db.rollback()
            raise ConflictError("Connection was modified by another request")
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise


def _expiry():
    return days_from_now(get_settings().connection_validity_days)


def create_invitation(
    db: Session,
    ctx: AccessContext,
    *,
    from_node_id: int | None,
    target_node_id: int | None,
) -> NodeConnection:
    """
    Invite target_node to connect with from_node.

    Returns the new PENDING row; its client_secret is the encoded form.
    """
    if not from_node_id or not target_node_id:
        raise BadRequestError("Both from_node_id and target_node_id are required")

    if from_node_id == target_node_id:
        raise BadRequestError("Cannot create connection to the same node")

    from_node = load_node(db, from_node_id)
    target_node = load_node(db, target_node_id)

    _authorize_node(db, ctx, from_node, "You are not allowed to create connections from this node")

    existing = (
        db.query(NodeConnection.id)
        .filter(
            or_(
                and_(
                    NodeConnection.from_node_id == from_node_id,
                    NodeConnection.target_node_id == target_node_id,
                ),
                and_(
                    NodeConnection.from_node_id == target_node_id,
                    NodeConnection.target_node_id == from_node_id,
                ),
            )
        )
        .first()
    )
    if existing:
        raise BadRequestError("A connection between these nodes already exists")

    credentials = generate_credentials()
    connection = NodeConnection(
        from_node_id=from_node_id,
        target_node_id=target_node_id,
        pair_low_node_id=min(from_node_id, target_node_id),
        pair_high_node_id=max(from_node_id, target_node_id),
        client_id=credentials.client_id,
        client_secret=get_credential_encoder().encode(credentials.client_secret),
        status=ConnectionStatus.PENDING,
        expires_at=None,
    )

    try:
        db.add(connection)
        db.commit()
    except IntegrityError:
        # A concurrent invitation for the same pair won the unique constraint
        db.rollback()
        raise BadRequestError("A connection between these nodes already exists") from None
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(connection)

    logger.info(
        "Connection %s invited: node %s -> node %s by user %s",
        connection.id,
        from_node_id,
        target_node_id,
        ctx.user_id,
    )

    send_connection_request_notification(db, inviter=ctx, from_node=from_node, target_node=target_node)

    return connection


def _paginate(q: Query, query: ListQuery) -> ListResult[ConnectionResponse]:
    total = q.order_by(None).count()

    sort_by = query.sort_by if query.sort_by in CONNECTION_SORT_FIELDS else "created_at"
    column = getattr(NodeConnection, sort_by)
    if (query.sort_order or "desc") == "asc":
        q = q.order_by(column.asc(), NodeConnection.id.asc())
    else:
        q = q.order_by(column.desc(), NodeConnection.id.desc())

    rows = q.offset(query.offset).limit(query.limit).all()
    return ListResult[ConnectionResponse](
        data=[ConnectionResponse.model_validate(c) for c in rows],
        pagination=query.pagination(total),
    )


def list_invitations(
    db: Session,
    ctx: AccessContext,
    node_id: int,
    query: ListQuery | None = None,
) -> ListResult[ConnectionResponse]:
    """
    Pending invitations addressed to node_id.
    """
    query = query or ListQuery.default()
    node = load_node(db, node_id)
    _authorize_node(db, ctx, node, "You are not allowed to view invitations for this node")

    q = db.query(NodeConnection).filter(
        NodeConnection.target_node_id == node_id,
        NodeConnection.status == ConnectionStatus.PENDING,
    )
    return _paginate(q, query)


def accept_invitation(db: Session, ctx: AccessContext, invitation_id: int) -> ConnectionCredentials:
    invitation = _get_connection(
        db, invitation_id, ConnectionStatus.PENDING, "Invitation not found or already processed"
    )

    target_node = load_node(db, invitation.target_node_id)
    _authorize_node(db, ctx, target_node, "You are not allowed to accept this invitation")

    # Read before the commit below expires the instance
    client_id = invitation.client_id
    encoded_secret = invitation.client_secret

    _transition(
        db,
        invitation_id,
        ConnectionStatus.PENDING,
        status=ConnectionStatus.ACCEPTED,
        expires_at=_expiry(),
    )
    logger.info("Connection %s accepted by user %s", invitation_id, ctx.user_id)

    return ConnectionCredentials(
        connection_id=invitation_id,
        client_id=client_id,
        client_secret=get_credential_encoder().decode(encoded_secret),
    )


def reject_invitation(db: Session, ctx: AccessContext, invitation_id: int) -> None:
    invitation = _get_connection(
        db, invitation_id, ConnectionStatus.PENDING, "Invitation not found or already processed"
    )

    target_node = load_node(db, invitation.target_node_id)
    _authorize_node(db, ctx, target_node, "You are not allowed to reject this invitation")

    _transition(db, invitation_id, ConnectionStatus.PENDING, status=ConnectionStatus.REJECTED)
    logger.info("Connection %s rejected by user %s", invitation_id, ctx.user_id)


def list_connections(
    db: Session,
    ctx: AccessContext,
    node_id: int,
    query: ListQuery | None = None,
) -> ListResult[ConnectionResponse]:
    """
    Accepted connections where node_id is on either side.
    """
    query = query or ListQuery.default()
    node = load_node(db, node_id)
    _authorize_node(db, ctx, node, "You are not allowed to view connections for this node")

    q = db.query(NodeConnection).filter(
        or_(NodeConnection.from_node_id == node_id, NodeConnection.target_node_id == node_id),
        NodeConnection.status == ConnectionStatus.ACCEPTED,
    )
    return _paginate(q, query)


def remove_connection(db: Session, ctx: AccessContext, connection_id: int) -> None:
    """
    Soft-remove a connection (status REJECTED). Either side may remove it.
    """
    connection = _get_connection(db, connection_id, None, "Connection not found")

    from_node = load_node(db, connection.from_node_id)
    target_node = load_node(db, connection.target_node_id)
    allowed = can_manage_connections(db, ctx, from_node.organization_id) or can_manage_connections(
        db, ctx, target_node.organization_id
    )
    if not allowed:
        raise ForbiddenError("You are not allowed to remove this connection")

    current_status = ConnectionStatus(connection.status)
    if current_status == ConnectionStatus.REJECTED:
        return

    _transition(db, connection_id, current_status, status=ConnectionStatus.REJECTED)
    logger.info("Connection %s removed by user %s", connection_id, ctx.user_id)


def rotate_credentials(db: Session, ctx: AccessContext, connection_id: int) -> ConnectionCredentials:
    """
    Issue a new client id/secret for an accepted connection and extend its
    expiry. Only the inviting (from) side may rotate.
    """
    connection = _get_connection(
        db, connection_id, ConnectionStatus.ACCEPTED, "Connection not found or not active"
    )

    from_node = load_node(db, connection.from_node_id)
    _authorize_node(db, ctx, from_node, "You are not allowed to rotate credentials for this connection")

    credentials = generate_credentials()
    _transition(
        db,
        connection_id,
        ConnectionStatus.ACCEPTED,
        client_id=credentials.client_id,
        client_secret=get_credential_encoder().encode(credentials.client_secret),
        expires_at=_expiry(),
    )
    logger.info("Credentials rotated for connection %s by user %s", connection_id, ctx.user_id)

    return ConnectionCredentials(
        connection_id=connection_id,
        client_id=credentials.client_id,
        client_secret=credentials.client_secret,
    )


def get_credentials(db: Session, ctx: AccessContext, connection_id: int) -> ConnectionCredentials:
    """
    Current credentials of an accepted connection, inviting side only.
    """
    connection = _get_connection(
        db, connection_id, ConnectionStatus.ACCEPTED, "Connection not found or not active"
    )

    from_node = load_node(db, connection.from_node_id)
    _authorize_node(db, ctx, from_node, "You are not allowed to view credentials for this connection")

    return ConnectionCredentials(
        connection_id=connection.id,
        client_id=connection.client_id,
        client_secret=get_credential_encoder().decode(connection.client_secret),
    )
