# partner_directory/api/v1/endpoints/connections.py
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from partner_directory.core.access_context import AccessContext
from partner_directory.core.database import get_db
from partner_directory.dependencies.authz import get_access_context
from partner_directory.schemas.connection import (
    ConnectionCredentials,
    ConnectionInvitationCreate,
    ConnectionResponse,
)
from partner_directory.services import node_connection_service

router = APIRouter()


@router.post(
    "/invitations",
    response_model=ConnectionResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["connections"],
)
def create_invitation(
    payload: ConnectionInvitationCreate,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> ConnectionResponse:
    """
    Invite target_node_id to connect with from_node_id.

    The response carries the stored (encoded) secret; the plaintext is
    handed out when the invitation is accepted.
    """
    connection = node_connection_service.create_invitation(
        db,
        ctx,
        from_node_id=payload.from_node_id,
        target_node_id=payload.target_node_id,
    )
    return ConnectionResponse.model_validate(connection)


@router.post(
    "/invitations/{invitation_id}/accept",
    response_model=ConnectionCredentials,
    tags=["connections"],
)
def accept_invitation(
    invitation_id: int,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> ConnectionCredentials:
    return node_connection_service.accept_invitation(db, ctx, invitation_id)


@router.post(
    "/invitations/{invitation_id}/reject",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["connections"],
)
def reject_invitation(
    invitation_id: int,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> None:
    node_connection_service.reject_invitation(db, ctx, invitation_id)


@router.delete(
    "/{connection_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["connections"],
)
def remove_connection(
    connection_id: int,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> None:
    node_connection_service.remove_connection(db, ctx, connection_id)


@router.post(
    "/{connection_id}/rotate-credentials",
    response_model=ConnectionCredentials,
    tags=["connections"],
)
def rotate_credentials(
    connection_id: int,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> ConnectionCredentials:
    return node_connection_service.rotate_credentials(db, ctx, connection_id)


@router.get(
    "/{connection_id}/credentials",
    response_model=ConnectionCredentials,
    tags=["connections"],
)
def get_credentials(
    connection_id: int,
    ctx: AccessContext = Depends(get_access_context),
    db: Session = Depends(get_db),
) -> ConnectionCredentials:
    return node_connection_service.get_credentials(db, ctx, connection_id)
