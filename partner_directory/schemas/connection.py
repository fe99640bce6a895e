from datetime import datetime

from pydantic import BaseModel

from partner_directory.models.connection import ConnectionStatus


class ConnectionInvitationCreate(BaseModel):
    from_node_id: int | None = None
    target_node_id: int | None = None
    message: str | None = None


class ConnectionResponse(BaseModel):
    """
    A connection row as stored. client_secret is the encoded form;
    plaintext secrets only travel in ConnectionCredentials.
    """

    id: int
    from_node_id: int
    target_node_id: int
    client_id: str
    client_secret: str
    status: ConnectionStatus
    created_at: datetime
    updated_at: datetime
    expires_at: datetime | None = None

    class Config:
        from_attributes = True


class ConnectionCredentials(BaseModel):
    connection_id: int
    client_id: str
    client_secret: str
