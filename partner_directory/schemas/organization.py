from datetime import datetime

from pydantic import BaseModel

from partner_directory.models.organization import OrganizationStatus
from partner_directory.models.user import Role, UserStatus


class OrganizationCreate(BaseModel):
    name: str
    uri: str | None = None
    description: str | None = None
    solution_api_url: str | None = None
    network_key: str | None = None
    parent_id: int | None = None


class OrganizationResponse(BaseModel):
    id: int
    parent_id: int | None = None
    name: str
    uri: str | None = None
    description: str | None = None
    solution_api_url: str | None = None
    status: OrganizationStatus
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class OrganizationSelfResponse(OrganizationResponse):
    """
    The caller's own organization, including its credentials.
    Never returned for any other organization.
    """

    client_id: str | None = None
    client_secret: str | None = None
    network_key: str | None = None


class OrganizationMember(BaseModel):
    id: int
    full_name: str
    email: str
    role: Role
    status: UserStatus

    class Config:
        from_attributes = True
