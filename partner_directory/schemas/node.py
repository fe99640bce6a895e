from datetime import datetime

from pydantic import BaseModel


# Loose types on input: values are validated by the service so that
# unknown enum values surface as BadRequestError with a clear message.
class NodeCreate(BaseModel):
    name: str
    type: str
    api_url: str | None = None


class NodeUpdate(BaseModel):
    name: str | None = None
    api_url: str | None = None
    status: str | None = None


class NodeResponse(BaseModel):
    id: int
    organization_id: int
    organization_name: str | None = None
    name: str
    type: str
    api_url: str
    status: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
