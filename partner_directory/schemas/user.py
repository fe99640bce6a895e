from datetime import datetime

from pydantic import BaseModel, EmailStr

from partner_directory.models.user import Role, UserStatus


class UserAddToOrganization(BaseModel):
    full_name: str
    email: EmailStr
    role: Role = Role.USER


class UserRoleUpdate(BaseModel):
    role: Role


class UserResponse(BaseModel):
    id: int
    organization_id: int
    organization_name: str | None = None
    full_name: str
    email: EmailStr
    role: Role
    status: UserStatus
    last_login: datetime | None = None
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CurrentUserResponse(BaseModel):
    user_id: int
    organization_id: int
    email: EmailStr
    role: Role
    status: UserStatus
    policies: list[str]
