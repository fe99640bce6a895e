from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partner_directory.models.base import Base
from partner_directory.models.organization import Organization
from partner_directory.utils.datetime_utils import utc_now


class UserStatus(str, PyEnum):
    UNVERIFIED = "unverified"
    ENABLED = "enabled"
    DISABLED = "disabled"
    DELETED = "deleted"


class Role(str, PyEnum):
    USER = "user"
    ADMINISTRATOR = "administrator"
    ROOT = "root"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class User(Base):
    """
    A member of exactly one organization.

    role only changes through an explicit, policy-checked update
    (see user_service.update_user_role).
    """

    __tablename__ = "users"

    # Primary Key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Foreign Keys
    organization_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    # Authentication
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)

    # Personal Information
    full_name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Authorization
    role: Mapped[Role] = mapped_column(
        Enum(Role, name="user_role_enum", values_callable=_enum_values),
        nullable=False,
        default=Role.USER,
        server_default=text("'user'"),
    )

    # Status
    status: Mapped[UserStatus] = mapped_column(
        Enum(UserStatus, name="user_status_enum", values_callable=_enum_values),
        nullable=False,
        default=UserStatus.UNVERIFIED,
        server_default=text("'unverified'"),
    )
    last_login: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=text("CURRENT_TIMESTAMP"),
        onupdate=utc_now,
    )

    # Relationships
    organization: Mapped["Organization"] = relationship("Organization", backref="users")

    @property
    def organization_name(self) -> str | None:
        return self.organization.name if self.organization else None
