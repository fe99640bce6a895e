from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partner_directory.models.base import Base
from partner_directory.utils.datetime_utils import utc_now


class OrganizationStatus(str, PyEnum):
    ACTIVE = "active"
    DISABLED = "disabled"


class Organization(Base):
    """
    A member organization of the directory.

    Organizations form a forest through parent_id. A parent must exist
    before its children are created and parent_id is never updated, so the
    hierarchy cannot contain cycles.
    """

    __tablename__ = "organizations"

    # Primary Key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Hierarchy
    parent_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("organizations.id", ondelete="RESTRICT"),
        nullable=True,
        index=True,
    )

    # Business Identifiers
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    uri: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    solution_api_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Own credentials (client_secret is stored encoded)
    client_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    client_secret: Mapped[str | None] = mapped_column(Text, nullable=True)
    network_key: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Status
    status: Mapped[OrganizationStatus] = mapped_column(
        Enum(OrganizationStatus, name="organization_status_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=OrganizationStatus.ACTIVE,
        server_default=text("'active'"),
    )

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

    parent: Mapped["Organization | None"] = relationship(
        "Organization",
        remote_side="Organization.id",
        back_populates="children",
    )
    children: Mapped[list["Organization"]] = relationship(
        "Organization",
        back_populates="parent",
    )
