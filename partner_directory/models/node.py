from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text, text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partner_directory.models.base import Base
from partner_directory.models.organization import Organization
from partner_directory.utils.datetime_utils import utc_now


class NodeType(str, PyEnum):
    INTERNAL = "internal"
    EXTERNAL = "external"


class NodeStatus(str, PyEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    PENDING = "pending"


class Node(Base):
    """
    An API endpoint owned by one organization. Connections are made
    between nodes, not between organizations.

    - internal: api_url is generated from the node id and never changes.
    - external: api_url is supplied by the owner and may be edited.
    """

    __tablename__ = "nodes"

    # Primary Key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Foreign Keys
    organization_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("organizations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    type: Mapped[NodeType] = mapped_column(
        Enum(NodeType, name="node_type_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        index=True,
    )
    api_url: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Status
    status: Mapped[NodeStatus] = mapped_column(
        Enum(NodeStatus, name="node_status_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=NodeStatus.ACTIVE,
        server_default=text("'active'"),
        index=True,
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

    organization: Mapped["Organization"] = relationship("Organization", backref="nodes")

    @property
    def organization_name(self) -> str | None:
        return self.organization.name if self.organization else None
