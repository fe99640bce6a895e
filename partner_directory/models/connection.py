"""
Node-to-node connections and their client credentials.

Rows are never deleted: removal and rejection both end in REJECTED, so
the table doubles as the audit trail of every pairing.
"""

from datetime import datetime
from enum import Enum as PyEnum

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from partner_directory.models.base import Base
from partner_directory.models.node import Node
from partner_directory.utils.datetime_utils import utc_now


class ConnectionStatus(str, PyEnum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


class NodeConnection(Base):
    """
    Connection between two nodes.

    pair_low_node_id / pair_high_node_id hold the unordered pair as
    (min, max) so the unique constraint covers both directions.
    """

    __tablename__ = "connections"
    __table_args__ = (
        UniqueConstraint("pair_low_node_id", "pair_high_node_id", name="uq_connections_node_pair"),
        CheckConstraint("from_node_id <> target_node_id", name="ck_connections_distinct_nodes"),
    )

    # Primary Key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Foreign Keys
    from_node_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("nodes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    target_node_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("nodes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    pair_low_node_id: Mapped[int] = mapped_column(Integer, nullable=False)
    pair_high_node_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Credentials (client_secret is stored encoded, see core.credentials)
    client_id: Mapped[str] = mapped_column(String(64), nullable=False)
    client_secret: Mapped[str] = mapped_column(Text, nullable=False)

    # Status
    status: Mapped[ConnectionStatus] = mapped_column(
        Enum(ConnectionStatus, name="connection_status_enum", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=ConnectionStatus.PENDING,
        server_default=text("'pending'"),
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
    expires_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    from_node: Mapped["Node"] = relationship("Node", foreign_keys=[from_node_id])
    target_node: Mapped["Node"] = relationship("Node", foreign_keys=[target_node_id])
