# partner_directory/models/all.py
# Import every model so Base.metadata knows all tables before create_all().
from partner_directory.models.base import Base
from partner_directory.models.organization import Organization, OrganizationStatus
from partner_directory.models.user import Role, User, UserStatus
from partner_directory.models.node import Node, NodeStatus, NodeType
from partner_directory.models.connection import ConnectionStatus, NodeConnection

__all__ = [
    "Base",
    "ConnectionStatus",
    "Node",
    "NodeConnection",
    "NodeStatus",
    "NodeType",
    "Organization",
    "OrganizationStatus",
    "Role",
    "User",
    "UserStatus",
]
