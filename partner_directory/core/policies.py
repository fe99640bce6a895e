# partner_directory/core/policies.py
"""
Role -> policy registry and the access predicates built on it.

The registry is built once at startup (build_policy_registry) and only
read afterwards. Services never look at a caller's role directly; they
check the policy names carried by the AccessContext.
"""

from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Iterable, Literal

from partner_directory.core.errors import ForbiddenError
from partner_directory.models.user import Role

if TYPE_CHECKING:
    from partner_directory.core.access_context import AccessContext


# Users
VIEW_USERS = "view-users"
EDIT_USERS = "edit-users"
VIEW_ALL_USERS = "view-all-users"
EDIT_ALL_USERS = "edit-all-users"

# Organizations
VIEW_OWN_ORGANIZATIONS = "view-own-organizations"
EDIT_OWN_ORGANIZATIONS = "edit-own-organizations"
VIEW_ALL_ORGANIZATIONS = "view-all-organizations"
EDIT_ALL_ORGANIZATIONS = "edit-all-organizations"

# Nodes
VIEW_NODES_OWN_ORGANIZATION = "view-nodes-own-organization"
EDIT_NODES_OWN_ORGANIZATION = "edit-nodes-own-organization"
VIEW_NODES_ALL_ORGANIZATIONS = "view-nodes-all-organizations"
EDIT_NODES_ALL_ORGANIZATIONS = "edit-nodes-all-organizations"

# Node connections
MANAGE_CONNECTIONS_OWN_NODES = "manage-connections-own-nodes"
MANAGE_CONNECTIONS_SUB_ORGANIZATION_NODES = "manage-connections-sub-organization-nodes"
MANAGE_CONNECTIONS_ALL_NODES = "manage-connections-all-nodes"


MatchMode = Literal["any", "all"]


class PolicyRegistry:
    """
    In-memory (role -> set of policy names) table.
    """

    def __init__(self) -> None:
        self._policies: dict[Role, set[str]] = {role: set() for role in Role}

    def register_policy(self, roles: Iterable[Role], policy_name: str) -> None:
        """Associate policy_name with each role. Registering twice has no extra effect."""
        for role in roles:
            self._policies.setdefault(Role(role), set()).add(policy_name)

    def policies_for_role(self, role: Role) -> frozenset[str]:
        return frozenset(self._policies.get(Role(role), ()))

    def has_policy(self, role: Role, policy_name: str) -> bool:
        return policy_name in self._policies.get(Role(role), ())

    def all_policies(self) -> frozenset[str]:
        names: set[str] = set()
        for policies in self._policies.values():
            names |= policies
        return frozenset(names)


def build_policy_registry() -> PolicyRegistry:
    """
    Registers every policy the services check.
    """
    registry = PolicyRegistry()

    registry.register_policy([Role.ADMINISTRATOR, Role.ROOT], VIEW_USERS)
    registry.register_policy([Role.ADMINISTRATOR, Role.ROOT], EDIT_USERS)
    registry.register_policy([Role.ROOT], VIEW_ALL_USERS)
    registry.register_policy([Role.ROOT], EDIT_ALL_USERS)

    registry.register_policy([Role.ADMINISTRATOR], VIEW_OWN_ORGANIZATIONS)
    registry.register_policy([Role.ADMINISTRATOR], EDIT_OWN_ORGANIZATIONS)
    registry.register_policy([Role.ROOT], VIEW_ALL_ORGANIZATIONS)
    registry.register_policy([Role.ROOT], EDIT_ALL_ORGANIZATIONS)

    registry.register_policy([Role.ADMINISTRATOR], VIEW_NODES_OWN_ORGANIZATION)
    registry.register_policy([Role.ADMINISTRATOR], EDIT_NODES_OWN_ORGANIZATION)
    registry.register_policy([Role.ROOT], VIEW_NODES_ALL_ORGANIZATIONS)
    registry.register_policy([Role.ROOT], EDIT_NODES_ALL_ORGANIZATIONS)

    registry.register_policy([Role.ADMINISTRATOR], MANAGE_CONNECTIONS_OWN_NODES)
    registry.register_policy([Role.ADMINISTRATOR], MANAGE_CONNECTIONS_SUB_ORGANIZATION_NODES)
    registry.register_policy([Role.ROOT], MANAGE_CONNECTIONS_ALL_NODES)

    return registry


@lru_cache()
def get_policy_registry() -> PolicyRegistry:
    """
    Process-wide registry, built on first use (normally at app startup).
    """
    return build_policy_registry()


def _as_list(policy: str | Iterable[str]) -> list[str]:
    if isinstance(policy, str):
        return [policy]
    return list(policy)


def has_access(
    context: "AccessContext",
    policy: str | Iterable[str],
    match: MatchMode = "any",
) -> bool:
    """
    True if the context holds any (match="any") or all (match="all") of the
    given policies. An empty list grants access.
    """
    names = _as_list(policy)
    if not names:
        return True
    if match == "all":
        return all(name in context.policies for name in names)
    return any(name in context.policies for name in names)


def check_access(
    context: "AccessContext",
    policy: str | Iterable[str],
    condition: bool = True,
    match: MatchMode = "any",
) -> None:
    """
    Guard clause version of has_access.

    Raises ForbiddenError if the policy check fails or condition is False.
    """
    if not has_access(context, policy, match=match):
        raise ForbiddenError("Access denied")
    if not condition:
        raise ForbiddenError("Access denied")
