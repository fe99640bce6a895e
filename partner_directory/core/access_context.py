# partner_directory/core/access_context.py
from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import TYPE_CHECKING, Iterable

from partner_directory.models.user import Role, UserStatus

if TYPE_CHECKING:
    from partner_directory.core.policies import PolicyRegistry
    from partner_directory.models.user import User


@dataclass(frozen=True)
class AccessContext:
    """
    The authenticated caller, passed explicitly into every service call.

    - policies: resolved from the role once, when the context is built.
      Services only ever check this set.
    """

    user_id: int
    organization_id: int
    role: Role
    email: str
    account_status: UserStatus = UserStatus.ENABLED
    policies: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def for_user(cls, user: "User", registry: "PolicyRegistry") -> "AccessContext":
        return cls(
            user_id=user.id,
            organization_id=user.organization_id,
            role=Role(user.role),
            email=user.email,
            account_status=UserStatus(user.status),
            policies=registry.policies_for_role(user.role),
        )

    def with_policies(self, extra: Iterable[str]) -> "AccessContext":
        """Elevated copy holding the current policies plus `extra`."""
        return replace(self, policies=self.policies | frozenset(extra))

    def has_policy(self, policy_name: str) -> bool:
        return policy_name in self.policies
