import pytest

from partner_directory.core.access_context import AccessContext
from partner_directory.core.errors import ForbiddenError
from partner_directory.core.policies import (
    EDIT_ALL_USERS,
    EDIT_USERS,
    MANAGE_CONNECTIONS_ALL_NODES,
    MANAGE_CONNECTIONS_OWN_NODES,
    MANAGE_CONNECTIONS_SUB_ORGANIZATION_NODES,
    VIEW_NODES_ALL_ORGANIZATIONS,
    VIEW_USERS,
    PolicyRegistry,
    check_access,
    has_access,
)
from partner_directory.models.user import Role, UserStatus


def _context(role: Role, policies: set[str]) -> AccessContext:
    return AccessContext(
        user_id=1,
        organization_id=1,
        role=role,
        email="someone@example.com",
        policies=frozenset(policies),
    )


def test_register_policy_is_idempotent() -> None:
    registry = PolicyRegistry()
    registry.register_policy([Role.ADMINISTRATOR], VIEW_USERS)
    registry.register_policy([Role.ADMINISTRATOR], VIEW_USERS)

    assert registry.policies_for_role(Role.ADMINISTRATOR) == frozenset({VIEW_USERS})
    assert registry.has_policy(Role.ADMINISTRATOR, VIEW_USERS)
    assert not registry.has_policy(Role.USER, VIEW_USERS)


def test_unknown_policy_is_never_granted(registry: PolicyRegistry) -> None:
    for role in Role:
        assert not registry.has_policy(role, "launch-rockets")


def test_builtin_registrations(registry: PolicyRegistry) -> None:
    assert registry.policies_for_role(Role.USER) == frozenset()

    admin = registry.policies_for_role(Role.ADMINISTRATOR)
    assert MANAGE_CONNECTIONS_OWN_NODES in admin
    assert MANAGE_CONNECTIONS_SUB_ORGANIZATION_NODES in admin
    assert MANAGE_CONNECTIONS_ALL_NODES not in admin
    assert EDIT_ALL_USERS not in admin

    root = registry.policies_for_role(Role.ROOT)
    assert MANAGE_CONNECTIONS_ALL_NODES in root
    assert VIEW_NODES_ALL_ORGANIZATIONS in root
    assert EDIT_USERS in root
    assert MANAGE_CONNECTIONS_OWN_NODES not in root

    assert MANAGE_CONNECTIONS_ALL_NODES in registry.all_policies()


def test_has_access_any_and_all() -> None:
    ctx = _context(Role.ADMINISTRATOR, {VIEW_USERS, EDIT_USERS})

    assert has_access(ctx, VIEW_USERS)
    assert has_access(ctx, [EDIT_ALL_USERS, EDIT_USERS])
    assert not has_access(ctx, [EDIT_ALL_USERS, EDIT_USERS], match="all")
    assert has_access(ctx, [VIEW_USERS, EDIT_USERS], match="all")
    assert not has_access(ctx, EDIT_ALL_USERS)


def test_empty_policy_list_grants_access() -> None:
    ctx = _context(Role.USER, set())
    assert has_access(ctx, [])
    assert has_access(ctx, [], match="all")


def test_check_access_raises_on_missing_policy_or_false_condition() -> None:
    ctx = _context(Role.ADMINISTRATOR, {VIEW_USERS})

    check_access(ctx, VIEW_USERS)

    with pytest.raises(ForbiddenError):
        check_access(ctx, EDIT_USERS)

    with pytest.raises(ForbiddenError):
        check_access(ctx, VIEW_USERS, condition=False)


def test_context_policies_come_from_registry_not_role(registry: PolicyRegistry) -> None:
    # A root-role context holding no policies is granted nothing
    ctx = _context(Role.ROOT, set())
    assert not has_access(ctx, VIEW_NODES_ALL_ORGANIZATIONS)

    elevated = ctx.with_policies([VIEW_NODES_ALL_ORGANIZATIONS])
    assert has_access(elevated, VIEW_NODES_ALL_ORGANIZATIONS)
    assert ctx.policies == frozenset()
    assert elevated.account_status == UserStatus.ENABLED
