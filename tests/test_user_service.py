import pytest
from sqlalchemy.orm import Session

from partner_directory.core.access_context import AccessContext
from partner_directory.core.errors import BadRequestError, ForbiddenError, NotFoundError, UnauthorizedError
from partner_directory.core.security import decode_token
from partner_directory.models.user import Role, User, UserStatus
from partner_directory.services import auth_service, user_service


def test_get_user_visibility(db: Session, directory) -> None:
    # everyone may see themselves
    assert user_service.get_user(db, directory.user1, directory.user1.user_id).email == "user1@example.com"

    assert user_service.get_user(db, directory.admin1, directory.user1.user_id).id == directory.user1.user_id

    with pytest.raises(ForbiddenError):
        user_service.get_user(db, directory.user1, directory.admin1.user_id)
    with pytest.raises(ForbiddenError):
        user_service.get_user(db, directory.admin2, directory.user1.user_id)

    assert user_service.get_user(db, directory.root, directory.user1.user_id).id == directory.user1.user_id

    with pytest.raises(NotFoundError):
        user_service.get_user(db, directory.root, 9999)


def test_add_user_creates_unverified_member(db: Session, directory) -> None:
    user = user_service.add_user_to_organization(
        db,
        directory.admin1,
        directory.o1_id,
        full_name=" New Member ",
        email="New.Member@Example.com",
    )

    assert user.organization_id == directory.o1_id
    assert user.email == "new.member@example.com"
    assert user.full_name == "New Member"
    assert Role(user.role) == Role.USER
    assert UserStatus(user.status) == UserStatus.UNVERIFIED


def test_add_user_rules(db: Session, directory) -> None:
    with pytest.raises(ForbiddenError):
        user_service.add_user_to_organization(
            db, directory.admin1, directory.o2_id, full_name="X", email="x@example.com"
        )

    with pytest.raises(ForbiddenError):
        user_service.add_user_to_organization(
            db, directory.user1, directory.o1_id, full_name="X", email="x@example.com"
        )

    with pytest.raises(ForbiddenError):
        user_service.add_user_to_organization(
            db, directory.admin1, directory.o1_id, full_name="X", email="x@example.com", role=Role.ROOT
        )

    with pytest.raises(BadRequestError):
        user_service.add_user_to_organization(
            db, directory.admin1, directory.o1_id, full_name="Dup", email="USER1@example.com"
        )

    with pytest.raises(NotFoundError):
        user_service.add_user_to_organization(db, directory.root, 9999, full_name="X", email="x@example.com")


def test_update_user_role(db: Session, directory) -> None:
    user = user_service.update_user_role(db, directory.admin1, directory.user1.user_id, Role.ADMINISTRATOR)
    assert Role(user.role) == Role.ADMINISTRATOR

    with pytest.raises(BadRequestError):
        user_service.update_user_role(db, directory.admin1, directory.admin1.user_id, Role.USER)

    with pytest.raises(ForbiddenError):
        user_service.update_user_role(db, directory.admin2, directory.user1.user_id, Role.USER)

    with pytest.raises(ForbiddenError):
        user_service.update_user_role(db, directory.admin1, directory.user1.user_id, Role.ROOT)

    promoted = user_service.update_user_role(db, directory.root, directory.user1.user_id, Role.ROOT)
    assert Role(promoted.role) == Role.ROOT


def test_administrator_cannot_demote_root_in_own_organization(
    db: Session, directory, registry, password_hash: str
) -> None:
    root_org_admin = User(
        organization_id=directory.root_org_id,
        email="rootadmin@example.com",
        full_name="Root Org Admin",
        hashed_password=password_hash,
        role=Role.ADMINISTRATOR,
        status=UserStatus.ENABLED,
    )
    db.add(root_org_admin)
    db.commit()
    ctx = AccessContext.for_user(root_org_admin, registry)

    with pytest.raises(ForbiddenError):
        user_service.update_user_role(db, ctx, directory.root.user_id, Role.USER)

    root_user = db.query(User).filter(User.id == directory.root.user_id).one()
    db.refresh(root_user)
    assert Role(root_user.role) == Role.ROOT

    # members without the root role are still within reach
    member = user_service.add_user_to_organization(
        db, directory.root, directory.root_org_id, full_name="Root Org Member", email="member@example.com"
    )
    updated = user_service.update_user_role(db, ctx, member.id, Role.ADMINISTRATOR)
    assert Role(updated.role) == Role.ADMINISTRATOR


def test_authenticate_user(db: Session, directory, user_password: str) -> None:
    user = auth_service.authenticate_user(db, email="  ADMIN1@example.com", password=user_password)

    assert user.id == directory.admin1.user_id
    assert user.last_login is not None

    with pytest.raises(UnauthorizedError):
        auth_service.authenticate_user(db, email="admin1@example.com", password="wrong")
    with pytest.raises(UnauthorizedError):
        auth_service.authenticate_user(db, email="nobody@example.com", password=user_password)


def test_disabled_user_cannot_authenticate(db: Session, directory, user_password: str) -> None:
    user = db.query(User).filter(User.id == directory.user1.user_id).one()
    user.status = UserStatus.DISABLED
    db.commit()

    with pytest.raises(UnauthorizedError):
        auth_service.authenticate_user(db, email="user1@example.com", password=user_password)


def test_access_token_claims(db: Session, directory, registry) -> None:
    user = db.query(User).filter(User.id == directory.admin2.user_id).one()

    payload = decode_token(auth_service.issue_access_token_for_user(user))

    assert payload["sub"] == str(user.id)
    assert payload["organization_id"] == directory.o2_id
    assert payload["role"] == "administrator"
    assert "exp" in payload

    ctx = auth_service.build_access_context(user, registry)
    assert ctx.policies == registry.policies_for_role(Role.ADMINISTRATOR)
