import pytest
from sqlalchemy.orm import Session

from partner_directory.core.credentials import AesGcmCredentialEncoder
from partner_directory.core.errors import BadRequestError, ForbiddenError, NotFoundError
from partner_directory.schemas.organization import OrganizationCreate, OrganizationSelfResponse
from partner_directory.services import organization_service


def test_own_organization_includes_decoded_secret(db: Session, directory) -> None:
    response = organization_service.get_organization(db, directory.admin1, directory.o1_id)

    assert isinstance(response, OrganizationSelfResponse)
    assert response.client_secret == directory.o1_client_secret


def test_own_secret_survives_switch_to_aesgcm(db: Session, directory, monkeypatch) -> None:
    monkeypatch.setattr(
        organization_service, "get_credential_encoder", lambda: AesGcmCredentialEncoder("rollout-key")
    )

    response = organization_service.get_organization(db, directory.admin1, directory.o1_id)

    assert response.client_secret == directory.o1_client_secret


def test_other_organization_never_includes_credentials(db: Session, directory) -> None:
    response = organization_service.get_organization(db, directory.root, directory.o1_id)

    assert not isinstance(response, OrganizationSelfResponse)
    assert "client_secret" not in response.model_dump()


def test_admin_cannot_view_foreign_organization(db: Session, directory) -> None:
    with pytest.raises(ForbiddenError):
        organization_service.get_organization(db, directory.admin1, directory.o2_id)


def test_missing_organization(db: Session, directory) -> None:
    with pytest.raises(NotFoundError):
        organization_service.get_organization(db, directory.root, 9999)


def test_list_descendants_includes_self_and_children(db: Session, directory) -> None:
    organizations = organization_service.list_descendants(db, directory.admin1, directory.o1_id)

    assert {o.id for o in organizations} == {directory.o1_id, directory.o1_child_id}


def test_list_descendants_of_foreign_organization_is_forbidden(db: Session, directory) -> None:
    with pytest.raises(ForbiddenError):
        organization_service.list_descendants(db, directory.admin1, directory.o2_id)


def test_is_descendant_or_self(db: Session, directory) -> None:
    assert organization_service.is_descendant_or_self(db, directory.o1_id, directory.o1_id)
    assert organization_service.is_descendant_or_self(db, directory.o1_id, directory.o1_child_id)
    assert not organization_service.is_descendant_or_self(db, directory.o1_child_id, directory.o1_id)
    assert not organization_service.is_descendant_or_self(db, directory.o1_id, directory.o2_id)


def test_descendants_are_transitive(db: Session, directory) -> None:
    grandchild = organization_service.create_organization(
        db,
        directory.admin1,
        OrganizationCreate(name="Org One Lab Annex", parent_id=directory.o1_child_id),
    )

    assert organization_service.is_descendant_or_self(db, directory.o1_id, grandchild.id)
    ids = {o.id for o in organization_service.list_descendants(db, directory.admin1, directory.o1_id)}
    assert grandchild.id in ids


def test_create_organization_issues_encoded_credentials(db: Session, directory) -> None:
    organization = organization_service.create_organization(
        db,
        directory.root,
        OrganizationCreate(name="  Org Three  ", uri="org-three"),
    )

    assert organization.name == "Org Three"
    assert organization.parent_id is None
    assert len(organization.client_id) == 32
    # stored encoded, never the 64-char hex secret itself
    assert len(organization.client_secret) != 64


def test_admin_cannot_create_top_level_or_foreign_child(db: Session, directory) -> None:
    with pytest.raises(ForbiddenError):
        organization_service.create_organization(db, directory.admin1, OrganizationCreate(name="Rogue"))

    with pytest.raises(ForbiddenError):
        organization_service.create_organization(
            db,
            directory.admin1,
            OrganizationCreate(name="Rogue child", parent_id=directory.o2_id),
        )


def test_create_organization_validates_input(db: Session, directory) -> None:
    with pytest.raises(BadRequestError):
        organization_service.create_organization(db, directory.root, OrganizationCreate(name="   "))

    with pytest.raises(BadRequestError):
        organization_service.create_organization(
            db, directory.root, OrganizationCreate(name="Orphan", parent_id=9999)
        )


def test_list_members(db: Session, directory) -> None:
    members = organization_service.list_members(db, directory.admin1, directory.o1_id)
    assert {m.email for m in members} == {"admin1@example.com", "user1@example.com"}

    with pytest.raises(ForbiddenError):
        organization_service.list_members(db, directory.user1, directory.o1_id)

    with pytest.raises(ForbiddenError):
        organization_service.list_members(db, directory.admin1, directory.o2_id)
