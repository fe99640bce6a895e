# partner_directory/services/organization_service.py
"""
Organization lookups and the parent/child hierarchy.
"""

import logging

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from partner_directory.core.access_context import AccessContext
from partner_directory.core.credentials import generate_credentials, get_credential_encoder
from partner_directory.core.errors import BadRequestError, ForbiddenError, NotFoundError
from partner_directory.core.policies import (
    EDIT_ALL_ORGANIZATIONS,
    EDIT_OWN_ORGANIZATIONS,
    VIEW_ALL_ORGANIZATIONS,
    VIEW_ALL_USERS,
    VIEW_OWN_ORGANIZATIONS,
    VIEW_USERS,
)
from partner_directory.models.organization import Organization, OrganizationStatus
from partner_directory.models.user import User
from partner_directory.schemas.organization import (
    OrganizationCreate,
    OrganizationResponse,
    OrganizationSelfResponse,
)

logger = logging.getLogger(__name__)


def _subtree_ids(root_id: int):
    """
    Recursive CTE yielding root_id and the id of every transitive child.
    """
    tree = (
        select(Organization.id)
        .where(Organization.id == root_id)
        .cte(name="organization_tree", recursive=True)
    )
    child = aliased(Organization)
    return tree.union_all(select(child.id).where(child.parent_id == tree.c.id))


def get_organization_row(db: Session, organization_id: int) -> Organization:
    organization = db.query(Organization).filter(Organization.id == organization_id).first()
    if not organization:
        raise NotFoundError("Organization not found")
    return organization


def get_organization(
    db: Session,
    ctx: AccessContext,
    organization_id: int,
) -> OrganizationResponse:
    """
    Fetch one organization.

    The caller's own organization comes back with its credentials
    (OrganizationSelfResponse); any other organization never does.
    """
    organization = get_organization_row(db, organization_id)

    is_own = ctx.organization_id == organization.id
    if not is_own and not ctx.has_policy(VIEW_ALL_ORGANIZATIONS):
        raise ForbiddenError("You are not allowed to view this organization")

    if not is_own:
        return OrganizationResponse.model_validate(organization)

    response = OrganizationSelfResponse.model_validate(organization)
    if organization.client_secret:
        response.client_secret = get_credential_encoder().decode(organization.client_secret)
    return response


def list_descendants(db: Session, ctx: AccessContext, parent_id: int) -> list[Organization]:
    """
    parent_id itself plus every organization below it. Order is not defined.
    """
    allowed = ctx.has_policy(VIEW_ALL_ORGANIZATIONS) or (
        ctx.has_policy(VIEW_OWN_ORGANIZATIONS) and ctx.organization_id == parent_id
    )
    if not allowed:
        raise ForbiddenError("You are not allowed to view these organizations")

    get_organization_row(db, parent_id)

    tree = _subtree_ids(parent_id)
    return db.query(Organization).filter(Organization.id.in_(select(tree.c.id))).all()


def is_descendant_or_self(db: Session, ancestor_id: int, candidate_id: int) -> bool:
    """
    True if candidate_id is ancestor_id or sits anywhere below it.
    """
    if ancestor_id == candidate_id:
        return True

    tree = _subtree_ids(ancestor_id)
    row = db.execute(select(tree.c.id).where(tree.c.id == candidate_id).limit(1)).first()
    return row is not None


def create_organization(
    db: Session,
    ctx: AccessContext,
    payload: OrganizationCreate,
) -> Organization:
    """
    Register an organization, optionally below an existing parent.

    Administrators may only add sub-organizations within their own
    hierarchy; top-level organizations need edit-all-organizations.
    """
    if not payload.name or not payload.name.strip():
        raise BadRequestError("Organization name is required")

    if payload.parent_id is not None:
        parent = db.query(Organization).filter(Organization.id == payload.parent_id).first()
        if not parent:
            raise BadRequestError("Parent organization does not exist")

    allowed = ctx.has_policy(EDIT_ALL_ORGANIZATIONS) or (
        ctx.has_policy(EDIT_OWN_ORGANIZATIONS)
        and payload.parent_id is not None
        and is_descendant_or_self(db, ctx.organization_id, payload.parent_id)
    )
    if not allowed:
        raise ForbiddenError("You are not allowed to create this organization")

    credentials = generate_credentials()
    organization = Organization(
        parent_id=payload.parent_id,
        name=payload.name.strip(),
        uri=payload.uri,
        description=payload.description,
        solution_api_url=payload.solution_api_url,
        network_key=payload.network_key,
        client_id=credentials.client_id,
        client_secret=get_credential_encoder().encode(credentials.client_secret),
        status=OrganizationStatus.ACTIVE,
    )

    try:
        db.add(organization)
        db.commit()
        db.refresh(organization)
    except SQLAlchemyError:
        db.rollback()
        raise

    logger.info("Organization %s created (parent=%s) by user %s", organization.id, organization.parent_id, ctx.user_id)
    return organization


def list_members(db: Session, ctx: AccessContext, organization_id: int) -> list[User]:
    allowed = ctx.has_policy(VIEW_ALL_USERS) or (
        ctx.has_policy(VIEW_USERS) and ctx.organization_id == organization_id
    )
    if not allowed:
        raise ForbiddenError("You are not allowed to view members of this organization")

    get_organization_row(db, organization_id)

    return (
        db.query(User)
        .filter(User.organization_id == organization_id)
        .order_by(User.full_name.asc())
        .all()
    )
