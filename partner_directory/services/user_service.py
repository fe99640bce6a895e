# partner_directory/services/user_service.py
import logging
import secrets

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from partner_directory.core.access_context import AccessContext
from partner_directory.core.errors import BadRequestError, ForbiddenError, NotFoundError
from partner_directory.core.policies import EDIT_ALL_USERS, EDIT_USERS, VIEW_ALL_USERS, VIEW_USERS
from partner_directory.core.security import get_password_hash
from partner_directory.models.organization import Organization
from partner_directory.models.user import Role, User, UserStatus

logger = logging.getLogger(__name__)


def get_user_by_email(db: Session, email: str) -> User | None:
    return db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()


def _get_user_row(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def _can_edit_users_of(ctx: AccessContext, organization_id: int) -> bool:
    return ctx.has_policy(EDIT_ALL_USERS) or (
        ctx.has_policy(EDIT_USERS) and ctx.organization_id == organization_id
    )


def get_user(db: Session, ctx: AccessContext, user_id: int) -> User:
    user = _get_user_row(db, user_id)

    allowed = (
        user.id == ctx.user_id
        or ctx.has_policy(VIEW_ALL_USERS)
        or (ctx.has_policy(VIEW_USERS) and user.organization_id == ctx.organization_id)
    )
    if not allowed:
        raise ForbiddenError("You are not allowed to view this user")
    return user


def add_user_to_organization(
    db: Session,
    ctx: AccessContext,
    organization_id: int,
    *,
    full_name: str,
    email: str,
    role: Role = Role.USER,
) -> User:
    """
    Create a new, unverified member of organization_id.

    The account gets a random password nobody knows; it becomes usable
    once the member sets their own password.
    """
    if not _can_edit_users_of(ctx, organization_id):
        raise ForbiddenError("You are not allowed to add users to this organization")

    role = Role(role)
    if role == Role.ROOT and not ctx.has_policy(EDIT_ALL_USERS):
        raise ForbiddenError("You are not allowed to assign the root role")

    if not full_name or not full_name.strip():
        raise BadRequestError("Full name is required")

    organization = db.query(Organization).filter(Organization.id == organization_id).first()
    if not organization:
        raise NotFoundError("Organization not found")

    normalized_email = email.strip().lower()
    if get_user_by_email(db, normalized_email):
        raise BadRequestError("A user with this email already exists")

    user = User(
        organization_id=organization_id,
        email=normalized_email,
        full_name=full_name.strip(),
        hashed_password=get_password_hash(secrets.token_urlsafe(32)),
        role=role,
        status=UserStatus.UNVERIFIED,
    )

    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise BadRequestError("A user with this email already exists") from None
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(user)

    logger.info("User %s added to organization %s by user %s", user.id, organization_id, ctx.user_id)
    return user


def update_user_role(db: Session, ctx: AccessContext, user_id: int, role: Role) -> User:
    """
    Change another user's role.

    - edit-users covers members of the caller's own organization,
      edit-all-users covers everyone.
    - Only edit-all-users may hand out or take away ROOT.
    - Nobody changes their own role.
    """
    role = Role(role)
    user = _get_user_row(db, user_id)

    if user.id == ctx.user_id:
        raise BadRequestError("You cannot change your own role")

    if not _can_edit_users_of(ctx, user.organization_id):
        raise ForbiddenError("You are not allowed to edit this user")

    if role == Role.ROOT and not ctx.has_policy(EDIT_ALL_USERS):
        raise ForbiddenError("You are not allowed to assign the root role")

    if Role(user.role) == Role.ROOT and not ctx.has_policy(EDIT_ALL_USERS):
        raise ForbiddenError("You are not allowed to change the role of a root user")

    if Role(user.role) == role:
        return user

    previous = Role(user.role)
    user.role = role
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        raise
    db.refresh(user)

    logger.info(
        "User %s role changed from %s to %s by user %s",
        user.id,
        previous.value,
        role.value,
        ctx.user_id,
    )
    return user
