import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from partner_directory.core.access_context import AccessContext
from partner_directory.core.errors import UnauthorizedError
from partner_directory.core.policies import PolicyRegistry
from partner_directory.core.security import create_access_token, verify_password
from partner_directory.models.user import Role, User, UserStatus
from partner_directory.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)

_REFUSED_STATUSES = (UserStatus.DISABLED, UserStatus.DELETED)


def authenticate_user(db: Session, *, email: str, password: str) -> User:
    """
    Authenticate a user given email and password.

    Disabled and deleted accounts are refused with the same message as a
    wrong password.
    """
    from partner_directory.services.user_service import get_user_by_email

    user = get_user_by_email(db, email)
    if not user or UserStatus(user.status) in _REFUSED_STATUSES:
        raise UnauthorizedError("Invalid email or password")

    if not verify_password(password, user.hashed_password):
        raise UnauthorizedError("Invalid email or password")

    try:
        user.last_login = utc_now()
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.warning("Could not record last login for user %s: %s", user.id, exc, exc_info=True)

    return user


def build_access_context(user: User, registry: PolicyRegistry) -> AccessContext:
    return AccessContext.for_user(user, registry)


def issue_access_token_for_user(user: User) -> str:
    return create_access_token(
        subject=user.id,
        organization_id=user.organization_id,
        role=Role(user.role).value,
    )
