# partner_directory/services/notification_service.py
import logging

from sqlalchemy.orm import Session

from partner_directory.core.access_context import AccessContext
from partner_directory.core.config import get_settings
from partner_directory.models.node import Node
from partner_directory.models.user import Role, User, UserStatus
from partner_directory.notifications.email.base import send_email
from partner_directory.utils.email_templates import render_connection_request_email

logger = logging.getLogger(__name__)


def _connection_request_recipients(db: Session, target_node: Node) -> list[User]:
    return (
        db.query(User)
        .filter(
            User.organization_id == target_node.organization_id,
            User.role == Role.ADMINISTRATOR,
            User.status == UserStatus.ENABLED,
        )
        .all()
    )


def send_connection_request_notification(
    db: Session,
    *,
    inviter: AccessContext,
    from_node: Node,
    target_node: Node,
) -> None:
    """
    Tell the target organization's administrators about a new invitation.

    Fire-and-forget: nothing raised here may fail the invitation, so every
    error is logged and swallowed. When the target organization has no
    enabled administrator the inviter gets the email instead.
    """
    settings = get_settings()
    manage_url = f"{settings.directory_base_url.rstrip('/')}/manage-connections"
    inviting_org_name = "Unknown Organization"
    target_node_name = ""
    recipients: list[tuple[str, str]] = []

    try:
        inviting_org_name = from_node.organization_name or inviting_org_name
        target_node_name = target_node.name
        recipients = [(u.email, u.full_name) for u in _connection_request_recipients(db, target_node)]
    except Exception as exc:
        logger.error("Could not resolve recipients for connection request: %s", exc, exc_info=True)

    if not recipients:
        recipients = [(inviter.email, inviter.email)]

    for email, name in recipients:
        subject = "Connection request"
        try:
            subject, text_body, html_body = render_connection_request_email(
                recipient_name=name,
                target_node_name=target_node_name,
                inviting_organization_name=inviting_org_name,
                manage_connections_url=manage_url,
            )
            send_email(
                to_email=email,
                subject=subject,
                body=text_body,
                html_body=html_body,
                reason="connection-request",
            )
        except Exception as exc:
            logger.error(
                "Failed to send connection request email to %s, Subject: %s, Error: %s",
                email,
                subject,
                exc,
                exc_info=True,
            )
