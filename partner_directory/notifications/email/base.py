# partner_directory/notifications/email/base.py
import logging
from typing import Optional

from partner_directory.core.config import get_settings

logger = logging.getLogger(__name__)


def send_email(
    to_email: str,
    subject: str,
    body: str,
    *,
    html_body: Optional[str] = None,
    reason: Optional[str] = None,
) -> None:
    """
    Send one email through SMTP.

    - If email_enabled is False: nothing is sent (logged only).
    - If email_sandbox_mode is True: every email goes to
      EMAIL_TEST_RECIPIENT (or EMAIL_FROM) instead of the real recipient.

    Errors propagate; callers decide whether a failed send matters.
    """
    settings = get_settings()
    debug_reason = f" [{reason}]" if reason else ""

    if not settings.email_enabled:
        logger.info("[EMAIL DISABLED%s] To: %s, Subject: %r", debug_reason, to_email, subject)
        return

    actual_recipient = to_email
    if settings.email_sandbox_mode:
        actual_recipient = str(settings.email_test_recipient or settings.email_from)
        logger.info(
            "[EMAIL SANDBOX%s] Original: %s, Redirected to: %s, Subject: %r",
            debug_reason,
            to_email,
            actual_recipient,
            subject,
        )

    from partner_directory.notifications.email.smtp_client import send_via_smtp

    send_via_smtp(
        from_email=str(settings.email_from),
        to_email=actual_recipient,
        subject=subject,
        body=body,
        html_body=html_body,
    )

    logger.info("[EMAIL SENT%s] To: %s, Subject: %r", debug_reason, actual_recipient, subject)
