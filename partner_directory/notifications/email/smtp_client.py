# partner_directory/notifications/email/smtp_client.py
import smtplib
from email.message import EmailMessage

from partner_directory.core.config import get_settings


def send_via_smtp(
    from_email: str,
    to_email: str,
    subject: str,
    body: str,
    html_body: str | None = None,
) -> None:
    """
    Minimal SMTP client using Python's standard library.

    It respects:
        - settings.email_smtp_host
        - settings.email_smtp_port
        - settings.email_smtp_username
        - settings.email_smtp_password

    Connection and protocol errors are raised to the caller.
    """
    settings = get_settings()

    msg = EmailMessage()
    msg["From"] = from_email
    msg["To"] = to_email
    msg["Subject"] = subject
    msg.set_content(body)
    if html_body:
        msg.add_alternative(html_body, subtype="html")

    with smtplib.SMTP(settings.email_smtp_host, settings.email_smtp_port) as server:
        server.ehlo()
        try:
            server.starttls()
            server.ehlo()
        except smtplib.SMTPException:
            # TLS not available, continue without it
            pass

        if settings.email_smtp_username and settings.email_smtp_password:
            server.login(settings.email_smtp_username, settings.email_smtp_password)

        server.send_message(msg)
