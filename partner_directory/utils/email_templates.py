# partner_directory/utils/email_templates.py
from datetime import datetime
from html import escape
from typing import Optional

APP_NAME = "Partner Directory"


def render_email_template(
    title: str,
    body_html: str,
    cta_text: Optional[str] = None,
    cta_url: Optional[str] = None,
    organization_name: Optional[str] = None,
) -> str:
    """
    Render a unified HTML email template with header, body, CTA button, and footer.
    """
    if organization_name:
        header_title = f"{APP_NAME} - {escape(organization_name)}"
    else:
        header_title = APP_NAME

    cta_section = ""
    if cta_text and cta_url:
        cta_section = f"""
        <div style="text-align: center; margin: 30px 0;">
            <a href="{cta_url}" style="
                display: inline-block;
                padding: 12px 30px;
                background-color: #0a0552;
                color: #ffffff;
                text-decoration: none;
                border-radius: 6px;
                font-weight: 600;
            ">{cta_text}</a>
        </div>
        """

    html = f"""
    <!DOCTYPE html>
    <html lang="en">
    <head>
        <meta charset="UTF-8">
        <title>{title}</title>
    </head>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333333; margin: 0; padding: 0;">
        <table role="presentation" style="width: 100%; max-width: 600px; margin: 0 auto; background-color: #ffffff;">
            <tr>
                <td style="padding: 30px; background-color: #0a0552; text-align: center;">
                    <h1 style="color: #ffffff; margin: 0; font-size: 22px;">{header_title}</h1>
                </td>
            </tr>
            <tr>
                <td style="padding: 30px;">
                    <h2 style="color: #0a0552; margin: 0 0 20px 0; font-size: 20px;">{title}</h2>
                    <div style="color: #555555; font-size: 16px;">
                        {body_html}
                    </div>
                    {cta_section}
                </td>
            </tr>
            <tr>
                <td style="padding: 20px; text-align: center; font-size: 12px; color: #888888;">
                    <p style="margin: 0;">&copy; {{{{year}}}} {APP_NAME}. This is an automated message.</p>
                </td>
            </tr>
        </table>
    </body>
    </html>
    """
    return html.replace("{{year}}", str(datetime.now().year))


def render_connection_request_email(
    recipient_name: str,
    target_node_name: str,
    inviting_organization_name: str,
    manage_connections_url: str,
) -> tuple[str, str, str]:
    """
    Render the "connection requested" email.
    Returns (subject, text_body, html_body).
    """
    subject = f"Connection request from {inviting_organization_name}"
    text_body = (
        f"Hello {recipient_name},\n\n"
        f"{inviting_organization_name} has requested to connect with your node "
        f'"{target_node_name}". Please log in to accept or reject the request:\n'
        f"{manage_connections_url}\n"
    )
    body_html = f"""
    <p>Hello {escape(recipient_name)},</p>
    <p><strong>{escape(inviting_organization_name)}</strong> has requested to connect with your node
    <strong>{escape(target_node_name)}</strong>.</p>
    <p>Please log in to accept or reject the request.</p>
    """
    html = render_email_template(
        title="Connection Request",
        body_html=body_html,
        cta_text="Manage connections",
        cta_url=manage_connections_url,
    )
    return subject, text_body, html
