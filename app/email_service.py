"""
Email delivery using custom SMTP (when configured) or Resend
Compiles MJML templates to HTML and hands the message to the transport
"""

import base64
import binascii
import logging
import smtplib
import ssl
from datetime import datetime, timezone
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Optional, Union

import resend
from mjml import mjml_to_html

from . import config

logger = logging.getLogger(__name__)

resend.api_key = config.RESEND_API_KEY

# X-Priority header values by queue priority (1 = highest)
X_PRIORITY = {1: "5", 2: "3", 3: "1", 4: "1"}


class EmailDeliveryError(Exception):
    """The transport did not accept the message; the job may be retried"""


def compile_mjml_to_html(mjml_content: str) -> str:
    """Compile MJML template to production-ready HTML"""
    result = mjml_to_html(mjml_content)
    # mjml_to_html returns a dict with 'html' and 'errors' keys
    if result.get("errors"):
        logger.warning(f"MJML compilation warnings: {result['errors']}")
    return result.get("html", "")


def _as_list(value: Optional[Union[str, list[str]]]) -> list[str]:
    if not value:
        return []
    return [value] if isinstance(value, str) else list(value)


def load_attachment(attachment: dict) -> tuple[str, bytes]:
    """Attachment content is base64 or plain text"""
    filename = attachment["filename"]
    content = attachment.get("content") or ""
    try:
        return filename, base64.b64decode(content, validate=True)
    except (binascii.Error, ValueError):
        return filename, content.encode("utf-8")


def send_via_smtp(
    to: list[str],
    subject: str,
    html_content: str,
    from_address: str,
    cc: Optional[list[str]] = None,
    bcc: Optional[list[str]] = None,
    attachments: Optional[list[dict]] = None,
    priority: int = 2,
) -> dict:
    """Send email via the configured SMTP server"""
    msg = MIMEMultipart("mixed")
    msg["Subject"] = subject
    msg["From"] = from_address
    msg["To"] = ", ".join(to)
    if cc:
        msg["Cc"] = ", ".join(cc)
    msg["X-Priority"] = X_PRIORITY.get(priority, "3")

    msg.attach(MIMEText(html_content, "html"))

    for attachment in attachments or []:
        filename, data = load_attachment(attachment)
        maintype, _, subtype = (attachment.get("content_type") or "application/octet-stream").partition("/")
        part = MIMEBase(maintype, subtype or "octet-stream")
        part.set_payload(data)
        encoders.encode_base64(part)
        part.add_header("Content-Disposition", f'attachment; filename="{filename}"')
        msg.attach(part)

    recipients = to + (cc or []) + (bcc or [])

    try:
        if config.SMTP_PORT == 465:
            context = ssl.create_default_context()
            server = smtplib.SMTP_SSL(config.SMTP_HOST, config.SMTP_PORT, context=context, timeout=30)
        else:
            server = smtplib.SMTP(config.SMTP_HOST, config.SMTP_PORT, timeout=30)
            if config.SMTP_USE_TLS:
                server.starttls(context=ssl.create_default_context())

        with server:
            if config.SMTP_USER:
                server.login(config.SMTP_USER, config.SMTP_PASS or "")
            server.sendmail(from_address.split("<")[-1].rstrip(">"), recipients, msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"❌ SMTP send failed via {config.SMTP_HOST}: {e}")
        raise EmailDeliveryError(f"SMTP failed: {e}") from e

    logger.info(f"✅ SMTP email sent successfully via {config.SMTP_HOST}")
    return {"id": f"smtp-{datetime.now(timezone.utc).timestamp()}", "success": True}


def send_via_resend(
    to: list[str],
    subject: str,
    html_content: str,
    from_address: str,
    cc: Optional[list[str]] = None,
    bcc: Optional[list[str]] = None,
    attachments: Optional[list[dict]] = None,
    priority: int = 2,
) -> dict:
    email_data = {
        "from": from_address,
        "to": to,
        "subject": subject,
        "html": html_content,
        "headers": {"X-Priority": X_PRIORITY.get(priority, "3")},
    }
    if cc:
        email_data["cc"] = cc
    if bcc:
        email_data["bcc"] = bcc
    if attachments:
        email_data["attachments"] = [
            {"filename": filename, "content": list(data)}
            for filename, data in (load_attachment(a) for a in attachments)
        ]

    try:
        logger.info(f"📧 Sending email via Resend to: {to}")
        response = resend.Emails.send(email_data)
    except Exception as e:
        logger.error(f"❌ Email send error to {to}: {e}")
        raise EmailDeliveryError(f"Failed to send email: {e}") from e

    logger.info(f"✅ Email sent successfully via Resend: {response}")
    return response


def send_email(
    to: Union[str, list[str]],
    subject: str,
    mjml_content: str,
    cc: Optional[Union[str, list[str]]] = None,
    bcc: Optional[Union[str, list[str]]] = None,
    attachments: Optional[list[dict]] = None,
    priority: int = 2,
    from_address: Optional[str] = None,
) -> dict:
    """
    Send an email using custom SMTP (if configured) or Resend

    Args:
        to: Recipient email(s)
        subject: Email subject line
        mjml_content: MJML template content (will be compiled to HTML)
        cc, bcc: Optional copy recipients
        attachments: Optional list of attachment dicts (filename, content or path)
        priority: Queue priority, mapped to the X-Priority header
        from_address: Optional custom from address

    Returns:
        Send response dict

    Raises:
        EmailDeliveryError: no transport configured or the transport refused the message
    """
    html_content = compile_mjml_to_html(mjml_content)
    sender = from_address or config.EMAIL_FROM_ADDRESS
    kwargs = dict(
        to=_as_list(to),
        subject=subject,
        html_content=html_content,
        from_address=sender,
        cc=_as_list(cc),
        bcc=_as_list(bcc),
        attachments=attachments,
        priority=priority,
    )

    if config.SMTP_HOST:
        logger.info(f"📧 Sending email via SMTP: {config.SMTP_HOST}")
        return send_via_smtp(**kwargs)

    if not config.RESEND_API_KEY:
        logger.error("❌ No email service configured - RESEND_API_KEY missing and no SMTP_HOST")
        raise EmailDeliveryError("Email service not configured")

    return send_via_resend(**kwargs)
