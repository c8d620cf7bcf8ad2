"""
Email notifications over SMTP.

`send_email(to, email_type, data)` renders a short plain-text message for
one of the known notification types and delivers it when SMTP is
configured. Delivery problems are logged and reported in the returned
dict; they never propagate to the caller.
"""

from __future__ import annotations

import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Any, Dict, Mapping, Optional

from backoffice.config.settings import settings

logger = logging.getLogger(__name__)


class EmailError(Exception):
    """Raised for unknown notification types or unusable recipients."""
    pass


EMAIL_TEMPLATES: Dict[str, Dict[str, str]] = {
    "welcome": {
        "subject": "Welcome to {app_name}",
        "body": (
            "Hello {name},\n\n"
            "Your account has been created.\n"
            "Username: {username}\nRole: {role}\n\n"
            "Please log in and update your password."
        ),
    },
    "student-admission": {
        "subject": "Student Admission Confirmation",
        "body": (
            "Hello {name},\n\n"
            "Congratulations on your admission!\n"
            "Student ID: {studentId}\nAdmission Date: {admissionDate}"
        ),
    },
    "payment-receipt": {
        "subject": "Payment Receipt - {receiptNumber}",
        "body": (
            "Hello {name},\n\n"
            "Thank you for your payment.\n"
            "Receipt: {receiptNumber}\nAmount: {currency} {amount}\n"
            "Date: {paymentDate}\nMode: {paymentMode}\nStatus: {status}"
        ),
    },
    "certificate-issue": {
        "subject": "Certificate: {courseName}",
        "body": (
            "Hello {name},\n\n"
            "Congratulations on completing {courseName}!\n"
            "Certificate ID: {certificateId}\nIssued: {issuedDate}"
        ),
    },
    "lead-converted": {
        "subject": "Lead Converted: {leadName}",
        "body": "Lead {leadName} was converted to student {studentId}.",
    },
}


class _Defaults(dict):
    def __missing__(self, key: str) -> str:
        return "N/A"


def render_email(email_type: str, data: Mapping[str, Any]) -> Dict[str, str]:
    """
    Render subject and body for a notification type.

    Raises:
        EmailError: unknown notification type
    """
    template = EMAIL_TEMPLATES.get(email_type)
    if template is None:
        raise EmailError(f"Unknown email type: {email_type}")

    values = _Defaults({"app_name": settings.APP_NAME, "currency": settings.CURRENCY})
    values.update({key: value for key, value in data.items() if value is not None})
    return {
        "subject": template["subject"].format_map(values),
        "body": template["body"].format_map(values),
    }


def _smtp_configured() -> bool:
    return bool(settings.EMAIL_ENABLED and settings.SMTP_HOST)


def send_email(to: Optional[str], email_type: str, data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Send a notification email.

    Returns:
        {"success": bool, "message": str}
    """
    if not to:
        logger.info(f"Skipping {email_type} email: no recipient")
        return {"success": False, "message": "No recipient"}

    try:
        rendered = render_email(email_type, data)
    except EmailError as e:
        logger.error(f"Failed to render email: {e}")
        return {"success": False, "message": str(e)}

    if not _smtp_configured():
        logger.info(f"Email not configured; {email_type} email to {to} not sent")
        return {"success": False, "message": "Email is not configured"}

    sender = settings.EMAIL_FROM_ADDRESS or settings.SMTP_USER or ""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = rendered["subject"]
    msg["From"] = formataddr((settings.EMAIL_FROM_NAME, sender))
    msg["To"] = to
    msg.attach(MIMEText(rendered["body"], "plain"))

    try:
        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
            if settings.SMTP_TLS:
                server.starttls()
            if settings.SMTP_USER and settings.SMTP_PASSWORD:
                server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.send_message(msg, to_addrs=[to])
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"Failed to send {email_type} email to {to}: {e}")
        return {"success": False, "message": str(e)}

    logger.info(f"{email_type} email sent to {to}")
    return {"success": True, "message": "Email sent"}
