from fastapi_mail import FastMail, MessageSchema, ConnectionConfig, MessageType
from jinja2 import Environment, FileSystemLoader, select_autoescape
from pathlib import Path
import logging

from app.config import settings
from app.models.application import ApplicationStatus

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parents[2] / "templates" / "email"

env = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(["html"]),
)

DECISION_TEMPLATES = {
    ApplicationStatus.ACCEPTED.value: ("You're in!", "application_accepted.html"),
    ApplicationStatus.REJECTED.value: ("Your application decision", "application_rejected.html"),
}


def email_enabled() -> bool:
    return bool(settings.EMAIL_HOST)


def _connection(port: int, use_ssl: bool) -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=settings.EMAIL_HOST_USER,
        MAIL_PASSWORD=settings.EMAIL_HOST_PASSWORD,
        MAIL_FROM=settings.EMAIL_FROM,
        MAIL_FROM_NAME=settings.EVENT_NAME,
        MAIL_PORT=port,
        MAIL_SERVER=settings.EMAIL_HOST,
        MAIL_STARTTLS=not use_ssl,
        MAIL_SSL_TLS=use_ssl,
        USE_CREDENTIALS=bool(settings.EMAIL_HOST_USER),
        VALIDATE_CERTS=True,
    )


# 🔁 Central retry wrapper
async def send_email_with_retry(message: MessageSchema, subject: str, to_email: str) -> bool:
    """Try the configured port with STARTTLS first, then implicit SSL on 465"""
    try:
        fm = FastMail(_connection(settings.EMAIL_PORT, use_ssl=False))
        await fm.send_message(message)
        logger.info(f"{subject} email sent to {to_email} via port {settings.EMAIL_PORT}")
        return True
    except Exception as e:
        logger.warning(f"Failed to send {subject} via port {settings.EMAIL_PORT}: {str(e)}")
        try:
            fm = FastMail(_connection(465, use_ssl=True))
            await fm.send_message(message)
            logger.info(f"{subject} email sent to {to_email} via port 465")
            return True
        except Exception as e2:
            logger.error(f"Failed to send {subject} email via both ports: {str(e2)}")
            return False


async def _send(to_email: str, subject: str, template: str, **context) -> bool:
    if not email_enabled():
        logger.info(f"Email disabled, skipping '{subject}' to {to_email}")
        return False
    if not to_email:
        logger.warning(f"No recipient for '{subject}', skipping")
        return False

    html = env.get_template(template).render(event_name=settings.EVENT_NAME, site_url=settings.SITE_URL, **context)
    message = MessageSchema(
        subject=f"{settings.EVENT_NAME} - {subject}",
        recipients=[to_email],
        body=html,
        subtype=MessageType.html,
    )
    return await send_email_with_retry(message, subject, to_email)


async def send_submission_received_email(to_email: str, name: str) -> bool:
    return await _send(to_email, "Application received", "application_received.html", name=name)


async def send_decision_email(to_email: str, name: str, status: str) -> bool:
    """Only final decisions are announced; moving back to review is silent."""
    if status not in DECISION_TEMPLATES:
        return False
    subject, template = DECISION_TEMPLATES[status]
    return await _send(to_email, subject, template, name=name)
