import logging
import os
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from moviebuzz.core.config import settings

logger = logging.getLogger(__name__)

template_dir = os.path.join(os.path.dirname(__file__), 'email_templates')
env = Environment(loader=FileSystemLoader(template_dir), autoescape=select_autoescape(['html']))


@dataclass
class DeliveryResult:
    """Outcome of handing a code to the contact channel.

    ``fallback_code`` is set when the code could not be delivered and has to
    be shown to the client through the response instead.
    """
    delivered: bool
    fallback_code: Optional[str] = None


def send_email(to_email: str, subject: str, template_name: str, context: dict) -> bool:
    if not settings.smtp_configured:
        logger.info("SMTP not configured, skipping email to %s", to_email)
        return False

    template = env.get_template(template_name)
    html_content = template.render(context)

    msg = MIMEMultipart()
    msg['From'] = formataddr((settings.MAIL_FROM_NAME, settings.SMTP_USER))
    msg['To'] = to_email
    msg['Subject'] = subject
    msg.attach(MIMEText(html_content, 'html'))

    try:
        with smtplib.SMTP(settings.SMTP_SERVER, settings.SMTP_PORT, timeout=settings.SMTP_TIMEOUT) as server:
            server.starttls()
            server.login(settings.SMTP_USER, settings.SMTP_PASSWORD)
            server.sendmail(settings.SMTP_USER, to_email, msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Failed to send email to %s: %s", to_email, e)
        return False

    logger.info("Email '%s' sent to %s", subject, to_email)
    return True


def _fallback(identifier: str, code: str) -> DeliveryResult:
    logger.warning("Verification code not delivered, returning it to the client. %s: %s", identifier, code)
    return DeliveryResult(delivered=False, fallback_code=code)


def send_otp(identifier: str, code: str, display_name: Optional[str] = None, kind: str = "email") -> DeliveryResult:
    """Deliver a verification code, degrading to an in-response code on failure."""
    if kind != "email":
        # No SMS transport is wired up; mobile deployments always show the code.
        return _fallback(identifier, code)

    sent = send_email(
        to_email=identifier,
        subject=f"{settings.MAIL_FROM_NAME} - Your Verification Code",
        template_name="verification.html",
        context={
            "otp": code,
            "username": display_name,
            "expires_minutes": settings.OTP_EXPIRE_MINUTES,
            "brand": settings.MAIL_FROM_NAME,
        },
    )
    if not sent:
        return _fallback(identifier, code)
    return DeliveryResult(delivered=True)


def send_welcome_email(to_email: str, username: str):
    return send_email(
        to_email=to_email,
        subject=f"Welcome to {settings.MAIL_FROM_NAME}!",
        template_name="welcome.html",
        context={"username": username, "brand": settings.MAIL_FROM_NAME}
    )
