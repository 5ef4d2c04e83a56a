"""Operator email: template rendering plus SendGrid or SMTP delivery."""

import logging
import os
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText

from jinja2 import Environment, FileSystemLoader

from fleet.config.settings import get_settings

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), "..", "templates", "email")
_jinja_env = Environment(
    loader=FileSystemLoader(_TEMPLATE_DIR),
    autoescape=True,
)


class EmailSendError(Exception):
    """Raised when email delivery fails."""
    pass


def render_template(name: str, **context) -> str:
    return _jinja_env.get_template(name).render(**context)


def send_email(to_email: str, subject: str, html_body: str, text_body: str | None = None) -> None:
    """Send an email using the configured provider."""
    settings = get_settings()
    if settings.email_provider == "sendgrid" and settings.sendgrid_api_key:
        _send_via_sendgrid(to_email, subject, html_body, text_body, settings)
    else:
        _send_via_smtp(to_email, subject, html_body, text_body, settings)


def _send_via_sendgrid(to_email: str, subject: str, html_body: str, text_body: str | None, settings) -> None:
    try:
        from sendgrid import SendGridAPIClient
        from sendgrid.helpers.mail import Mail, Email, To, Content

        message = Mail(
            from_email=Email(settings.email_from_address, settings.email_from_name),
            to_emails=To(to_email),
            subject=subject,
        )
        if text_body:
            message.add_content(Content("text/plain", text_body))
        message.add_content(Content("text/html", html_body))

        response = SendGridAPIClient(settings.sendgrid_api_key).send(message)
        logger.info("Operator email sent via SendGrid to %s (status=%s)", to_email, response.status_code)
    except Exception as exc:
        logger.exception("SendGrid delivery failed to %s", to_email)
        raise EmailSendError("Email delivery failed") from exc


def _send_via_smtp(to_email: str, subject: str, html_body: str, text_body: str | None, settings) -> None:
    msg = MIMEMultipart("alternative")
    msg["From"] = f"{settings.email_from_name} <{settings.email_from_address}>"
    msg["To"] = to_email
    msg["Subject"] = subject
    if text_body:
        msg.attach(MIMEText(text_body, "plain"))
    msg.attach(MIMEText(html_body, "html"))

    try:
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port) as server:
            if settings.smtp_use_tls:
                server.starttls()
            if settings.smtp_username:
                server.login(settings.smtp_username, settings.smtp_password)
            server.send_message(msg)
        logger.info("Operator email sent via SMTP to %s", to_email)
    except Exception as exc:
        logger.exception("SMTP delivery failed to %s", to_email)
        raise EmailSendError("Email delivery failed") from exc
