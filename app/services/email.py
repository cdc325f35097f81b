"""Transactional email over fastapi-mail.

With ``MAIL_SUPPRESS_SEND`` enabled (the default outside production) messages
are rendered and handed to fastapi-mail, which skips the SMTP hop.
"""

import logging
from urllib.parse import urlencode

from fastapi_mail import ConnectionConfig, FastMail, MessageSchema, MessageType

from app.core.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

PRODUCT_NAME = "SaaS Starter"


def build_connection_config(settings: Settings) -> ConnectionConfig:
    return ConnectionConfig(
        MAIL_USERNAME=settings.mail_username,
        MAIL_PASSWORD=settings.mail_password,
        MAIL_FROM=settings.mail_from,
        MAIL_PORT=settings.mail_port,
        MAIL_SERVER=settings.mail_server,
        MAIL_STARTTLS=settings.mail_starttls,
        MAIL_SSL_TLS=False,
        USE_CREDENTIALS=bool(settings.mail_username),
        VALIDATE_CERTS=True,
        SUPPRESS_SEND=1 if settings.mail_suppress_send else 0,
    )


def _layout(title: str, body: str) -> str:
    return (
        "<!DOCTYPE html><html lang=\"en\"><body style=\"font-family: Arial, sans-serif; color: #333;\">"
        f"<h2>{title}</h2>{body}"
        f"<p style=\"font-size: 0.8em; color: #777;\">{PRODUCT_NAME}</p>"
        "</body></html>"
    )


def _button(url: str, label: str) -> str:
    return (
        f"<p><a href=\"{url}\" style=\"display: inline-block; padding: 10px 20px; "
        f"background-color: #007bff; color: #ffffff; text-decoration: none;\">{label}</a></p>"
    )


class EmailService:
    def __init__(self, settings: Settings = default_settings, mailer: FastMail | None = None) -> None:
        self.frontend_url = settings.frontend_url.rstrip("/")
        self.verification_ttl_hours = settings.email_verification_ttl_hours
        self.password_reset_ttl_minutes = settings.password_reset_ttl_minutes
        self.otp_ttl_minutes = settings.otp_ttl_minutes
        self.mailer = mailer or FastMail(build_connection_config(settings))

    def _link(self, path: str, token: str) -> str:
        return f"{self.frontend_url}{path}?{urlencode({'token': token})}"

    async def _send(self, email_to: str, subject: str, html: str) -> None:
        message = MessageSchema(
            subject=subject,
            recipients=[email_to],
            body=html,
            subtype=MessageType.html,
        )
        await self.mailer.send_message(message)
        logger.info("Sent '%s' email", subject)

    async def send_verification_email(self, email_to: str, token: str) -> None:
        url = self._link("/verify-email", token)
        html = _layout(
            "Verify your email address",
            "<p>Confirm your address to finish setting up your account.</p>"
            + _button(url, "Verify email")
            + f"<p>This link expires in {self.verification_ttl_hours} hours.</p>",
        )
        await self._send(email_to, "Verify your email address", html)

    async def send_password_reset_email(self, email_to: str, token: str) -> None:
        url = self._link("/reset-password", token)
        html = _layout(
            "Reset your password",
            "<p>You requested a password reset for your account.</p>"
            + _button(url, "Reset password")
            + f"<p>This link expires in {self.password_reset_ttl_minutes} minutes. "
            "If you did not request a reset, you can ignore this email.</p>",
        )
        await self._send(email_to, "Reset your password", html)

    async def send_otp_email(self, email_to: str, otp: str) -> None:
        html = _layout(
            "Your sign-in code",
            f"<p style=\"font-size: 1.6em; letter-spacing: 4px;\"><strong>{otp}</strong></p>"
            f"<p>The code is valid for {self.otp_ttl_minutes} minutes. Do not share it with anyone.</p>",
        )
        await self._send(email_to, "Your sign-in code", html)
