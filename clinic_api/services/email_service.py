"""
Email Service using SMTP
Sends the clinic's transactional emails; templates live in email_templates
"""
import logging
import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from typing import Any, Mapping

from starlette.concurrency import run_in_threadpool

from clinic_api.config import Settings
from clinic_api.errors import NotificationError
from clinic_api.services.email_templates import ClinicInfo, Scenario, compose_email

logger = logging.getLogger(__name__)

SMTP_TIMEOUT_SECONDS = 30


class EmailService:
    """SMTP notification sender, disabled when credentials are missing"""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.enabled = settings.EMAIL_ENABLED
        self.clinic = ClinicInfo(
            name=settings.CLINIC_NAME,
            email=settings.CLINIC_EMAIL,
            phone=settings.CLINIC_PHONE,
            address=settings.CLINIC_ADDRESS,
        )
        if not self.enabled:
            logger.warning("⚠️ Email service disabled: EMAIL_USER or EMAIL_PASS not configured")

    def _connect(self) -> smtplib.SMTP:
        host, port = self.settings.EMAIL_HOST, self.settings.EMAIL_PORT
        context = ssl.create_default_context()

        if self.settings.EMAIL_SECURE or port == 465:
            server = smtplib.SMTP_SSL(host, port, context=context, timeout=SMTP_TIMEOUT_SECONDS)
        else:
            server = smtplib.SMTP(host, port, timeout=SMTP_TIMEOUT_SECONDS)
            server.starttls(context=context)

        server.login(self.settings.EMAIL_USER, self.settings.EMAIL_PASS)
        return server

    def verify_connection(self) -> bool:
        """Log in once at startup to surface SMTP misconfiguration early"""
        if not self.enabled:
            return False
        try:
            with self._connect():
                pass
            logger.info("✅ Email service connection verified")
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"❌ Email service connection failed: {e}")
            return False

    def _deliver(self, message: MIMEMultipart) -> None:
        with self._connect() as server:
            server.send_message(message)

    async def send(self, scenario: Scenario, payload: Mapping[str, Any]) -> bool:
        """
        Compose and send one email

        Returns:
            True if handed to the SMTP server, False if email is disabled

        Raises:
            smtplib.SMTPException, OSError: on transport failure
        """
        if not self.enabled:
            logger.warning(f"⚠️ Email disabled, skipping {Scenario(scenario).value}")
            return False

        message = compose_email(scenario, payload, self.clinic, self.settings.EMAIL_USER)
        await run_in_threadpool(self._deliver, message)
        logger.info(f"📧 {Scenario(scenario).value} email sent to {message['To']}")
        return True

    async def notify(self, scenario: Scenario, payload: Mapping[str, Any], required: bool = False) -> bool:
        """
        Send an email on behalf of a request handler

        A failed best-effort send is logged and reported as False. A required
        send raises NotificationError so the request fails with a 500.
        """
        try:
            return await self.send(scenario, payload)
        except (smtplib.SMTPException, OSError) as e:
            if required:
                logger.error(f"❌ Failed to send {Scenario(scenario).value} email: {e}")
                raise NotificationError() from e
            logger.warning(f"⚠️ Failed to send {Scenario(scenario).value} email: {e}")
            return False
