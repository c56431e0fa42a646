"""
Email delivery over SMTP.

Builds MIME messages with an HTML body and optional attachments. With
MAIL_ENABLED off, messages are logged and skipped instead of sent.
"""

import html
import smtplib
from dataclasses import dataclass
from email import encoders
from email.mime.base import MIMEBase
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from functools import lru_cache
from typing import Sequence

import structlog

from clausesign.config import get_settings
from clausesign.errors import CollaboratorUnavailable

logger = structlog.get_logger(__name__)

SIGN_REQUEST_SUBJECT = "Please Sign the Contract"
COMPLETED_SUBJECT = "Your Signed Contract"


@dataclass
class MailAttachment:
    filename: str
    content: bytes
    mime_type: str = "application/pdf"


class MailService:
    """SMTP mailer configured from settings."""

    def __init__(self):
        self.settings = get_settings()

    def build_message(
        self,
        to: Sequence[str],
        subject: str,
        html_body: str,
        attachments: Sequence[MailAttachment] = (),
    ) -> MIMEMultipart:
        msg = MIMEMultipart("mixed")
        msg["From"] = self.settings.mail_from
        msg["To"] = ", ".join(to)
        msg["Subject"] = subject
        msg.attach(MIMEText(html_body, "html", "utf-8"))

        for attachment in attachments:
            maintype, _, subtype = attachment.mime_type.partition("/")
            part = MIMEBase(maintype, subtype or "octet-stream")
            part.set_payload(attachment.content)
            encoders.encode_base64(part)
            part.add_header(
                "Content-Disposition", f'attachment; filename="{attachment.filename}"'
            )
            msg.attach(part)
        return msg

    def send_mail(
        self,
        to: str | Sequence[str],
        subject: str,
        html_body: str,
        attachments: Sequence[MailAttachment] = (),
    ) -> bool:
        """
        Send an HTML email.

        Returns:
            True if handed to the SMTP server, False if mail is disabled

        Raises:
            CollaboratorUnavailable: the SMTP server could not be reached or
                refused the message
        """
        recipients = [to] if isinstance(to, str) else list(to)
        msg = self.build_message(recipients, subject, html_body, attachments)

        if not self.settings.mail_enabled:
            logger.info("mail_skipped", to=recipients, subject=subject)
            return False

        try:
            with smtplib.SMTP(
                self.settings.smtp_host,
                self.settings.smtp_port,
                timeout=self.settings.smtp_timeout,
            ) as server:
                if self.settings.smtp_use_tls:
                    server.starttls()
                if self.settings.smtp_user:
                    server.login(self.settings.smtp_user, self.settings.smtp_password)
                server.send_message(msg)
        except (smtplib.SMTPException, OSError) as e:
            logger.error("mail_send_failed", to=recipients, subject=subject, error=str(e))
            raise CollaboratorUnavailable("mail", f"Failed to send email: {e}") from e

        logger.info("mail_sent", to=recipients, subject=subject, attachments=len(attachments))
        return True


def sign_request_html(sign_url: str, title: str, sender_name: str = "") -> str:
    sender = f" from {html.escape(sender_name)}" if sender_name else ""
    return f"""<p>Hello,</p>
<p>You have a contract to sign{sender}: <strong>{html.escape(title)}</strong>.</p>
<p>Please review and sign the contract by clicking the link below:</p>
<p><a href="{html.escape(sign_url, quote=True)}">Sign Contract</a></p>
<p>Thank you.</p>"""


def completed_html(title: str) -> str:
    return f"""<p>Hello,</p>
<p>All parties have signed <strong>{html.escape(title)}</strong>.</p>
<p>The executed contract is attached as a PDF for your records.</p>
<p>Thank you.</p>"""


@lru_cache()
def get_mail_service() -> MailService:
    """Get cached mail service singleton."""
    return MailService()
