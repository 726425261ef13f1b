"""Notification boundary for the access-request workflow.

Two events leave the system: a new request (to the profile owner) and an
approval (to the requester). Delivery is best-effort and happens in a
background task after the response is sent; nothing here can fail the
operation that triggered it.
"""
import logging
from datetime import datetime
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from functools import lru_cache
from html import escape
from typing import Optional

import aiosmtplib
import pytz

from app.config import settings
from app.services.clock import as_utc

logger = logging.getLogger(__name__)


class Notifier:
    """Interface used by the lifecycle service. Methods return True when delivered."""

    async def notify_owner_of_request(
        self,
        *,
        owner_email: str,
        owner_name: str,
        profile_type: str,
        requester_name: Optional[str],
        requester_contact: str,
        approval_link: str,
        expires_at: datetime,
    ) -> bool:
        raise NotImplementedError

    async def notify_requester_of_approval(
        self,
        *,
        requester_email: str,
        requester_name: Optional[str],
        access_link: str,
        owner_name: str,
        expires_at: datetime,
    ) -> bool:
        raise NotImplementedError


class EmailNotifier(Notifier):
    """Sends notifications as HTML + plain-text mail over SMTP."""

    def __init__(
        self,
        smtp_host: Optional[str] = None,
        smtp_port: Optional[int] = None,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        use_tls: Optional[bool] = None,
        from_email: Optional[str] = None,
        from_name: Optional[str] = None,
        display_timezone: Optional[str] = None,
    ):
        self.smtp_host = settings.SMTP_HOST if smtp_host is None else smtp_host
        self.smtp_port = smtp_port or settings.SMTP_PORT
        self.smtp_user = settings.SMTP_USER if smtp_user is None else smtp_user
        self.smtp_password = settings.SMTP_PASSWORD if smtp_password is None else smtp_password
        self.use_tls = settings.SMTP_USE_TLS if use_tls is None else use_tls
        self.from_email = from_email or settings.EMAIL_FROM
        self.from_name = from_name or settings.EMAIL_FROM_NAME
        self.tz = pytz.timezone(display_timezone or settings.DISPLAY_TIMEZONE)

    @property
    def is_configured(self) -> bool:
        return bool(self.smtp_host and self.from_email)

    def format_expiry(self, expires_at: datetime) -> str:
        """Render an expiry time in the configured display timezone."""
        return as_utc(expires_at).astimezone(self.tz).strftime("%d %b %Y, %H:%M %Z")

    async def send_email(
        self,
        to_email: str,
        subject: str,
        html_content: str,
        text_content: Optional[str] = None,
    ) -> bool:
        if not self.is_configured:
            logger.warning("Email service not configured, skipping email to %s", to_email)
            return False

        message = MIMEMultipart("alternative")
        message["From"] = f"{self.from_name} <{self.from_email}>"
        message["To"] = to_email
        message["Subject"] = subject
        if text_content:
            message.attach(MIMEText(text_content, "plain"))
        message.attach(MIMEText(html_content, "html"))

        try:
            await aiosmtplib.send(
                message,
                hostname=self.smtp_host,
                port=self.smtp_port,
                username=self.smtp_user or None,
                password=self.smtp_password or None,
                start_tls=self.use_tls,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error("Failed to send email to %s: %s", to_email, e)
            return False

        logger.info("Sent email to %s: %s", to_email, subject)
        return True

    async def notify_owner_of_request(
        self,
        *,
        owner_email: str,
        owner_name: str,
        profile_type: str,
        requester_name: Optional[str],
        requester_contact: str,
        approval_link: str,
        expires_at: datetime,
    ) -> bool:
        expires = self.format_expiry(expires_at)
        requester_line = (
            f"<p><strong>Requester:</strong> {escape(requester_name)}</p>" if requester_name else ""
        )
        html = f"""
        <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">
          <h2>Profile Access Request</h2>
          <p>Hi {escape(owner_name)},</p>
          <p>Someone has requested access to view your QR profile.</p>
          <div style="background: #f8f9fa; border-left: 4px solid #667eea; padding: 16px;">
            <p><strong>Profile:</strong> {escape(profile_type)}</p>
            {requester_line}
            <p><strong>Contact:</strong> {escape(requester_contact)}</p>
            <p><strong>Expires:</strong> {escape(expires)}</p>
          </div>
          <p><a href="{escape(approval_link)}">Review request</a></p>
          <p style="color: #6c757d; font-size: 13px;">Only approve requests you recognize.
          Access expires automatically at the time shown above.</p>
        </div>
        """
        text = (
            f"Hi {owner_name},\n\n"
            "Someone has requested access to view your QR profile.\n\n"
            f"Profile: {profile_type}\n"
            + (f"Requester: {requester_name}\n" if requester_name else "")
            + f"Contact: {requester_contact}\n"
            f"Expires: {expires}\n\n"
            f"Review the request: {approval_link}\n"
        )
        return await self.send_email(owner_email, "Access request for your QR profile", html, text)

    async def notify_requester_of_approval(
        self,
        *,
        requester_email: str,
        requester_name: Optional[str],
        access_link: str,
        owner_name: str,
        expires_at: datetime,
    ) -> bool:
        expires = self.format_expiry(expires_at)
        greeting = f"Hi {requester_name}," if requester_name else "Hi,"
        html = f"""
        <div style="font-family: sans-serif; max-width: 600px; margin: 0 auto;">
          <h2>Access Approved</h2>
          <p>{escape(greeting)}</p>
          <p>{escape(owner_name)} approved your request to view their profile.</p>
          <p><a href="{escape(access_link)}">View profile</a></p>
          <p style="color: #6c757d; font-size: 13px;">This link stops working on {escape(expires)}.</p>
        </div>
        """
        text = (
            f"{greeting}\n\n"
            f"{owner_name} approved your request to view their profile.\n\n"
            f"View profile: {access_link}\n"
            f"This link stops working on {expires}.\n"
        )
        return await self.send_email(requester_email, f"{owner_name} approved your profile access request", html, text)


@lru_cache
def get_notifier() -> Notifier:
    """FastAPI dependency; tests override it with a recording fake."""
    return EmailNotifier()


async def deliver_safely(send, **kwargs) -> None:
    """Background-task entry point: a failed notification is logged, never raised."""
    name = getattr(send, "__name__", repr(send))
    try:
        delivered = await send(**kwargs)
    except Exception:
        logger.exception("Notification %s raised, ignoring", name)
        return
    if not delivered:
        logger.warning("Notification %s was not delivered", name)
