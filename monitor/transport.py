"""
SMTP transport for notification delivery.

The transport is created once at start-up from a connection string of the
form ``smtp[s]://[user[:password]@]host[:port][?starttls=true]`` and keeps a
single SMTP session open for the lifetime of the process.
"""

import asyncio
import smtplib
from email.message import EmailMessage
from email.utils import make_msgid
from typing import Optional
from urllib.parse import parse_qs, unquote, urlparse

import structlog
from pydantic import BaseModel, Field

from monitor.exceptions import TransportConfigError
from monitor.models import DeliveryReceipt

logger = structlog.get_logger(__name__)

DEFAULT_PORTS = {"smtp": 25, "smtps": 465}


class SmtpSettings(BaseModel):
    """Connection parameters parsed from an SMTP connection string."""
    host: str = Field(..., description="SMTP server host")
    port: int = Field(..., ge=1, le=65535)
    use_ssl: bool = Field(default=False, description="Implicit TLS (smtps)")
    starttls: bool = Field(default=False, description="Upgrade with STARTTLS")
    username: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)
    timeout: float = Field(default=30.0)

    @classmethod
    def from_url(cls, smtp_string: str) -> "SmtpSettings":
        """
        Parse an SMTP connection string.

        Raises:
            TransportConfigError: If the string is not a usable SMTP URL
        """
        parsed = urlparse(smtp_string)
        scheme = parsed.scheme.lower()
        if scheme not in DEFAULT_PORTS:
            raise TransportConfigError(
                f"Unsupported SMTP scheme '{parsed.scheme}', expected smtp or smtps"
            )
        if not parsed.hostname:
            raise TransportConfigError("SMTP connection string has no host")

        try:
            port = parsed.port or DEFAULT_PORTS[scheme]
        except ValueError as e:
            raise TransportConfigError(f"Invalid SMTP port: {e}") from e

        query = parse_qs(parsed.query)
        starttls = query.get("starttls", ["false"])[0].lower() in ("1", "true", "yes")

        return cls(
            host=parsed.hostname,
            port=port,
            use_ssl=scheme == "smtps",
            starttls=starttls,
            username=unquote(parsed.username) if parsed.username else None,
            password=unquote(parsed.password) if parsed.password else None,
        )


class SmtpTransport:
    """Long-lived SMTP session shared by every send of the process."""

    def __init__(self, settings: SmtpSettings):
        self.settings = settings
        self.logger = logger.bind(component="smtp_transport", host=settings.host)
        self._session: Optional[smtplib.SMTP] = None

    @classmethod
    def from_url(cls, smtp_string: str) -> "SmtpTransport":
        return cls(SmtpSettings.from_url(smtp_string))

    async def send_mail(
        self,
        from_addr: str,
        to_addr: str,
        subject: str,
        html: str
    ) -> DeliveryReceipt:
        """
        Send an HTML e-mail.

        Returns:
            DeliveryReceipt with the message id and accepted recipients
        """
        message = EmailMessage()
        message["From"] = from_addr
        message["To"] = to_addr
        message["Subject"] = subject
        message["Message-ID"] = make_msgid()
        message.set_content(html, subtype="html")

        refused = await asyncio.to_thread(self._send, message)

        recipients = [addr.strip() for addr in to_addr.split(",") if addr.strip()]
        return DeliveryReceipt(
            message_id=message["Message-ID"],
            accepted=[addr for addr in recipients if addr not in refused],
            rejected=list(refused),
        )

    async def close(self) -> None:
        """Close the SMTP session if one is open."""
        if self._session is None:
            return
        session, self._session = self._session, None
        try:
            await asyncio.to_thread(session.quit)
        except smtplib.SMTPException as e:
            self.logger.warning("Failed to close SMTP session cleanly", error=str(e))
        self.logger.info("SMTP session closed")

    def _send(self, message: EmailMessage) -> dict:
        return self._get_session().send_message(message)

    def _get_session(self) -> smtplib.SMTP:
        if self._session is None:
            self._session = self._connect()
        return self._session

    def _connect(self) -> smtplib.SMTP:
        settings = self.settings
        if settings.use_ssl:
            session = smtplib.SMTP_SSL(settings.host, settings.port, timeout=settings.timeout)
        else:
            session = smtplib.SMTP(settings.host, settings.port, timeout=settings.timeout)
            if settings.starttls:
                session.starttls()
        if settings.username:
            session.login(settings.username, settings.password or "")

        self.logger.info("SMTP session established", port=settings.port)
        return session
