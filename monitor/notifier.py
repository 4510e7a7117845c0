"""
Notification delivery through an injected mail transport.
"""

from typing import Awaitable, Protocol

import structlog

from monitor.exceptions import NotificationError
from monitor.models import DeliveryReceipt, Message


class MailTransport(Protocol):
    """Anything able to deliver an HTML e-mail."""

    def send_mail(
        self,
        from_addr: str,
        to_addr: str,
        subject: str,
        html: str
    ) -> Awaitable[DeliveryReceipt]:
        ...


class Notifier:
    """Delivers rendered messages to the configured recipient."""

    def __init__(self, transport: MailTransport, from_mail: str, to_mail: str, logger=None):
        """
        Initialize notifier.

        Args:
            transport: Shared transport created at start-up
            from_mail: Sender address
            to_mail: Recipient address
            logger: Optional logger, defaults to the module logger
        """
        self.transport = transport
        self.from_mail = from_mail
        self.to_mail = to_mail
        if logger is None:
            logger = structlog.get_logger(__name__).bind(component="notifier")
        self.logger = logger

    async def send(self, message: Message) -> DeliveryReceipt:
        """
        Send a message through the transport.

        Raises:
            NotificationError: If the transport fails to deliver the message
        """
        try:
            receipt = await self.transport.send_mail(
                from_addr=self.from_mail,
                to_addr=self.to_mail,
                subject=message.subject,
                html=message.body
            )
        except Exception as e:
            raise NotificationError(
                str(e),
                context=f"Failed sending email to {self.to_mail}"
            ) from e

        self.logger.info(
            "Message sent",
            accepted=receipt.accepted,
            rejected=receipt.rejected,
            message_id=receipt.message_id
        )
        return receipt
