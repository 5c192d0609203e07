"""
Notification gateway: two independent send channels, email and SMS.

In production, the concrete gateway would wrap SendGrid/SES for email and
Twilio for SMS. LoggingNotificationGateway is the development transport:
it logs each message and reports success.
"""

import logging
import uuid
from abc import ABC, abstractmethod

from booking_engine.schemas.notification_schema import NotificationChannel, SendOutcome

logger = logging.getLogger(__name__)


class NotificationGateway(ABC):
    """Each method awaits one send and may fail independently of the other."""

    @abstractmethod
    async def send_email(self, to: str, subject: str, body: str) -> SendOutcome:
        ...

    @abstractmethod
    async def send_sms(self, to: str, body: str) -> SendOutcome:
        ...


class LoggingNotificationGateway(NotificationGateway):
    """Writes messages to the log instead of a real transport."""

    async def send_email(self, to: str, subject: str, body: str) -> SendOutcome:
        message_id = f"msg_{uuid.uuid4().hex[:12]}"
        logger.info("Email sent to %s: %s (%s)", to, subject, message_id)
        logger.debug("Email body:\n%s", body)
        return SendOutcome(
            channel=NotificationChannel.EMAIL,
            recipient=to,
            success=True,
            message_id=message_id,
        )

    async def send_sms(self, to: str, body: str) -> SendOutcome:
        message_id = f"sms_{uuid.uuid4().hex[:12]}"
        logger.info("SMS sent to %s (%s): %s", to, message_id, body)
        return SendOutcome(
            channel=NotificationChannel.SMS,
            recipient=to,
            success=True,
            message_id=message_id,
        )
