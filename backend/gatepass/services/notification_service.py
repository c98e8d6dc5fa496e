"""
Outbound notifications (email and SMS).

Delivery is fire-and-forget: ``dispatch`` runs a send and logs any failure, so
a broken mail server or SMS gateway never fails the transition that asked for
the message.
"""
from abc import ABC, abstractmethod
from email.message import EmailMessage
from typing import Callable, List
import logging
import smtplib
import httpx
from gatepass.core.config import settings
from gatepass.core.utils import normalize_pk_phone

logger = logging.getLogger(__name__)


class NotificationPort(ABC):
    """Capability used by workflows to reach people outside the system."""

    @abstractmethod
    def send_email(self, to: List[str], subject: str, body: str) -> None:
        ...

    @abstractmethod
    def send_sms(self, destination: str, message: str) -> None:
        ...


class GatewayNotifier(NotificationPort):
    """Sends email over SMTP and SMS through the ZONG CBS HTTP gateway."""

    def send_email(self, to: List[str], subject: str, body: str) -> None:
        recipients = [addr for addr in to if addr]
        if not recipients:
            return
        if not settings.SMTP_USER or not settings.SMTP_PASS:
            logger.warning("SMTP credentials missing. Skipping email '%s'.", subject)
            return

        message = EmailMessage()
        message["From"] = settings.NOTIFY_FROM
        message["To"] = ", ".join(recipients)
        message["Subject"] = subject
        message.set_content(body)

        with smtplib.SMTP(settings.SMTP_HOST, settings.SMTP_PORT, timeout=30) as server:
            if settings.SMTP_USE_TLS:
                server.starttls()
            server.login(settings.SMTP_USER, settings.SMTP_PASS)
            server.send_message(message)
        logger.info(f"Email '{subject}' sent to {len(recipients)} recipient(s)")

    def send_sms(self, destination: str, message: str) -> None:
        dest = normalize_pk_phone(destination)
        if not dest:
            return
        if not settings.SMS_LOGIN_ID or not settings.SMS_LOGIN_PASS:
            logger.warning("SMS gateway credentials missing. Skipping SMS send.")
            return

        payload = {
            "loginId": settings.SMS_LOGIN_ID,
            "loginPassword": settings.SMS_LOGIN_PASS,
            "Destination": dest,
            "Mask": settings.SMS_MASK,
            "Message": message,
            "UniCode": "0",  # GSM7
            "ShortCodePrefered": "n",
        }
        response = httpx.post(settings.SMS_API_URL, json=payload, timeout=settings.SMS_TIMEOUT)
        response.raise_for_status()
        logger.info(f"SMS queued for {dest}: {response.text}")


def dispatch(send: Callable[..., None], *args, **kwargs) -> None:
    """
    Run a notifier call and swallow its failure.

    A dropped notification is an accepted loss; it is logged for operators
    and never re-raised.
    """
    try:
        send(*args, **kwargs)
    except Exception as e:
        logger.error(f"Notification via {getattr(send, '__name__', send)} failed: {e}", exc_info=True)


_notifier = GatewayNotifier()


def get_notifier() -> NotificationPort:
    """Dependency returning the process-wide notifier."""
    return _notifier
