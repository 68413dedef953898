"""Notifier interface used by the core"""

from abc import ABC, abstractmethod
from typing import Callable, Optional

import structlog

from canteen_api.errors import UpstreamUnavailable
from canteen_api.notifications.alerts import TwilioAlertSender
from canteen_api.notifications.email import SmtpEmailSender

logger = structlog.get_logger()


class Notifier(ABC):
    """Outbound delivery; failures raise UpstreamUnavailable"""

    @abstractmethod
    async def send_email(self, to: str, subject: str, body: str) -> None:
        pass

    @abstractmethod
    async def send_canteen_alert(self, canteen: str, message: str) -> None:
        pass


class ChannelNotifier(Notifier):
    """Email over SMTP, canteen alerts over Twilio"""

    def __init__(
        self,
        email_sender: SmtpEmailSender,
        alert_sender: TwilioAlertSender,
        alert_number_for: Callable[[str], Optional[str]],
    ):
        self._email = email_sender
        self._alerts = alert_sender
        self._alert_number_for = alert_number_for

    async def send_email(self, to: str, subject: str, body: str) -> None:
        await self._email.send(to, subject, body)

    async def send_canteen_alert(self, canteen: str, message: str) -> None:
        number = self._alert_number_for(canteen)
        if not number:
            logger.warning("No alert number configured for canteen", canteen=canteen)
            raise UpstreamUnavailable("No alert destination for canteen", canteen=canteen)
        await self._alerts.send(number, message)
