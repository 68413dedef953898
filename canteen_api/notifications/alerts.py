"""Canteen alerts over Twilio WhatsApp or SMS"""

import asyncio

import structlog
from twilio.rest import Client as TwilioClient

from canteen_api.errors import UpstreamUnavailable

logger = structlog.get_logger()


class TwilioAlertSender:
    """
    Sends a message to a canteen's alert number. Numbers prefixed with
    "whatsapp:" go over WhatsApp, everything else is SMS.
    """

    def __init__(self, account_sid: str, auth_token: str, from_number: str):
        self.account_sid = account_sid
        self._auth_token = auth_token
        self.from_number = from_number

    def _sender_for(self, to: str) -> str:
        if to.startswith("whatsapp:") and not self.from_number.startswith("whatsapp:"):
            return f"whatsapp:{self.from_number}"
        return self.from_number

    def _create_message(self, to: str, body: str) -> str:
        client = TwilioClient(self.account_sid, self._auth_token)
        message = client.messages.create(
            body=body,
            from_=self._sender_for(to),
            to=to,
        )
        return message.sid

    async def send(self, to: str, body: str) -> None:
        if not self.account_sid or not self._auth_token or not self.from_number:
            raise UpstreamUnavailable("Twilio is not configured", to=to)
        try:
            # The Twilio client is synchronous
            sid = await asyncio.to_thread(self._create_message, to, body)
        except Exception as e:
            logger.error("Failed to send canteen alert", to=to, error=str(e))
            raise UpstreamUnavailable("Alert delivery failed", to=to) from e

        logger.info("Canteen alert sent", to=to, message_sid=sid)
