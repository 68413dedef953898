"""SMTP email delivery via aiosmtplib"""

import asyncio
from email.message import EmailMessage
from email.utils import formatdate, make_msgid

import aiosmtplib
import structlog

from canteen_api.errors import UpstreamUnavailable

logger = structlog.get_logger()


class SmtpEmailSender:
    """Sends one plain-text message per call over a fresh SMTP connection"""

    def __init__(
        self,
        host: str,
        port: int = 587,
        username: str = "",
        password: str = "",
        use_tls: bool = True,
        from_address: str = "canteen@localhost",
        timeout: float = 10.0,
    ):
        self.host = host
        self.port = port
        self.username = username
        self._password = password
        self.use_tls = use_tls
        self.from_address = from_address
        self.timeout = timeout

    def _build_message(self, to: str, subject: str, body: str) -> EmailMessage:
        message = EmailMessage()
        message["From"] = self.from_address
        message["To"] = to
        message["Subject"] = subject
        message["Date"] = formatdate(localtime=True)
        message["Message-ID"] = make_msgid(domain=self.from_address.rpartition("@")[2] or None)
        message.set_content(body)
        return message

    async def send(self, to: str, subject: str, body: str) -> None:
        message = self._build_message(to, subject, body)
        try:
            await aiosmtplib.send(
                message,
                hostname=self.host,
                port=self.port,
                username=self.username or None,
                password=self._password or None,
                start_tls=self.use_tls,
                timeout=self.timeout,
            )
        except (aiosmtplib.SMTPException, OSError, asyncio.TimeoutError) as e:
            logger.error("SMTP send failed", to=to, host=self.host, error=str(e))
            raise UpstreamUnavailable("Email delivery failed", to=to) from e

        logger.info("Email sent", to=to, subject=subject)
