"""Email OTP challenges"""

import hmac
from datetime import datetime, timedelta
from typing import Callable

import structlog

from canteen_api.errors import (
    ChallengeExpiredError,
    InvalidCodeError,
    NotFoundError,
    UpstreamUnavailable,
)
from canteen_api.models.otp import OtpChallenge
from canteen_api.notifications.notifier import Notifier
from canteen_api.repositories.otp import OtpStore
from canteen_api.services.identifiers import generate_otp_code
from canteen_api.timeutils import utcnow

logger = structlog.get_logger()


class OtpService:
    """
    One live challenge per email. Codes are single use.

    There is no attempt limit or lockout yet; a caller can guess codes until
    the challenge expires.
    """

    def __init__(
        self,
        store: OtpStore,
        notifier: Notifier,
        ttl: timedelta = timedelta(minutes=5),
        subject: str = "Your canteen verification code",
        clock: Callable[[], datetime] = utcnow,
    ):
        self._store = store
        self._notifier = notifier
        self.ttl = ttl
        self.subject = subject
        self._clock = clock

    @staticmethod
    def _normalize(email: str) -> str:
        return email.strip().lower()

    async def request_challenge(self, email: str) -> OtpChallenge:
        """Replace any live challenge with a new code and email it"""
        email = self._normalize(email)
        now = self._clock()
        challenge = await self._store.replace(
            OtpChallenge(
                email=email,
                code=generate_otp_code(),
                created_at=now,
                expires_at=now + self.ttl,
            )
        )
        logger.info("OTP challenge created", email=email)
        await self._deliver(challenge)
        return challenge

    async def resend_challenge(self, email: str) -> OtpChallenge:
        """Send the live code again, e.g. after a failed delivery"""
        challenge = await self._live_challenge(self._normalize(email))
        await self._deliver(challenge)
        return challenge

    async def verify_challenge(self, email: str, code: str) -> bool:
        email = self._normalize(email)
        challenge = await self._live_challenge(email)

        if not hmac.compare_digest(challenge.code.encode(), code.strip().encode()):
            logger.info("OTP code mismatch", email=email)
            raise InvalidCodeError("Invalid code", email=email)

        # Only the first of two concurrent correct submissions wins
        if not await self._store.delete(email, code=challenge.code):
            raise NotFoundError("No active code for this email", email=email)

        logger.info("OTP verified", email=email)
        return True

    async def _live_challenge(self, email: str) -> OtpChallenge:
        challenge = await self._store.get(email)
        if challenge is None:
            raise NotFoundError("No active code for this email", email=email)

        if self._clock() > challenge.expires_at:
            await self._store.delete(email, code=challenge.code)
            logger.info("OTP challenge expired", email=email)
            raise ChallengeExpiredError("Code expired", email=email)

        return challenge

    async def _deliver(self, challenge: OtpChallenge) -> None:
        minutes = int(self.ttl.total_seconds() // 60)
        body = (
            f"Your verification code is {challenge.code}. "
            f"It expires in {minutes} minutes."
        )
        try:
            await self._notifier.send_email(challenge.email, self.subject, body)
        except UpstreamUnavailable:
            logger.error("OTP email delivery failed", email=challenge.email)
            raise

        await self._store.mark_delivered(challenge.email, challenge.code, self._clock())
