"""OTP challenge persistence"""

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, update
from sqlalchemy.ext.asyncio import async_sessionmaker

from canteen_api.models.otp import OtpChallenge


class OtpStore:
    """Keyed by email; replacing a challenge drops the previous one"""

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory

    async def replace(self, challenge: OtpChallenge) -> OtpChallenge:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    delete(OtpChallenge).where(OtpChallenge.email == challenge.email)
                )
                session.add(challenge)
            await session.refresh(challenge)
            return challenge

    async def get(self, email: str) -> Optional[OtpChallenge]:
        async with self._session_factory() as session:
            return await session.get(OtpChallenge, email)

    async def mark_delivered(self, email: str, code: str, when: datetime) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(
                    update(OtpChallenge)
                    .where(OtpChallenge.email == email, OtpChallenge.code == code)
                    .values(delivered_at=when)
                )

    async def delete(self, email: str, code: Optional[str] = None) -> bool:
        """Delete the challenge; with code given, only if it is still that one"""
        conditions = [OtpChallenge.email == email]
        if code is not None:
            conditions.append(OtpChallenge.code == code)
        async with self._session_factory() as session:
            async with session.begin():
                result = await session.execute(delete(OtpChallenge).where(*conditions))
        return (result.rowcount or 0) > 0
