"""OTP challenge model"""

from sqlalchemy import Column, String, DateTime

from canteen_api.database import Base
from canteen_api.timeutils import utcnow


class OtpChallenge(Base):
    """Live email verification challenge, at most one per email"""
    __tablename__ = "otp_challenges"

    email = Column(String(255), primary_key=True)
    code = Column(String(12), nullable=False)
    expires_at = Column(DateTime, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Null until the email send succeeded
    delivered_at = Column(DateTime)
