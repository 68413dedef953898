"""OTP schemas"""

from datetime import datetime
from pydantic import BaseModel, EmailStr


class OtpRequest(BaseModel):
    """Request or resend a code"""
    email: EmailStr


class OtpVerifyRequest(BaseModel):
    email: EmailStr
    code: str


class OtpSentResponse(BaseModel):
    ok: bool = True
    expires_at: datetime


class OtpVerifiedResponse(BaseModel):
    ok: bool = True
