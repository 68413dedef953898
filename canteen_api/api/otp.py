"""Email OTP endpoints"""

from fastapi import APIRouter, Depends

from canteen_api.api.deps import get_otp_service
from canteen_api.schemas.otp import OtpRequest, OtpSentResponse, OtpVerifiedResponse, OtpVerifyRequest
from canteen_api.services.otp import OtpService

router = APIRouter()


@router.post("/request", response_model=OtpSentResponse)
async def request_otp(
    request: OtpRequest,
    otp: OtpService = Depends(get_otp_service),
):
    """Email a fresh code, replacing any previous one"""
    challenge = await otp.request_challenge(request.email)
    return OtpSentResponse(expires_at=challenge.expires_at)


@router.post("/resend", response_model=OtpSentResponse)
async def resend_otp(
    request: OtpRequest,
    otp: OtpService = Depends(get_otp_service),
):
    """Email the current code again"""
    challenge = await otp.resend_challenge(request.email)
    return OtpSentResponse(expires_at=challenge.expires_at)


@router.post("/verify", response_model=OtpVerifiedResponse)
async def verify_otp(
    request: OtpVerifyRequest,
    otp: OtpService = Depends(get_otp_service),
):
    await otp.verify_challenge(request.email, request.code)
    return OtpVerifiedResponse()
