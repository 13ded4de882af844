from typing import Optional

from fastapi import APIRouter, Depends

from core.dependencies import get_auth_service, get_current_user
from core.exceptions import InvalidInputError
from models.user import (
    AuthResponse,
    CurrentUser,
    LogoutRequest,
    MessageResponse,
    RefreshTokenRequest,
    SendOtpRequest,
    VerifyOtpRequest,
)
from utils.logger import get_logger

logger = get_logger("AUTH_ROUTE")

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/send-otp", response_model=MessageResponse)
async def send_otp(payload: SendOtpRequest, auth_service=Depends(get_auth_service)):
    logger.info(f"OTP requested for country {payload.country_code}")
    return await auth_service.send_otp(payload.country_code, payload.phone_number)


@router.post("/verify-otp", response_model=AuthResponse)
async def verify_otp(payload: VerifyOtpRequest, auth_service=Depends(get_auth_service)):
    return await auth_service.verify_otp(payload.country_code, payload.phone_number, payload.otp)


@router.post("/refresh-token", response_model=AuthResponse)
async def refresh_token(payload: Optional[RefreshTokenRequest] = None, auth_service=Depends(get_auth_service)):
    if payload is None or not payload.refresh_token:
        raise InvalidInputError("refresh_token is required")
    return await auth_service.refresh_token(payload.refresh_token)


@router.get("/me", response_model=CurrentUser)
async def read_current_user(current_user: CurrentUser = Depends(get_current_user)):
    return current_user


@router.post("/logout", response_model=MessageResponse)
async def logout(
    payload: Optional[LogoutRequest] = None,
    current_user: CurrentUser = Depends(get_current_user),
    auth_service=Depends(get_auth_service),
):
    logger.info(f"Logout requested by {current_user.id}")
    return await auth_service.logout(current_user, payload.refresh_token if payload else None)
