from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class UserRole(str, Enum):
    CUSTOMER = "customer"
    RESTAURANT = "restaurant"
    DELIVERY_AGENT = "delivery_agent"
    SUPPORT_AGENT = "support_agent"
    ADMIN = "admin"


class UserStatus(str, Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    SUSPENDED = "suspended"


class SendOtpRequest(BaseModel):
    country_code: str = Field(..., min_length=2, max_length=3, description="e.g. TH, IN, US")
    phone_number: str = Field(..., description="Digits only, without country code")


class VerifyOtpRequest(BaseModel):
    country_code: str = Field(..., min_length=2, max_length=3)
    phone_number: str
    otp: str = Field(..., min_length=4, max_length=8)


class RefreshTokenRequest(BaseModel):
    refresh_token: Optional[str] = None


class LogoutRequest(BaseModel):
    refresh_token: Optional[str] = None


class MessageResponse(BaseModel):
    message: str


class AuthResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int
    user_id: str
    role: UserRole
    phone_number: str


class CurrentUser(BaseModel):
    """Resolved caller identity handed to every downstream service."""
    id: str
    role: UserRole = UserRole.CUSTOMER
    country_code: Optional[str] = None
    phone_number: Optional[str] = None
    phone_verified: bool = False
    status: UserStatus = UserStatus.ACTIVE
