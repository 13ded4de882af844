import re
from typing import Optional

from core.exceptions import (
    InvalidCredentialError,
    InvalidInputError,
    InvalidTokenError,
    NotFoundError,
    UnauthorizedError,
    handles_store_errors,
)
from models.user import CurrentUser
from services.otp_service import OtpChallengeManager
from services.user_service import UserService
from utils.jwt_handler import TokenIssuer
from utils.logger import get_logger
from utils.sms import OtpSender

logger = get_logger("AUTH_SERVICE")

PHONE_NUMBER_PATTERN = re.compile(r"^\d{10,15}$")


class RefreshTokenBlocklist:
    """Revoked refresh-token ids, each kept only as long as the token would live."""

    def __init__(self, redis):
        self.redis = redis

    @staticmethod
    def key(jti: str) -> str:
        return f"revoked:refresh:{jti}"

    async def revoke(self, jti: str, ttl_seconds: int) -> None:
        if ttl_seconds > 0:
            await self.redis.set(self.key(jti), "1", ex=ttl_seconds)

    async def is_revoked(self, jti: Optional[str]) -> bool:
        if not jti:
            return False
        return bool(await self.redis.exists(self.key(jti)))


class AuthService:
    def __init__(
        self,
        users: UserService,
        otp: OtpChallengeManager,
        tokens: TokenIssuer,
        sender: OtpSender,
        blocklist: RefreshTokenBlocklist,
    ):
        self.users = users
        self.otp = otp
        self.tokens = tokens
        self.sender = sender
        self.blocklist = blocklist

    def _auth_response(self, user: dict) -> dict:
        pair = self.tokens.issue(user)
        return {
            "access_token": pair["access_token"],
            "refresh_token": pair["refresh_token"],
            "token_type": "bearer",
            "expires_in": self.tokens.access_expires_in,
            "user_id": str(user["_id"]),
            "role": user["role"],
            "phone_number": user["phone_number"],
        }

    @handles_store_errors("send OTP")
    async def send_otp(self, country_code: str, phone_number: str) -> dict:
        """
        Creates the account on first contact and always issues a fresh challenge.
        The reply is identical for new and existing numbers.
        """
        country_code = country_code.upper()
        if not PHONE_NUMBER_PATTERN.match(phone_number or ""):
            raise InvalidInputError("Invalid phone number format")

        await self.users.get_or_create(country_code, phone_number)
        code = await self.otp.issue(country_code, phone_number)
        await self.sender.send_otp(country_code, phone_number, code, self.otp.expiry_minutes)
        return {"message": f"OTP sent successfully to {country_code}{phone_number}"}

    @handles_store_errors("verify OTP")
    async def verify_otp(self, country_code: str, phone_number: str, otp: str) -> dict:
        country_code = country_code.upper()
        if not await self.otp.verify(country_code, phone_number, otp):
            logger.warning("OTP verification failed", extra={"country_code": country_code, "phone_suffix": phone_number[-4:]})
            raise InvalidCredentialError("Invalid OTP")

        user = await self.users.find_by_phone(country_code, phone_number)
        if user is None:
            raise NotFoundError("User not found")
        user = await self.users.mark_phone_verified(user["_id"])
        logger.info("Phone verified", extra={"user_id": str(user["_id"])})
        return self._auth_response(user)

    @handles_store_errors("refresh token")
    async def refresh_token(self, refresh_token: str) -> dict:
        try:
            payload = self.tokens.verify_refresh(refresh_token)
        except InvalidTokenError:
            raise UnauthorizedError("Invalid refresh token")

        if await self.blocklist.is_revoked(payload.get("jti")):
            logger.warning("Revoked refresh token presented", extra={"user_id": payload["sub"]})
            raise UnauthorizedError("Invalid refresh token")

        user = await self.users.get_by_id(payload["sub"])
        if user is None:
            raise UnauthorizedError("Invalid refresh token")
        return self._auth_response(user)

    async def validate_token(self, access_token: str) -> dict:
        return self.tokens.verify_access(access_token)

    @handles_store_errors("log out")
    async def logout(self, identity: CurrentUser, refresh_token: Optional[str] = None) -> dict:
        # access tokens stay valid until they expire; only the refresh token is revoked
        if refresh_token:
            try:
                payload = self.tokens.verify_refresh(refresh_token)
            except InvalidTokenError:
                payload = None
            if payload and payload["sub"] == identity.id:
                await self.blocklist.revoke(payload["jti"], self.tokens.seconds_remaining(payload))
                logger.info("Refresh token revoked", extra={"user_id": identity.id})
        return {"message": "Logged out successfully"}
