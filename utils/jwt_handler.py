import uuid
from datetime import timedelta

from jose import JWTError, jwt

from core.exceptions import InvalidTokenError
from settings.config import Settings
from utils.clock import Clock, to_timestamp, utc_now
from utils.logger import get_logger

logger = get_logger("JWT_HANDLER")

ACCESS = "access"
REFRESH = "refresh"


class TokenIssuer:
    """
    Signs and validates access/refresh token pairs.

    The two token kinds use different secrets so a leaked refresh secret cannot
    forge access tokens and vice versa. Expiry is checked against the injected
    clock rather than the wall clock.
    """

    def __init__(self, settings: Settings, clock: Clock = utc_now):
        self.access_secret = settings.JWT_SECRET
        self.refresh_secret = settings.JWT_REFRESH_SECRET
        self.algorithm = settings.JWT_ALGORITHM
        self.access_expires_in = settings.JWT_EXPIRATION
        self.refresh_expires_in = settings.JWT_REFRESH_EXPIRATION
        self.clock = clock

    def _encode(self, payload: dict, secret: str, expires_in: int, token_type: str) -> str:
        now = self.clock()
        to_encode = payload.copy()
        to_encode.update({
            "type": token_type,
            "jti": uuid.uuid4().hex,
            "iat": to_timestamp(now),
            "exp": to_timestamp(now + timedelta(seconds=expires_in)),
        })
        return jwt.encode(to_encode, secret, algorithm=self.algorithm)

    def issue(self, user: dict) -> dict:
        """
        Creates an access/refresh pair for a user document.
        """
        payload = {
            "sub": str(user["_id"]),
            "phone_number": user["phone_number"],
            "role": user["role"],
            "country_code": user["country_code"],
        }
        access_token = self._encode(payload, self.access_secret, self.access_expires_in, ACCESS)
        refresh_token = self._encode(payload, self.refresh_secret, self.refresh_expires_in, REFRESH)
        logger.info("Token pair issued", extra={"user_id": payload["sub"]})
        return {"access_token": access_token, "refresh_token": refresh_token}

    def verify(self, token: str, secret: str) -> dict:
        """
        Decode token and return payload.
        Raises InvalidTokenError if the signature is wrong or the token expired.
        """
        try:
            payload = jwt.decode(
                token, secret, algorithms=[self.algorithm], options={"verify_exp": False}
            )
        except JWTError:
            raise InvalidTokenError()
        exp = payload.get("exp")
        if not isinstance(exp, (int, float)) or exp <= to_timestamp(self.clock()):
            raise InvalidTokenError("Token expired")
        if not payload.get("sub"):
            raise InvalidTokenError()
        return payload

    def verify_access(self, token: str) -> dict:
        payload = self.verify(token, self.access_secret)
        if payload.get("type") != ACCESS:
            raise InvalidTokenError()
        return payload

    def verify_refresh(self, token: str) -> dict:
        payload = self.verify(token, self.refresh_secret)
        if payload.get("type") != REFRESH:
            raise InvalidTokenError()
        return payload

    def seconds_remaining(self, payload: dict) -> int:
        return max(int(payload["exp"]) - to_timestamp(self.clock()), 0)
