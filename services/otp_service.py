# services/otp_service.py
import hmac
import json
import secrets
from datetime import timedelta

from redis.exceptions import WatchError

from settings.config import Settings
from utils.clock import Clock, to_timestamp, utc_now
from utils.logger import get_logger

logger = get_logger("OTP_Service")


class OtpChallengeManager:
    """
    One live challenge per (country_code, phone_number), kept in Redis with a TTL.

    issue() is a plain SET, which replaces any earlier challenge in one step.
    verify() reads and deletes under WATCH so two concurrent verifications of the
    same code cannot both succeed.
    """

    def __init__(self, redis, settings: Settings, clock: Clock = utc_now):
        self.redis = redis
        self.length = settings.OTP_LENGTH
        self.expiry_minutes = settings.OTP_EXPIRY_MINUTES
        self.bypass_code = None if settings.is_production else settings.OTP_DEV_BYPASS_CODE
        self.clock = clock

    @staticmethod
    def key(country_code: str, phone_number: str) -> str:
        return f"otp:{country_code.upper()}:{phone_number}"

    def _generate_code(self) -> str:
        return f"{secrets.randbelow(10 ** self.length):0{self.length}d}"

    async def issue(self, country_code: str, phone_number: str) -> str:
        code = self._generate_code()
        now = self.clock()
        challenge = {
            "code": code,
            "created_at": to_timestamp(now),
            "expires_at": to_timestamp(now + timedelta(minutes=self.expiry_minutes)),
        }
        await self.redis.set(
            self.key(country_code, phone_number),
            json.dumps(challenge),
            ex=self.expiry_minutes * 60,
        )
        logger.info("OTP challenge issued", extra={"country_code": country_code, "phone_suffix": phone_number[-4:]})
        return code

    async def verify(self, country_code: str, phone_number: str, submitted_code: str) -> bool:
        key = self.key(country_code, phone_number)

        if self.bypass_code and hmac.compare_digest(submitted_code.encode(), self.bypass_code.encode()):
            logger.warning("OTP bypass code accepted", extra={"country_code": country_code, "phone_suffix": phone_number[-4:]})
            await self.redis.delete(key)
            return True

        async with self.redis.pipeline(transaction=True) as pipe:
            try:
                await pipe.watch(key)
                raw = await pipe.get(key)
                if raw is None:
                    return False
                challenge = json.loads(raw)
                if challenge.get("expires_at", 0) <= to_timestamp(self.clock()):
                    return False
                if not hmac.compare_digest(str(challenge.get("code", "")).encode(), submitted_code.encode()):
                    return False
                pipe.multi()
                pipe.delete(key)
                await pipe.execute()
            except WatchError:
                # someone else consumed or replaced the challenge first
                logger.info("OTP challenge changed during verification", extra={"phone_suffix": phone_number[-4:]})
                return False
        return True
