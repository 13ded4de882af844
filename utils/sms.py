from abc import ABC, abstractmethod

from utils.logger import get_logger

logger = get_logger("SMS_Service")


class OtpSender(ABC):
    """Out-of-band delivery of one-time codes."""

    @abstractmethod
    async def send_otp(self, country_code: str, phone_number: str, code: str, expires_in_minutes: int) -> None:
        pass


class LoggingOtpSender(OtpSender):
    """
    Stand-in for an SMS provider. Nothing leaves the process; outside production the
    code is logged so developers can complete the flow.
    """

    def __init__(self, reveal_codes: bool = False):
        self.reveal_codes = reveal_codes

    async def send_otp(self, country_code: str, phone_number: str, code: str, expires_in_minutes: int) -> None:
        if self.reveal_codes:
            logger.warning(f"OTP for {country_code}{phone_number}: {code} (valid {expires_in_minutes} min)")
        else:
            logger.info("OTP dispatched", extra={"country_code": country_code, "phone_suffix": phone_number[-4:]})
