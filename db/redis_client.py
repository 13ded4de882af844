from redis import asyncio as aioredis

from settings.config import Settings
from utils.logger import get_logger

logger = get_logger("Redis_Client")


def create_redis_client(settings: Settings) -> aioredis.Redis:
    logger.info("Initializing Redis client")
    return aioredis.from_url(settings.REDIS_URL, decode_responses=True)
