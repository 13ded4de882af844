from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING

from settings.config import Settings
from utils.logger import get_logger

logger = get_logger("DB_OPERATION")


class MongoConnection:
    def __init__(self, settings: Settings, client=None):
        logger.info("Initializing MongoDB Connection")
        self.settings = settings
        self.client = client if client is not None else AsyncIOMotorClient(settings.MONGO_URI)
        self.db = self.client[settings.DB_NAME]
        self.users_collection = self.db["users"]
        self.restaurants_collection = self.db["restaurants"]
        self.menu_items = self.db["menu_items"]
        self.audit_logs = self.db["audit_logs"]

    @property
    def supports_transactions(self) -> bool:
        return self.settings.MONGO_TRANSACTIONS

    async def connect(self):
        try:
            # Force an actual connection & authentication check
            await self.db.command("ping")
            logger.info("Successfully connected to MongoDB and authenticated.")
            logger.info(f"Using Database: {self.settings.DB_NAME}")
        except Exception as e:
            logger.error(f"Could not connect to MongoDB: {e}")
            raise e

    async def create_indexes(self):
        await self.users_collection.create_index(
            [("country_code", ASCENDING), ("phone_number", ASCENDING)], unique=True
        )
        await self.users_collection.create_index("status")
        await self.restaurants_collection.create_index("user_id", unique=True)
        await self.restaurants_collection.create_index("status")
        await self.restaurants_collection.create_index("working_status")
        await self.restaurants_collection.create_index("country")
        await self.menu_items.create_index("restaurant_id")
        await self.menu_items.create_index("is_available")
        await self.audit_logs.create_index([("timestamp", DESCENDING)])
        logger.info("Indexes created")
