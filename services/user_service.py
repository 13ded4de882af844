from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument

from db.db_operation import MongoConnection
from models.user import UserRole, UserStatus
from utils.clock import Clock, utc_now
from utils.logger import get_logger

logger = get_logger("USER_SERVICE")


def to_object_id(value: str):
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        return None


class UserService:
    """Accounts keyed by (country_code, phone_number)."""

    def __init__(self, mongo: MongoConnection, clock: Clock = utc_now):
        self.users = mongo.users_collection
        self.clock = clock

    async def find_by_phone(self, country_code: str, phone_number: str):
        return await self.users.find_one({"country_code": country_code, "phone_number": phone_number})

    async def get_by_id(self, user_id: str):
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return await self.users.find_one({"_id": oid})

    async def get_or_create(self, country_code: str, phone_number: str) -> dict:
        """
        Upsert keyed on the phone pair, so two first-time requests for the same
        number still end up with a single account.
        """
        now = self.clock()
        result = await self.users.update_one(
            {"country_code": country_code, "phone_number": phone_number},
            {"$setOnInsert": {
                "country_code": country_code,
                "phone_number": phone_number,
                "role": UserRole.CUSTOMER.value,
                "status": UserStatus.ACTIVE.value,
                "phone_verified": False,
                "email": None,
                "created_at": now,
                "updated_at": now,
            }},
            upsert=True,
        )
        if result.upserted_id is not None:
            logger.info("User account created", extra={"user_id": str(result.upserted_id)})
        return await self.find_by_phone(country_code, phone_number)

    async def mark_phone_verified(self, user_id) -> dict:
        return await self.users.find_one_and_update(
            {"_id": user_id},
            {"$set": {"phone_verified": True, "updated_at": self.clock()}},
            return_document=ReturnDocument.AFTER,
        )

    async def promote_to_restaurant(self, user_id: str) -> bool:
        # admins keep their role when they register a restaurant
        result = await self.users.update_one(
            {"_id": to_object_id(user_id), "role": {"$ne": UserRole.ADMIN.value}},
            {"$set": {"role": UserRole.RESTAURANT.value, "updated_at": self.clock()}},
        )
        return result.modified_count > 0

    async def ensure_admin(self, country_code: str, phone_number: str) -> dict:
        user = await self.get_or_create(country_code, phone_number)
        if user.get("role") != UserRole.ADMIN.value:
            user = await self.users.find_one_and_update(
                {"_id": user["_id"]},
                {"$set": {"role": UserRole.ADMIN.value, "updated_at": self.clock()}},
                return_document=ReturnDocument.AFTER,
            )
            logger.info("User promoted to admin", extra={"user_id": str(user["_id"])})
        return user
