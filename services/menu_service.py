import re

from pymongo import ReturnDocument

from core.exceptions import ConflictError, InvalidInputError, NotFoundError, handles_store_errors
from db.db_operation import MongoConnection
from models.menu import DietaryTag, MenuItemCreate, MenuItemUpdate
from models.user import CurrentUser
from services.admin_service import AuditService
from services.restaurant_service import RestaurantService, is_orderable
from services.user_service import to_object_id
from utils.clock import Clock, isoformat, to_naive_utc, utc_now
from utils.logger import get_logger

logger = get_logger("Menu_Service")

TOGGLE_ATTEMPTS = 5
MAX_BESTSELLERS = 100


def serialize_menu_item(d: dict) -> dict:
    return {
        "id": str(d["_id"]),
        "restaurant_id": d["restaurant_id"],
        "name": d["name"],
        "description": d.get("description"),
        "image_url": d.get("image_url"),
        "price": d["price"],
        "dietary_tags": d.get("dietary_tags", []),
        "spiciness_level": d.get("spiciness_level", "medium"),
        "is_available": d.get("is_available", True),
        "estimated_prep_time_minutes": d.get("estimated_prep_time_minutes", 20),
        "calories": d.get("calories"),
        "protein_grams": d.get("protein_grams"),
        "carbs_grams": d.get("carbs_grams"),
        "fat_grams": d.get("fat_grams"),
        "fiber_grams": d.get("fiber_grams"),
        "serving_size": d.get("serving_size"),
        "special_instructions": d.get("special_instructions"),
        "category": d.get("category"),
        "is_temporary": d.get("is_temporary", False),
        "availability_end_date": isoformat(d.get("availability_end_date")),
        "is_bestseller": d.get("is_bestseller", False),
        "is_new": d.get("is_new", False),
        "average_rating": d.get("average_rating", 0),
        "total_ratings": d.get("total_ratings", 0),
        "total_orders": d.get("total_orders", 0),
        "quantity_sold": d.get("quantity_sold", 0),
        "created_at": isoformat(d.get("created_at")),
        "updated_at": isoformat(d.get("updated_at")),
    }


class MenuService:
    """
    Menu items of a single restaurant.

    Writes go through the restaurant ownership predicate first. Public reads only
    return items that are effectively available: switched on, and either
    permanent or temporary with an end date still in the future.
    """

    def __init__(self, mongo: MongoConnection, restaurants: RestaurantService, audit: AuditService, clock: Clock = utc_now):
        self.menu_items = mongo.menu_items
        self.restaurants = restaurants
        self.audit = audit
        self.clock = clock

    def _effectively_available(self) -> dict:
        return {
            "is_available": True,
            "$or": [
                {"is_temporary": {"$ne": True}},
                {"availability_end_date": {"$gt": self.clock()}},
            ],
        }

    async def _load_item(self, restaurant_id: str, item_id: str) -> dict:
        oid = to_object_id(item_id)
        item = await self.menu_items.find_one({"_id": oid, "restaurant_id": restaurant_id}) if oid is not None else None
        if item is None:
            raise NotFoundError("Menu item not found")
        return item

    # owner operations

    @handles_store_errors("add menu item")
    async def add_item(self, identity: CurrentUser, restaurant_id: str, payload: MenuItemCreate) -> dict:
        """
        Create a menu item. The restaurant does not need to be approved yet, so
        owners can build the menu while the application is under review.
        """
        await self.restaurants.get_owned(identity, restaurant_id, "You can only add items to your own restaurant")

        now = self.clock()
        doc = payload.model_dump()
        doc.update({
            "restaurant_id": restaurant_id,
            "price": float(payload.price),
            "availability_end_date": to_naive_utc(payload.availability_end_date),
            "is_available": True,
            "is_bestseller": False,
            "is_new": False,
            "total_orders": 0,
            "quantity_sold": 0,
            "average_rating": 0,
            "total_ratings": 0,
            "created_at": now,
            "updated_at": now,
        })
        result = await self.menu_items.insert_one(doc)
        doc["_id"] = result.inserted_id

        await self.audit.record(identity.id, "create_menu_item", "menu_item", str(result.inserted_id), after={"name": doc["name"], "price": doc["price"]})
        logger.info("Menu item created", extra={"restaurant_id": restaurant_id, "item_id": str(result.inserted_id)})
        return serialize_menu_item(doc)

    @handles_store_errors("update menu item")
    async def update_item(self, identity: CurrentUser, restaurant_id: str, item_id: str, payload: MenuItemUpdate) -> dict:
        await self.restaurants.get_owned(identity, restaurant_id, "You can only update items in your own restaurant")
        item = await self._load_item(restaurant_id, item_id)

        update_doc = payload.model_dump(exclude_none=True)
        if "availability_end_date" in update_doc:
            update_doc["availability_end_date"] = to_naive_utc(update_doc["availability_end_date"])
        if "price" in update_doc:
            update_doc["price"] = float(update_doc["price"])
        merged = {**item, **update_doc}
        if merged.get("is_temporary") and merged.get("availability_end_date") is None:
            raise InvalidInputError("availability_end_date is required for temporary items")
        if not update_doc:
            return serialize_menu_item(item)
        update_doc["updated_at"] = self.clock()

        updated = await self.menu_items.find_one_and_update(
            {"_id": item["_id"], "restaurant_id": restaurant_id},
            {"$set": update_doc},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise NotFoundError("Menu item not found")
        await self.audit.record(identity.id, "update_menu_item", "menu_item", item_id, after={k: v for k, v in update_doc.items() if k != "updated_at"})
        return serialize_menu_item(updated)

    @handles_store_errors("delete menu item")
    async def delete_item(self, identity: CurrentUser, restaurant_id: str, item_id: str) -> dict:
        await self.restaurants.get_owned(identity, restaurant_id, "You can only delete items from your own restaurant")
        oid = to_object_id(item_id)
        if oid is None:
            raise NotFoundError("Menu item not found")
        result = await self.menu_items.delete_one({"_id": oid, "restaurant_id": restaurant_id})
        if result.deleted_count == 0:
            raise NotFoundError("Menu item not found")
        await self.audit.record(identity.id, "delete_menu_item", "menu_item", item_id)
        logger.info("Menu item deleted", extra={"actor": identity.id, "item_id": item_id})
        return {"message": "Menu item deleted successfully"}

    @handles_store_errors("toggle item availability")
    async def toggle_availability(self, identity: CurrentUser, restaurant_id: str, item_id: str) -> dict:
        """
        Flip is_available with a compare-and-set on the value just read, retrying
        when another writer got there first, so no toggle is silently lost.
        """
        await self.restaurants.get_owned(identity, restaurant_id, "You can only manage items in your own restaurant")
        for _ in range(TOGGLE_ATTEMPTS):
            item = await self._load_item(restaurant_id, item_id)
            current = item.get("is_available", True)
            updated = await self.menu_items.find_one_and_update(
                {"_id": item["_id"], "restaurant_id": restaurant_id, "is_available": current},
                {"$set": {"is_available": not current, "updated_at": self.clock()}},
                return_document=ReturnDocument.AFTER,
            )
            if updated is not None:
                logger.info(f"Menu item availability set to {not current}", extra={"item_id": item_id})
                return serialize_menu_item(updated)
        raise ConflictError("Menu item was modified concurrently, please retry")

    @handles_store_errors("fetch menu statistics")
    async def get_stats(self, identity: CurrentUser, restaurant_id: str) -> dict:
        restaurant = await self.restaurants.get_owned(identity, restaurant_id, "You can only view stats for your own restaurant")
        items = await self.menu_items.find({"restaurant_id": restaurant_id}).to_list(length=None)
        return {
            "total_items": len(items),
            "available_items": sum(1 for i in items if i.get("is_available", True)),
            "bestseller_items": sum(1 for i in items if i.get("is_bestseller", False)),
            "total_orders": sum(int(i.get("total_orders", 0)) for i in items),
            "restaurant_orderable": is_orderable(restaurant),
        }

    # public reads

    @handles_store_errors("fetch menu")
    async def get_menu(self, restaurant_id: str) -> list:
        q = {"restaurant_id": restaurant_id, **self._effectively_available()}
        docs = await self.menu_items.find(q).sort([("category", 1), ("name", 1)]).to_list(length=None)
        return [serialize_menu_item(d) for d in docs]

    @handles_store_errors("fetch menu item")
    async def get_item(self, item_id: str) -> dict:
        oid = to_object_id(item_id)
        item = await self.menu_items.find_one({"_id": oid, **self._effectively_available()}) if oid is not None else None
        if item is None:
            raise NotFoundError("Menu item not found")
        return serialize_menu_item(item)

    @handles_store_errors("search menu items")
    async def search(self, restaurant_id: str, term: str) -> list:
        term = (term or "").strip()
        if not term:
            raise InvalidInputError("Search term is required")
        pattern = {"$regex": re.escape(term), "$options": "i"}
        available = self._effectively_available()
        q = {
            "restaurant_id": restaurant_id,
            "is_available": True,
            "$and": [
                {"$or": available["$or"]},
                {"$or": [{"name": pattern}, {"description": pattern}]},
            ],
        }
        docs = await self.menu_items.find(q).sort("name", 1).to_list(length=None)
        return [serialize_menu_item(d) for d in docs]

    @handles_store_errors("fetch items by dietary tag")
    async def by_dietary_tag(self, restaurant_id: str, tag: str) -> list:
        try:
            tag = DietaryTag(tag).value
        except ValueError:
            raise InvalidInputError(f"Unknown dietary tag: {tag}")
        q = {"restaurant_id": restaurant_id, "dietary_tags": tag, **self._effectively_available()}
        docs = await self.menu_items.find(q).sort("name", 1).to_list(length=None)
        return [serialize_menu_item(d) for d in docs]

    @handles_store_errors("fetch bestseller items")
    async def bestsellers(self, restaurant_id: str, limit: int = 10) -> list:
        if limit < 1:
            raise InvalidInputError("limit must be positive")
        limit = min(limit, MAX_BESTSELLERS)
        q = {"restaurant_id": restaurant_id, **self._effectively_available()}
        cursor = self.menu_items.find(q).sort([("quantity_sold", -1), ("average_rating", -1)]).limit(limit)
        docs = await cursor.to_list(length=limit)
        return [serialize_menu_item(d) for d in docs]
