# services/restaurant_service.py
from typing import Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from core.authorization import Action, authorize, is_allowed
from core.exceptions import ConflictError, NotFoundError, handles_store_errors
from db.db_operation import MongoConnection
from models.restaurant import RestaurantCreate, RestaurantStatus, RestaurantUpdate, WorkingStatus
from models.user import CurrentUser
from services.admin_service import AuditService
from services.user_service import UserService, to_object_id
from utils.clock import Clock, isoformat, utc_now
from utils.logger import get_logger

logger = get_logger("Restaurant_Service")

# admin decision -> statuses it may be applied to
ALLOWED_TRANSITIONS = {
    "approve": [RestaurantStatus.PENDING_APPROVAL.value, RestaurantStatus.REJECTED.value],
    "reject": [RestaurantStatus.PENDING_APPROVAL.value, RestaurantStatus.APPROVED.value],
    "suspend": [RestaurantStatus.APPROVED.value],
    "reactivate": [RestaurantStatus.SUSPENDED.value],
}


def is_orderable(doc: dict) -> bool:
    return (
        doc.get("status") == RestaurantStatus.APPROVED.value
        and doc.get("working_status") == WorkingStatus.ONLINE.value
        and doc.get("accepts_orders", True)
    )


def serialize_restaurant(doc: dict) -> dict:
    return {
        "id": str(doc["_id"]),
        "user_id": doc["user_id"],
        "name": doc["name"],
        "description": doc.get("description"),
        "owner_name": doc.get("owner_name"),
        "address": doc.get("address"),
        "city": doc.get("city"),
        "country": doc["country"],
        "latitude": doc.get("latitude"),
        "longitude": doc.get("longitude"),
        "logo_url": doc.get("logo_url"),
        "cover_image_url": doc.get("cover_image_url"),
        "cuisine_types": doc.get("cuisine_types", []),
        "working_status": doc.get("working_status", WorkingStatus.OFFLINE.value),
        "status": doc.get("status", RestaurantStatus.PENDING_APPROVAL.value),
        "rating": doc.get("rating", 0),
        "total_reviews": doc.get("total_reviews", 0),
        "total_orders": doc.get("total_orders", 0),
        "avg_prep_time_minutes": doc.get("avg_prep_time_minutes", 30),
        "minimum_order_amount": doc.get("minimum_order_amount", 0),
        "offers_delivery": doc.get("offers_delivery", False),
        "offers_pickup": doc.get("offers_pickup", False),
        "is_vegetarian_only": doc.get("is_vegetarian_only", True),
        "accepts_orders": doc.get("accepts_orders", True),
        "is_orderable": is_orderable(doc),
        "approved_by": doc.get("approved_by"),
        "approved_at": isoformat(doc.get("approved_at")),
        "rejection_reason": doc.get("rejection_reason"),
        "rejected_at": isoformat(doc.get("rejected_at")),
        "last_active_at": isoformat(doc.get("last_active_at")),
        "created_at": isoformat(doc.get("created_at")),
        "updated_at": isoformat(doc.get("updated_at")),
    }


class RestaurantService:
    """
    Owns a restaurant's approval status and working status.

    Every status change is a single find_one_and_update whose filter carries the
    expected current state, so an owner action racing an admin decision cannot
    overwrite it.
    """

    def __init__(self, mongo: MongoConnection, users: UserService, audit: AuditService, clock: Clock = utc_now):
        self.mongo = mongo
        self.restaurants = mongo.restaurants_collection
        self.menu_items = mongo.menu_items
        self.users = users
        self.audit = audit
        self.clock = clock

    async def _load(self, restaurant_id: str) -> dict:
        oid = to_object_id(restaurant_id)
        doc = await self.restaurants.find_one({"_id": oid}) if oid is not None else None
        if doc is None:
            raise NotFoundError("Restaurant not found")
        return doc

    async def get_owned(self, identity: CurrentUser, restaurant_id: str, detail: str = "You can only manage your own restaurant") -> dict:
        """
        Menu gate: a restaurant that does not exist and one owned by someone
        else both fail with Forbidden.
        """
        oid = to_object_id(restaurant_id)
        doc = await self.restaurants.find_one({"_id": oid}) if oid is not None else None
        authorize(identity, Action.MENU_MANAGE, doc, detail)
        return doc

    @handles_store_errors("register restaurant")
    async def register(self, owner_id: str, payload: RestaurantCreate) -> dict:
        user = await self.users.get_by_id(owner_id)
        if user is None:
            raise NotFoundError("User not found")
        if await self.restaurants.find_one({"user_id": owner_id}) is not None:
            raise ConflictError("Restaurant already registered for this user")

        now = self.clock()
        doc = payload.model_dump()
        doc.update({
            "user_id": owner_id,
            "country": payload.country.upper(),
            "status": RestaurantStatus.PENDING_APPROVAL.value,
            "working_status": WorkingStatus.OFFLINE.value,
            "rating": 0,
            "total_reviews": 0,
            "total_orders": 0,
            "cancelled_orders": 0,
            "is_vegetarian_only": True,
            "accepts_orders": True,
            "approved_by": None,
            "approved_at": None,
            "rejection_reason": None,
            "rejected_at": None,
            "last_active_at": None,
            "created_at": now,
            "updated_at": now,
        })
        try:
            result = await self.restaurants.insert_one(doc)
        except DuplicateKeyError:
            raise ConflictError("Restaurant already registered for this user")
        doc["_id"] = result.inserted_id

        await self.users.promote_to_restaurant(owner_id)
        logger.info("Restaurant registered", extra={"user_id": owner_id, "restaurant_id": str(result.inserted_id)})
        return serialize_restaurant(doc)

    @handles_store_errors("fetch restaurant")
    async def get_by_id(self, restaurant_id: str) -> dict:
        return serialize_restaurant(await self._load(restaurant_id))

    @handles_store_errors("fetch restaurant")
    async def get_by_owner(self, owner_id: str) -> dict:
        doc = await self.restaurants.find_one({"user_id": owner_id})
        if doc is None:
            raise NotFoundError("Restaurant not found")
        return serialize_restaurant(doc)

    @handles_store_errors("update restaurant")
    async def update(self, identity: CurrentUser, restaurant_id: str, patch: RestaurantUpdate) -> dict:
        doc = await self._load(restaurant_id)
        authorize(identity, Action.RESTAURANT_UPDATE, doc, "You can only update your own restaurant")

        changes = patch.model_dump(exclude_none=True)
        # country is fixed at registration; a change request is ignored, not rejected
        changes.pop("country", None)
        if not changes:
            return serialize_restaurant(doc)
        changes["updated_at"] = self.clock()

        updated = await self.restaurants.find_one_and_update(
            {"_id": doc["_id"], "user_id": identity.id},
            {"$set": changes},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            raise NotFoundError("Restaurant not found")
        logger.info("Restaurant updated", extra={"user_id": identity.id, "restaurant_id": restaurant_id})
        return serialize_restaurant(updated)

    @handles_store_errors("update working status")
    async def set_working_status(self, identity: CurrentUser, restaurant_id: str, status: WorkingStatus) -> dict:
        doc = await self._load(restaurant_id)
        authorize(identity, Action.RESTAURANT_WORKING_STATUS, doc, "You can only update your own restaurant")

        status = WorkingStatus(status)
        now = self.clock()
        # visibility and orderability are derived from status at read time
        query = {"_id": doc["_id"], "user_id": identity.id}
        changes = {"working_status": status.value, "updated_at": now}
        if status == WorkingStatus.ONLINE:
            changes["last_active_at"] = now

        updated = await self.restaurants.find_one_and_update(
            query, {"$set": changes}, return_document=ReturnDocument.AFTER
        )
        if updated is None:
            raise NotFoundError("Restaurant not found")
        logger.info(f"Working status set to {status.value}", extra={"restaurant_id": restaurant_id})
        return serialize_restaurant(updated)

    async def _transition(self, restaurant_id: str, actor: CurrentUser, action: str, changes: dict, reason: Optional[str] = None) -> dict:
        authorize(actor, Action.RESTAURANT_REVIEW)
        oid = to_object_id(restaurant_id)
        if oid is None:
            raise NotFoundError("Restaurant not found")

        changes["updated_at"] = self.clock()
        before = await self.restaurants.find_one_and_update(
            {"_id": oid, "status": {"$in": ALLOWED_TRANSITIONS[action]}},
            {"$set": changes},
            return_document=ReturnDocument.BEFORE,
        )
        if before is None:
            current = await self._load(restaurant_id)
            raise ConflictError(f"Cannot {action} a restaurant that is {current['status']}")

        after = {**before, **changes}
        await self.audit.record(
            actor.id,
            f"{action}_restaurant",
            "restaurant",
            restaurant_id,
            before={"status": before["status"], "working_status": before.get("working_status")},
            after={"status": after["status"], "working_status": after.get("working_status")},
            reason=reason,
        )
        logger.info(f"Restaurant {action} by {actor.id}", extra={"restaurant_id": restaurant_id})
        return serialize_restaurant(after)

    @handles_store_errors("approve restaurant")
    async def approve(self, restaurant_id: str, actor: CurrentUser) -> dict:
        return await self._transition(restaurant_id, actor, "approve", {
            "status": RestaurantStatus.APPROVED.value,
            "approved_by": actor.id,
            "approved_at": self.clock(),
            "rejection_reason": None,
            "rejected_at": None,
        })

    @handles_store_errors("reject restaurant")
    async def reject(self, restaurant_id: str, actor: CurrentUser, reason: str) -> dict:
        # working_status is left as it is
        return await self._transition(restaurant_id, actor, "reject", {
            "status": RestaurantStatus.REJECTED.value,
            "rejection_reason": reason,
            "rejected_at": self.clock(),
        }, reason=reason)

    @handles_store_errors("suspend restaurant")
    async def suspend(self, restaurant_id: str, actor: CurrentUser) -> dict:
        return await self._transition(restaurant_id, actor, "suspend", {
            "status": RestaurantStatus.SUSPENDED.value,
            "working_status": WorkingStatus.OFFLINE.value,
        })

    @handles_store_errors("reactivate restaurant")
    async def reactivate(self, restaurant_id: str, actor: CurrentUser) -> dict:
        # the owner has to go online again by hand
        return await self._transition(restaurant_id, actor, "reactivate", {
            "status": RestaurantStatus.APPROVED.value,
        })

    @handles_store_errors("fetch restaurants")
    async def list_restaurants(
        self,
        caller: Optional[CurrentUser] = None,
        country: Optional[str] = None,
        working_status: Optional[WorkingStatus] = None,
        status: Optional[RestaurantStatus] = None,
        skip: int = 0,
        take: int = 50,
    ) -> dict:
        q = {"status": RestaurantStatus.APPROVED.value}
        if caller is not None and is_allowed(caller, Action.RESTAURANT_LIST_ANY):
            q.pop("status")
            if status is not None:
                q["status"] = RestaurantStatus(status).value
        if country:
            q["country"] = country.upper()
        if working_status:
            q["working_status"] = WorkingStatus(working_status).value

        total = await self.restaurants.count_documents(q)
        cursor = self.restaurants.find(q).sort([("rating", -1), ("created_at", 1), ("_id", 1)]).skip(skip).limit(take)
        docs = await cursor.to_list(length=take)
        return {"data": [serialize_restaurant(d) for d in docs], "total": total}

    @handles_store_errors("fetch pending restaurants")
    async def list_pending(self, actor: CurrentUser, skip: int = 0, take: int = 50) -> dict:
        """Admin review queue, oldest registration first."""
        authorize(actor, Action.RESTAURANT_REVIEW)
        q = {"status": RestaurantStatus.PENDING_APPROVAL.value}
        total = await self.restaurants.count_documents(q)
        cursor = self.restaurants.find(q).sort([("created_at", 1), ("_id", 1)]).skip(skip).limit(take)
        docs = await cursor.to_list(length=take)
        return {"data": [serialize_restaurant(d) for d in docs], "total": total}

    async def _delete_with_items(self, oid, restaurant_id: str, actor: CurrentUser, session=None) -> int:
        items = await self.menu_items.delete_many({"restaurant_id": restaurant_id}, session=session)
        await self.restaurants.delete_one({"_id": oid}, session=session)
        await self.audit.record(
            actor.id, "delete_restaurant", "restaurant", restaurant_id,
            after={"deleted_menu_items": items.deleted_count}, session=session,
        )
        return items.deleted_count

    @handles_store_errors("delete restaurant")
    async def delete(self, restaurant_id: str, actor: CurrentUser) -> dict:
        """
        Remove a restaurant together with its menu items. Runs inside one
        transaction when the deployment supports them.
        """
        authorize(actor, Action.RESTAURANT_DELETE)
        doc = await self._load(restaurant_id)

        if self.mongo.supports_transactions:
            async with await self.mongo.client.start_session() as session:
                async with session.start_transaction():
                    deleted_items = await self._delete_with_items(doc["_id"], restaurant_id, actor, session=session)
        else:
            deleted_items = await self._delete_with_items(doc["_id"], restaurant_id, actor)

        logger.info("Restaurant deleted", extra={"restaurant_id": restaurant_id, "deleted_menu_items": deleted_items})
        return {"message": "restaurant_deleted", "restaurant_id": restaurant_id, "deleted_menu_items": deleted_items}
