import pytest

from conftest import restaurant_payload
from core.exceptions import ConflictError, ForbiddenError, NotFoundError
from models.restaurant import RestaurantUpdate, WorkingStatus


async def test_register_creates_pending_offline_restaurant(restaurant_service, owner, user_service):
    restaurant = await restaurant_service.register(owner.id, restaurant_payload())

    assert restaurant["status"] == "pending_approval"
    assert restaurant["working_status"] == "offline"
    assert restaurant["country"] == "TH"
    assert restaurant["user_id"] == owner.id
    assert restaurant["is_orderable"] is False
    user = await user_service.get_by_id(owner.id)
    assert user["role"] == "restaurant"


async def test_register_twice_conflicts(restaurant_service, owner):
    await restaurant_service.register(owner.id, restaurant_payload())
    with pytest.raises(ConflictError):
        await restaurant_service.register(owner.id, restaurant_payload(name="Second Branch"))


async def test_register_for_unknown_user(restaurant_service):
    with pytest.raises(NotFoundError):
        await restaurant_service.register("65f0000000000000000000ff", restaurant_payload())


async def test_admin_keeps_role_after_registering(restaurant_service, admin, user_service):
    await restaurant_service.register(admin.id, restaurant_payload())
    user = await user_service.get_by_id(admin.id)
    assert user["role"] == "admin"


async def test_get_by_owner_and_id(restaurant_service, restaurant, owner, other_user):
    assert (await restaurant_service.get_by_owner(owner.id))["id"] == restaurant["id"]
    assert (await restaurant_service.get_by_id(restaurant["id"]))["name"] == "Green Leaf Kitchen"
    with pytest.raises(NotFoundError):
        await restaurant_service.get_by_owner(other_user.id)
    with pytest.raises(NotFoundError):
        await restaurant_service.get_by_id("not-an-id")


async def test_update_drops_country_change(restaurant_service, restaurant, owner):
    updated = await restaurant_service.update(
        owner, restaurant["id"], RestaurantUpdate(name="Green Leaf Cafe", country="IN")
    )
    assert updated["name"] == "Green Leaf Cafe"
    assert updated["country"] == "TH"


async def test_update_by_non_owner_is_forbidden(restaurant_service, restaurant, other_user, admin):
    for caller in (other_user, admin):
        with pytest.raises(ForbiddenError):
            await restaurant_service.update(caller, restaurant["id"], RestaurantUpdate(name="Hijacked"))


async def test_update_unknown_restaurant(restaurant_service, owner):
    with pytest.raises(NotFoundError):
        await restaurant_service.update(owner, "65f0000000000000000000ff", RestaurantUpdate(name="Nowhere"))


async def test_pending_restaurant_may_go_online_but_stays_hidden(restaurant_service, restaurant, owner):
    online = await restaurant_service.set_working_status(owner, restaurant["id"], WorkingStatus.ONLINE)

    assert online["status"] == "pending_approval"
    assert online["working_status"] == "online"
    assert online["is_orderable"] is False
    assert (await restaurant_service.list_restaurants())["total"] == 0
    assert (await restaurant_service.list_restaurants(working_status=WorkingStatus.ONLINE))["total"] == 0

    offline = await restaurant_service.set_working_status(owner, restaurant["id"], WorkingStatus.OFFLINE)
    assert offline["working_status"] == "offline"


async def test_going_online_stamps_last_active(restaurant_service, approved_restaurant, owner, clock):
    online = await restaurant_service.set_working_status(owner, approved_restaurant["id"], WorkingStatus.ONLINE)

    assert online["working_status"] == "online"
    assert online["last_active_at"] == clock().isoformat()
    assert online["is_orderable"] is True

    busy = await restaurant_service.set_working_status(owner, approved_restaurant["id"], WorkingStatus.BUSY)
    assert busy["is_orderable"] is False


async def test_working_status_is_owner_only(restaurant_service, approved_restaurant, other_user):
    with pytest.raises(ForbiddenError):
        await restaurant_service.set_working_status(other_user, approved_restaurant["id"], WorkingStatus.ONLINE)


async def test_approve_records_metadata_and_clears_rejection(restaurant_service, restaurant, admin, clock):
    rejected = await restaurant_service.reject(restaurant["id"], admin, "Missing licence")
    assert rejected["status"] == "rejected"
    assert rejected["rejection_reason"] == "Missing licence"
    assert rejected["working_status"] == "offline"

    clock.advance(days=1)
    approved = await restaurant_service.approve(restaurant["id"], admin)
    assert approved["status"] == "approved"
    assert approved["approved_by"] == admin.id
    assert approved["approved_at"] == clock().isoformat()
    assert approved["rejection_reason"] is None
    assert approved["rejected_at"] is None


async def test_suspend_forces_offline_and_reactivate_keeps_it(restaurant_service, approved_restaurant, owner, admin):
    await restaurant_service.set_working_status(owner, approved_restaurant["id"], WorkingStatus.ONLINE)

    suspended = await restaurant_service.suspend(approved_restaurant["id"], admin)
    assert suspended["status"] == "suspended"
    assert suspended["working_status"] == "offline"

    reactivated = await restaurant_service.reactivate(approved_restaurant["id"], admin)
    assert reactivated["status"] == "approved"
    assert reactivated["working_status"] == "offline"


async def test_suspended_owner_going_online_is_not_listed(restaurant_service, approved_restaurant, owner, admin):
    await restaurant_service.suspend(approved_restaurant["id"], admin)

    suspended_online = await restaurant_service.set_working_status(owner, approved_restaurant["id"], WorkingStatus.ONLINE)
    assert suspended_online["status"] == "suspended"
    assert suspended_online["working_status"] == "online"
    assert suspended_online["is_orderable"] is False
    assert (await restaurant_service.list_restaurants(country="TH"))["total"] == 0


@pytest.mark.parametrize("action", ["suspend", "reactivate"])
async def test_illegal_transitions_from_pending_conflict(restaurant_service, restaurant, admin, action):
    with pytest.raises(ConflictError):
        await getattr(restaurant_service, action)(restaurant["id"], admin)


async def test_approving_twice_conflicts(restaurant_service, approved_restaurant, admin):
    with pytest.raises(ConflictError):
        await restaurant_service.approve(approved_restaurant["id"], admin)


async def test_admin_actions_need_admin_role(restaurant_service, restaurant, owner):
    with pytest.raises(ForbiddenError):
        await restaurant_service.approve(restaurant["id"], owner)


async def test_transition_on_unknown_restaurant(restaurant_service, admin):
    with pytest.raises(NotFoundError):
        await restaurant_service.approve("65f0000000000000000000ff", admin)
    with pytest.raises(NotFoundError):
        await restaurant_service.approve("bogus", admin)


async def test_transitions_are_audited(restaurant_service, restaurant, admin, audit_service):
    await restaurant_service.reject(restaurant["id"], admin, "Blurry photos")
    await restaurant_service.approve(restaurant["id"], admin)

    logs = await audit_service.list_audit_logs(admin)
    assert [entry["action"] for entry in logs][:2] == ["approve_restaurant", "reject_restaurant"]
    assert logs[1]["reason"] == "Blurry photos"
    assert logs[0]["before"]["status"] == "rejected"
    assert logs[0]["after"]["status"] == "approved"


async def test_listing_hides_unapproved_restaurants(restaurant_service, restaurant, owner, admin):
    await restaurant_service.set_working_status(owner, restaurant["id"], WorkingStatus.OFFLINE)
    assert (await restaurant_service.list_restaurants())["total"] == 0
    assert (await restaurant_service.list_restaurants(working_status=WorkingStatus.OFFLINE))["total"] == 0

    await restaurant_service.approve(restaurant["id"], admin)
    page = await restaurant_service.list_restaurants(country="th")
    assert page["total"] == 1
    assert page["data"][0]["id"] == restaurant["id"]

    await restaurant_service.suspend(restaurant["id"], admin)
    assert (await restaurant_service.list_restaurants())["total"] == 0
    suspended = await restaurant_service.get_by_id(restaurant["id"])
    assert suspended["working_status"] == "offline"


async def test_admin_listing_sees_every_status(restaurant_service, restaurant, admin, owner):
    assert (await restaurant_service.list_restaurants(caller=owner))["total"] == 0
    assert (await restaurant_service.list_restaurants(caller=admin))["total"] == 1
    assert (await restaurant_service.list_restaurants(caller=admin, status="approved"))["total"] == 0


async def test_listing_filters_and_paginates(restaurant_service, user_service, admin, mongo):
    for i, country in enumerate(["TH", "TH", "IN"]):
        user = await user_service.get_or_create(country, f"08100000{i:02d}")
        created = await restaurant_service.register(str(user["_id"]), restaurant_payload(name=f"Kitchen {i}", country=country))
        await restaurant_service.approve(created["id"], admin)
        await mongo.restaurants_collection.update_one({"user_id": str(user["_id"])}, {"$set": {"rating": i}})

    page = await restaurant_service.list_restaurants(country="TH", take=1)
    assert page["total"] == 2
    assert [r["name"] for r in page["data"]] == ["Kitchen 1"]

    page = await restaurant_service.list_restaurants(country="TH", skip=1, take=1)
    assert [r["name"] for r in page["data"]] == ["Kitchen 0"]


async def test_pending_queue_is_oldest_first(restaurant_service, user_service, admin, clock):
    ids = []
    for i in range(3):
        user = await user_service.get_or_create("TH", f"08200000{i:02d}")
        created = await restaurant_service.register(str(user["_id"]), restaurant_payload(name=f"Queue {i}"))
        ids.append(created["id"])
        clock.advance(minutes=5)
    await restaurant_service.approve(ids[1], admin)

    page = await restaurant_service.list_pending(admin)
    assert page["total"] == 2
    assert [r["id"] for r in page["data"]] == [ids[0], ids[2]]


async def test_pending_queue_is_admin_only(restaurant_service, owner):
    with pytest.raises(ForbiddenError):
        await restaurant_service.list_pending(owner)


async def test_delete_cascades_menu_items(restaurant_service, restaurant, admin, mongo):
    await mongo.menu_items.insert_many([
        {"restaurant_id": restaurant["id"], "name": "Pad Thai", "price": 120.0},
        {"restaurant_id": restaurant["id"], "name": "Som Tam", "price": 90.0},
        {"restaurant_id": "someone-else", "name": "Khao Soi", "price": 110.0},
    ])

    result = await restaurant_service.delete(restaurant["id"], admin)
    assert result["deleted_menu_items"] == 2
    assert await mongo.menu_items.count_documents({}) == 1
    with pytest.raises(NotFoundError):
        await restaurant_service.get_by_id(restaurant["id"])


async def test_delete_requires_admin(restaurant_service, restaurant, owner):
    with pytest.raises(ForbiddenError):
        await restaurant_service.delete(restaurant["id"], owner)
