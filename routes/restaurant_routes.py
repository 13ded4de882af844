# routes/restaurant_routes.py
from typing import Optional

from fastapi import APIRouter, Body, Depends, Path, Query

from core.authorization import require_role
from core.dependencies import get_current_user, get_optional_user, get_restaurant_service
from models.restaurant import (
    RejectPayload,
    RestaurantCreate,
    RestaurantOut,
    RestaurantPage,
    RestaurantStatus,
    RestaurantUpdate,
    WorkingStatus,
    WorkingStatusUpdate,
)
from models.user import CurrentUser, UserRole
from utils.logger import get_logger

logger = get_logger("Restaurant_Route")
router = APIRouter(prefix="/restaurants", tags=["Restaurants"])

require_admin = require_role(UserRole.ADMIN)


# Public: list approved restaurants
@router.get("", response_model=RestaurantPage)
@router.get("/", response_model=RestaurantPage, include_in_schema=False)
async def api_list_restaurants(
    country: Optional[str] = Query(None),
    working_status: Optional[WorkingStatus] = Query(None),
    status: Optional[RestaurantStatus] = Query(None, description="Admins only"),
    skip: int = Query(0, ge=0),
    take: int = Query(50, ge=1, le=100),
    caller: Optional[CurrentUser] = Depends(get_optional_user),
    restaurant_service=Depends(get_restaurant_service),
):
    """
    Public listing, always limited to approved restaurants. A signed-in admin sees
    every status and may filter on it.
    """
    return await restaurant_service.list_restaurants(caller, country, working_status, status, skip, take)


@router.post("/register", response_model=RestaurantOut)
async def api_register_restaurant(
    payload: RestaurantCreate = Body(...),
    current_user: CurrentUser = Depends(get_current_user),
    restaurant_service=Depends(get_restaurant_service),
):
    logger.info(f"Restaurant registration requested by {current_user.id}")
    return await restaurant_service.register(current_user.id, payload)


@router.get("/my-restaurant", response_model=RestaurantOut)
async def api_my_restaurant(current_user: CurrentUser = Depends(get_current_user), restaurant_service=Depends(get_restaurant_service)):
    return await restaurant_service.get_by_owner(current_user.id)


# Admin: review queue
@router.get("/admin/pending", response_model=RestaurantPage)
async def api_pending_restaurants(
    skip: int = Query(0, ge=0),
    take: int = Query(50, ge=1, le=100),
    current_admin: CurrentUser = Depends(require_admin),
    restaurant_service=Depends(get_restaurant_service),
):
    return await restaurant_service.list_pending(current_admin, skip, take)


# Public: get single restaurant
@router.get("/{restaurant_id}", response_model=RestaurantOut)
async def api_get_restaurant(restaurant_id: str = Path(...), restaurant_service=Depends(get_restaurant_service)):
    return await restaurant_service.get_by_id(restaurant_id)


# Owner: update own restaurant
@router.put("/{restaurant_id}", response_model=RestaurantOut)
async def api_update_restaurant(
    restaurant_id: str,
    payload: RestaurantUpdate = Body(...),
    current_user: CurrentUser = Depends(get_current_user),
    restaurant_service=Depends(get_restaurant_service),
):
    return await restaurant_service.update(current_user, restaurant_id, payload)


@router.put("/{restaurant_id}/working-status", response_model=RestaurantOut)
async def api_update_working_status(
    restaurant_id: str,
    payload: WorkingStatusUpdate = Body(...),
    current_user: CurrentUser = Depends(get_current_user),
    restaurant_service=Depends(get_restaurant_service),
):
    return await restaurant_service.set_working_status(current_user, restaurant_id, payload.status)


@router.post("/{restaurant_id}/approve", response_model=RestaurantOut)
async def api_approve_restaurant(restaurant_id: str, current_admin: CurrentUser = Depends(require_admin), restaurant_service=Depends(get_restaurant_service)):
    return await restaurant_service.approve(restaurant_id, current_admin)


@router.post("/{restaurant_id}/reject", response_model=RestaurantOut)
async def api_reject_restaurant(
    restaurant_id: str,
    payload: RejectPayload = Body(...),
    current_admin: CurrentUser = Depends(require_admin),
    restaurant_service=Depends(get_restaurant_service),
):
    return await restaurant_service.reject(restaurant_id, current_admin, payload.reason)


@router.post("/{restaurant_id}/suspend", response_model=RestaurantOut)
async def api_suspend_restaurant(restaurant_id: str, current_admin: CurrentUser = Depends(require_admin), restaurant_service=Depends(get_restaurant_service)):
    return await restaurant_service.suspend(restaurant_id, current_admin)


@router.post("/{restaurant_id}/reactivate", response_model=RestaurantOut)
async def api_reactivate_restaurant(restaurant_id: str, current_admin: CurrentUser = Depends(require_admin), restaurant_service=Depends(get_restaurant_service)):
    return await restaurant_service.reactivate(restaurant_id, current_admin)
