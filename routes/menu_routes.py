from typing import List

from fastapi import APIRouter, Body, Depends, Path, Query

from core.dependencies import get_current_user, get_menu_service
from models.menu import MenuItemCreate, MenuItemOut, MenuItemUpdate, MenuStats
from models.user import CurrentUser, MessageResponse
from utils.logger import get_logger

logger = get_logger("Menu_Route")
router = APIRouter(prefix="/menu", tags=["Menu"])


# Public: effectively available items of a restaurant
@router.get("/restaurants/{restaurant_id}", response_model=List[MenuItemOut])
async def api_list_menu(restaurant_id: str = Path(...), menu_service=Depends(get_menu_service)):
    return await menu_service.get_menu(restaurant_id)


@router.get("/restaurants/{restaurant_id}/search", response_model=List[MenuItemOut])
async def api_search_menu(restaurant_id: str, q: str = Query(""), menu_service=Depends(get_menu_service)):
    return await menu_service.search(restaurant_id, q)


@router.get("/restaurants/{restaurant_id}/dietary/{tag}", response_model=List[MenuItemOut])
async def api_menu_by_dietary_tag(restaurant_id: str, tag: str, menu_service=Depends(get_menu_service)):
    return await menu_service.by_dietary_tag(restaurant_id, tag)


@router.get("/restaurants/{restaurant_id}/bestsellers", response_model=List[MenuItemOut])
async def api_bestsellers(restaurant_id: str, limit: int = Query(10), menu_service=Depends(get_menu_service)):
    return await menu_service.bestsellers(restaurant_id, limit)


@router.get("/items/{item_id}", response_model=MenuItemOut)
async def api_get_menu_item(item_id: str, menu_service=Depends(get_menu_service)):
    return await menu_service.get_item(item_id)


# Owner: manage items of own restaurant
@router.post("/restaurants/{restaurant_id}/items", response_model=MenuItemOut)
async def api_create_menu_item(
    restaurant_id: str,
    payload: MenuItemCreate = Body(...),
    current_user: CurrentUser = Depends(get_current_user),
    menu_service=Depends(get_menu_service),
):
    return await menu_service.add_item(current_user, restaurant_id, payload)


@router.put("/restaurants/{restaurant_id}/items/{item_id}", response_model=MenuItemOut)
async def api_update_menu_item(
    restaurant_id: str,
    item_id: str,
    payload: MenuItemUpdate = Body(...),
    current_user: CurrentUser = Depends(get_current_user),
    menu_service=Depends(get_menu_service),
):
    return await menu_service.update_item(current_user, restaurant_id, item_id, payload)


@router.delete("/restaurants/{restaurant_id}/items/{item_id}", response_model=MessageResponse)
async def api_delete_menu_item(
    restaurant_id: str,
    item_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    menu_service=Depends(get_menu_service),
):
    return await menu_service.delete_item(current_user, restaurant_id, item_id)


@router.patch("/restaurants/{restaurant_id}/items/{item_id}/availability", response_model=MenuItemOut)
async def api_toggle_availability(
    restaurant_id: str,
    item_id: str,
    current_user: CurrentUser = Depends(get_current_user),
    menu_service=Depends(get_menu_service),
):
    return await menu_service.toggle_availability(current_user, restaurant_id, item_id)


@router.get("/restaurants/{restaurant_id}/stats", response_model=MenuStats)
async def api_menu_stats(restaurant_id: str, current_user: CurrentUser = Depends(get_current_user), menu_service=Depends(get_menu_service)):
    return await menu_service.get_stats(current_user, restaurant_id)
