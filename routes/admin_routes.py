# routes/admin_routes.py
from typing import List

from fastapi import APIRouter, Depends, Path, Query

from core.authorization import require_role
from core.dependencies import get_audit_service, get_restaurant_service
from models.admin import AuditItem, DeleteResult
from models.user import CurrentUser, UserRole
from utils.logger import get_logger

router = APIRouter(prefix="/admin", tags=["Admin"])
logger = get_logger("Admin_Route")


@router.get("/audit-logs", response_model=List[AuditItem])
async def api_audit_logs(
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=200),
    current_admin: CurrentUser = Depends(require_role(UserRole.ADMIN)),
    audit_service=Depends(get_audit_service),
):
    return await audit_service.list_audit_logs(current_admin, skip=skip, limit=limit)


@router.delete("/restaurants/{restaurant_id}", response_model=DeleteResult)
async def api_delete_restaurant(
    restaurant_id: str = Path(..., description="Restaurant ObjectId string"),
    current_admin: CurrentUser = Depends(require_role(UserRole.ADMIN)),
    restaurant_service=Depends(get_restaurant_service),
):
    """
    Remove a restaurant together with its menu items (admin only).
    """
    logger.info(f"Restaurant deletion requested by {current_admin.id} for {restaurant_id}")
    return await restaurant_service.delete(restaurant_id, current_admin)
