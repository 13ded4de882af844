# core/authorization.py
from enum import Enum
from typing import Optional

from fastapi import Depends

from core.dependencies import get_current_user
from core.exceptions import ForbiddenError
from models.user import CurrentUser, UserRole
from utils.logger import get_logger

logger = get_logger("Authorization")


class Action(str, Enum):
    RESTAURANT_UPDATE = "restaurant:update"
    RESTAURANT_WORKING_STATUS = "restaurant:working_status"
    RESTAURANT_REVIEW = "restaurant:review"
    RESTAURANT_DELETE = "restaurant:delete"
    RESTAURANT_LIST_ANY = "restaurant:list_any"
    MENU_MANAGE = "menu:manage"
    AUDIT_READ = "audit:read"


ADMIN_ACTIONS = {
    Action.RESTAURANT_REVIEW,
    Action.RESTAURANT_DELETE,
    Action.RESTAURANT_LIST_ANY,
    Action.AUDIT_READ,
}

OWNER_ACTIONS = {
    Action.RESTAURANT_UPDATE,
    Action.RESTAURANT_WORKING_STATUS,
    Action.MENU_MANAGE,
}


def is_allowed(identity: CurrentUser, action: Action, resource: Optional[dict] = None) -> bool:
    """
    Pure decision over (identity, action, resource). Owner actions compare the
    resource's recorded owner with the caller; admin actions need the admin role.
    """
    if action in ADMIN_ACTIONS:
        return identity.role == UserRole.ADMIN
    if action in OWNER_ACTIONS:
        return resource is not None and resource.get("user_id") == identity.id
    return False


def authorize(identity: CurrentUser, action: Action, resource: Optional[dict] = None, detail: str = "Forbidden") -> None:
    if not is_allowed(identity, action, resource):
        logger.warning(f"Forbidden: user {identity.id} role {identity.role.value} cannot {action.value}")
        raise ForbiddenError(detail)


def require_role(*allowed_roles):
    allowed = {UserRole(role) for role in allowed_roles}

    async def _dependency(current_user: CurrentUser = Depends(get_current_user)):
        if current_user.role not in allowed:
            logger.warning(f"Forbidden: {current_user.id} role {current_user.role.value} not in allowed {sorted(r.value for r in allowed)}")
            raise ForbiddenError("Forbidden: insufficient role")
        return current_user
    return _dependency
