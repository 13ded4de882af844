from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.exceptions import ForbiddenError, UnauthorizedError
from models.user import CurrentUser, UserStatus
from utils.logger import get_logger

logger = get_logger("Dependencies")

# tells fastapi to expect "Authorization: Bearer <token>"; missing header is handled below
bearer_scheme = HTTPBearer(auto_error=False)


def get_auth_service(request: Request):
    return request.app.state.auth_service


def get_restaurant_service(request: Request):
    return request.app.state.restaurant_service


def get_menu_service(request: Request):
    return request.app.state.menu_service


def get_audit_service(request: Request):
    return request.app.state.audit_service


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service=Depends(get_auth_service),
) -> CurrentUser:
    """
    Validate the access token, then re-read the account so the role reflects the
    latest state (registering a restaurant promotes the owner mid-session).
    """
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise UnauthorizedError("Not authenticated")

    payload = await auth_service.validate_token(credentials.credentials)
    user = await auth_service.users.get_by_id(payload["sub"])
    if user is None:
        logger.warning(f"User not found for token subject: {payload['sub']}")
        raise UnauthorizedError("User not found")
    if user.get("status") == UserStatus.SUSPENDED.value:
        logger.warning(f"Suspended user attempted access: {payload['sub']}")
        raise ForbiddenError("Account suspended")

    return CurrentUser(
        id=str(user["_id"]),
        role=user.get("role"),
        country_code=user.get("country_code"),
        phone_number=user.get("phone_number"),
        phone_verified=user.get("phone_verified", False),
        status=user.get("status", UserStatus.ACTIVE.value),
    )


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth_service=Depends(get_auth_service),
) -> Optional[CurrentUser]:
    """
    Public endpoints that behave differently for a signed-in admin. A stale or
    malformed token falls back to the anonymous view instead of a 401.
    """
    if credentials is None:
        return None
    try:
        return await get_current_user(credentials, auth_service)
    except UnauthorizedError as e:
        logger.info(f"Ignoring unusable token on public endpoint: {e.detail}")
        return None
