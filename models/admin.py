# models/admin.py
from typing import Optional

from pydantic import BaseModel


# Response for audit log item
class AuditItem(BaseModel):
    id: str
    actor_id: Optional[str] = None
    action: str
    resource_type: str
    resource_id: str
    before: Optional[dict] = None
    after: Optional[dict] = None
    reason: Optional[str] = None
    timestamp: Optional[str] = None


class DeleteResult(BaseModel):
    message: str
    restaurant_id: str
    deleted_menu_items: int
