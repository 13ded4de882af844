# services/admin_service.py
from typing import Optional

from core.authorization import Action, authorize
from core.exceptions import handles_store_errors
from db.db_operation import MongoConnection
from models.user import CurrentUser
from utils.clock import Clock, isoformat, utc_now
from utils.logger import get_logger

logger = get_logger("Admin_Service")


class AuditService:
    def __init__(self, mongo: MongoConnection, clock: Clock = utc_now):
        self.audit_logs = mongo.audit_logs
        self.clock = clock

    async def record(
        self,
        actor_id: Optional[str],
        action: str,
        resource_type: str,
        resource_id: str,
        before: Optional[dict] = None,
        after: Optional[dict] = None,
        reason: Optional[str] = None,
        session=None,
    ) -> None:
        audit_doc = {
            "actor_id": actor_id,
            "action": action,
            "resource_type": resource_type,
            "resource_id": resource_id,
            "before": before,
            "after": after,
            "reason": reason,
            "timestamp": self.clock(),
        }
        await self.audit_logs.insert_one(audit_doc, session=session)
        logger.info(f"{actor_id} performed {action} on {resource_type} {resource_id}")

    @handles_store_errors("list audit logs")
    async def list_audit_logs(self, actor: CurrentUser, skip: int = 0, limit: int = 50):
        """
        Simple pagination for audit logs, newest first.
        """
        authorize(actor, Action.AUDIT_READ)
        cursor = self.audit_logs.find({}).sort([("timestamp", -1), ("_id", -1)]).skip(skip).limit(limit)
        items = await cursor.to_list(length=limit)
        return [
            {
                "id": str(a["_id"]),
                "actor_id": a.get("actor_id"),
                "action": a["action"],
                "resource_type": a["resource_type"],
                "resource_id": a["resource_id"],
                "before": a.get("before"),
                "after": a.get("after"),
                "reason": a.get("reason"),
                "timestamp": isoformat(a.get("timestamp")),
            } for a in items
        ]
