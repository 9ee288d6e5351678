import logging
from typing import Any

from railops.api.models import AuditEntry, AuditLog, FilterState
from railops.errors import TransportError
from .base import BaseAdapter

logger = logging.getLogger(__name__)


def create_audit_log(action:str, actor:str, details:dict[str, Any]|None=None, train_id:str|None=None,
                     rec_id:str|None=None, reason:str|None=None)->AuditEntry:
    return AuditEntry(action=action, actor=actor, details=details, train_id=train_id, rec_id=rec_id,
                      reason=reason, outcome="success")


def audit_params(filters:FilterState|None=None, actors:list[str]|None=None, actions:list[str]|None=None)->dict:
    params = {}
    if filters and filters.date_range:
        params["startDate"] = filters.date_range.start.isoformat()
        params["endDate"] = filters.date_range.end.isoformat()
    if filters and filters.train_ids:
        params["trainIds"] = ",".join(filters.train_ids)
    if actors: params["actors"] = ",".join(actors)
    if actions: params["actions"] = ",".join(actions)
    return params


class AuditAdapter(BaseAdapter):
    """Audit trail. Writes fail hard; reads fail soft."""

    async def post_audit(self, entry:AuditEntry)->str:
        """Record ``entry`` and return the server-assigned id. Raises TransportError on failure."""
        try:
            envelope = await self.transport.post("/audit", entry)
        except TransportError as e:
            logger.error("Failed to post audit log %r: %s", entry.action, e)
            raise
        return (self.data(envelope) or {}).get("id", "")

    async def get_audit(self, filters:FilterState|None=None, actors:list[str]|None=None,
                        actions:list[str]|None=None)->list[AuditLog]:
        return await self._soft("get audit logs",
                                self.transport.get("/audit", params=audit_params(filters, actors, actions) or None),
                                lambda d: [AuditLog.model_validate(l) for l in d], list)

    async def amend_audit(self, log_id:str, updates:dict[str, Any])->str|None:
        body = {"logId": log_id, "updates": updates}
        return await self._soft(f"amend audit log {log_id}", self.transport.put("/audit", body),
                                lambda d: d.get("amendmentId"), lambda: None)
