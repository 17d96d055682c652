"""Audit recorder.

Append-only. ``record`` is called synchronously after the audited write
and before the operation returns. A failed audit write is logged on the
``securevet.audit`` logger and reported as ``False``; it never turns a
successful operation into a failed one.
"""
import logging
from typing import List, Optional

from securevet.core.config import settings
from securevet.core.store import AUDIT_LOGS, DocumentStore
from securevet.models.audit import AuditAction, AuditLogEntry
from securevet.models.user import Actor
from securevet.services.policy import Operation, authorize
from securevet.services.time_utils import now_iso

audit_logger = logging.getLogger("securevet.audit")


class AuditRecorder:
    def __init__(self, store: DocumentStore):
        self.store = store

    def record(self, who, action: AuditAction, details: str = "") -> bool:
        """Append one entry. ``who`` is an Actor or a bare email."""
        email = who.email if isinstance(who, Actor) else who
        entry = {
            "user_email": email or "unknown",
            "action": action.value,
            "details": details,
            "timestamp": now_iso(),
        }
        try:
            self.store.insert(AUDIT_LOGS, entry)
        except Exception:
            audit_logger.exception(
                "Audit write failed (action=%s, user=%s, details=%s)",
                entry["action"],
                entry["user_email"],
                details,
            )
            return False
        return True

    def recent(self, actor: Actor, limit: Optional[int] = None) -> List[AuditLogEntry]:
        authorize(actor, Operation.AUDIT_READ)
        docs = self.store.query(
            AUDIT_LOGS,
            order_by="timestamp",
            descending=True,
            limit=limit or settings.AUDIT_LOG_LIMIT,
        )
        return [AuditLogEntry(**d) for d in docs]
