"""
Audit logging for compliance traceability.

Every mutating workflow records who did what to which entity. Entries are
written to the audit_logs table through a session of their own, so they are
committed independently of the business transaction that triggered them. The
controlled-substance trail therefore survives a later validation failure.

Audit writes are fire-and-forget: a failed write is logged on the operational
channel and never raised to the caller.
"""
import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from app.models.audit_log import AuditLogEntry

# Separate logger for audit events (can be shipped to centralized logging)
audit_logger = logging.getLogger("audit")
logger = logging.getLogger(__name__)


class AuditLog:
    """Append-only audit trail. There is deliberately no update or delete method."""

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None):
        self._session_factory = session_factory

    def _new_session(self) -> Session:
        if self._session_factory is not None:
            return self._session_factory()
        # Resolved lazily so tests can swap the default engine
        from app.db.session import SessionLocal
        return SessionLocal()

    def record(
        self,
        user_id: Optional[int],
        action: str,
        entity_type: str,
        entity_id: Any,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Write one audit entry.

        Usage:
            audit.record(user.id, "CREATE", "prescription", rx.id, {"hasWarnings": True})
            audit.record(user.id, "DISPENSE_CONTROLLED", "prescription", "pending", {...})
        """
        log_entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "event_type": f"{entity_type}.{action}",
            "user_id": user_id,
            "entity_id": None if entity_id is None else str(entity_id),
        }
        if details:
            log_entry["details"] = details

        db = None
        try:
            db = self._new_session()
            db.add(
                AuditLogEntry(
                    user_id=user_id,
                    action=action,
                    entity_type=entity_type,
                    entity_id=log_entry["entity_id"],
                    details=details,
                )
            )
            db.commit()
            audit_logger.info(json.dumps(log_entry, default=str))
        except Exception as e:
            if db is not None:
                db.rollback()
            logger.error(
                f"Failed to write audit entry {log_entry['event_type']} for {log_entry['entity_id']}: {e}",
                exc_info=True,
            )
        finally:
            if db is not None:
                db.close()

    def query(
        self,
        db: Session,
        user_id: Optional[int] = None,
        action: Optional[str] = None,
        entity_type: Optional[str] = None,
        limit: int = 200,
    ) -> List[AuditLogEntry]:
        """Newest-first listing for the compliance screen."""
        q = db.query(AuditLogEntry)
        if user_id is not None:
            q = q.filter(AuditLogEntry.user_id == user_id)
        if action:
            q = q.filter(AuditLogEntry.action == action)
        if entity_type:
            q = q.filter(AuditLogEntry.entity_type == entity_type)
        return q.order_by(AuditLogEntry.id.desc()).limit(limit).all()


audit_log = AuditLog()


def get_audit_log() -> AuditLog:
    """FastAPI dependency; overridden in tests."""
    return audit_log
