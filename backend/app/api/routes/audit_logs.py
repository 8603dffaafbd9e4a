"""Compliance listing of the audit trail. Read-only."""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.api.deps import get_db, require
from app.core.audit import AuditLog, get_audit_log
from app.core.permissions import Operation
from app.models.user import User
from app.schemas.audit import AuditLogResponse

router = APIRouter()


@router.get("", response_model=list[AuditLogResponse])
def list_audit_logs(
    user_id: Optional[int] = Query(None),
    action: Optional[str] = Query(None),
    entity_type: Optional[str] = Query(None),
    limit: int = Query(200, ge=1, le=1000),
    db: Session = Depends(get_db),
    current_user: User = Depends(require(Operation.VIEW_AUDIT_LOG)),
    audit: AuditLog = Depends(get_audit_log),
):
    return audit.query(db, user_id=user_id, action=action, entity_type=entity_type, limit=limit)
