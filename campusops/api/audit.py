"""Audit API router."""

from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from campusops.core.config import settings
from campusops.core.constants import AuditAction
from campusops.core.security import require_admin
from campusops.db.session import get_db
from campusops.models.user import User
from campusops.schemas.schemas import AuditLogOut
from campusops.services.audit_service import AuditFilter, audit_service

router = APIRouter(prefix="/audit", tags=["audit"])


@router.get("", response_model=List[AuditLogOut])
async def recent_audit_logs(
    limit: int = Query(settings.AUDIT_DEFAULT_LIMIT),
    action: Optional[AuditAction] = Query(None),
    actor_id: Optional[int] = Query(None, alias="actorId"),
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Most recent audit entries (admin only)."""
    logs = audit_service.query(
        db, AuditFilter(action=action, actor_id=actor_id, limit=limit)
    )
    return [AuditLogOut.model_validate(log) for log in logs]


@router.get("/{entity_type}/{entity_id}", response_model=List[AuditLogOut])
async def entity_history(
    entity_type: str,
    entity_id: str,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Full history of one entity, most recent first (admin only)."""
    logs = audit_service.by_entity(db, entity_type, entity_id)
    return [AuditLogOut.model_validate(log) for log in logs]
