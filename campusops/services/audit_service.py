"""Audit service: append-only audit trail for privilege mutations."""

import json
import logging
from typing import Optional, Any, List

from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from campusops.core.config import settings
from campusops.core.constants import AuditAction
from campusops.core.exceptions import StorageFailure
from campusops.db.session import commit_or_fail
from campusops.models.audit_log import AuditLog
from campusops.models.user import User

logger = logging.getLogger("campusops.audit")


class AuditFilter(BaseModel):
    """Typed criteria for audit queries."""
    actor_id: Optional[int] = None
    action: Optional[AuditAction] = None
    entity_type: Optional[str] = None
    entity_id: Optional[str] = None
    # None means unbounded
    limit: Optional[int] = 50


def clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return settings.AUDIT_DEFAULT_LIMIT
    return max(0, min(int(limit), settings.AUDIT_MAX_LIMIT))


class AuditService:
    """Records immutable audit log entries for privilege-relevant events."""

    @staticmethod
    def record(
        db: Session,
        actor: Optional[User],
        action: AuditAction,
        entity_type: str,
        entity_id: Any,
        details: Optional[dict] = None,
        commit: bool = True,
    ) -> AuditLog:
        """Append a single audit log record.

        With ``commit=False`` the entry joins the caller's transaction, so
        the audited mutation and its record land together or not at all.
        Otherwise it commits immediately to ensure the audit is never lost.
        """
        entry = AuditLog(
            actor_id=actor.id if actor else None,
            actor_email=actor.email if actor else None,
            action=AuditAction(action).value,
            entity_type=entity_type,
            entity_id=str(entity_id),
            details_json=json.dumps(details, default=str, sort_keys=True) if details is not None else None,
        )
        db.add(entry)
        if commit:
            commit_or_fail(db, f"recording {entry.action}")
        return entry

    @staticmethod
    def query(db: Session, criteria: AuditFilter) -> List[AuditLog]:
        """Audit entries matching ``criteria``, most recent first."""
        query = db.query(AuditLog)

        if criteria.actor_id is not None:
            query = query.filter(AuditLog.actor_id == criteria.actor_id)
        if criteria.action is not None:
            query = query.filter(AuditLog.action == criteria.action.value)
        if criteria.entity_type:
            query = query.filter(AuditLog.entity_type == criteria.entity_type)
        if criteria.entity_id is not None:
            query = query.filter(AuditLog.entity_id == str(criteria.entity_id))

        query = query.order_by(AuditLog.created_at.desc(), AuditLog.id.desc())
        if criteria.limit is not None:
            query = query.limit(clamp_limit(criteria.limit))
        try:
            return query.all()
        except SQLAlchemyError as exc:
            logger.exception("Audit query failed")
            raise StorageFailure("Storage failure while reading audit log") from exc

    @staticmethod
    def recent(db: Session, limit: Optional[int] = None) -> List[AuditLog]:
        return AuditService.query(db, AuditFilter(limit=clamp_limit(limit)))

    @staticmethod
    def by_entity(db: Session, entity_type: str, entity_id: Any) -> List[AuditLog]:
        return AuditService.query(
            db,
            AuditFilter(
                entity_type=entity_type,
                entity_id=str(entity_id),
                limit=None,
            ),
        )

    @staticmethod
    def by_actor(db: Session, actor_id: int, limit: int = 100) -> List[AuditLog]:
        return AuditService.query(db, AuditFilter(actor_id=actor_id, limit=limit))

    @staticmethod
    def details(entry: AuditLog) -> Optional[dict]:
        """Decoded detail payload of an entry."""
        return json.loads(entry.details_json) if entry.details_json else None


audit_service = AuditService()
