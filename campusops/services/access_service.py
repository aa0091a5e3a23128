"""Access-change workflow: request/review state machine and admin override."""

import logging
from datetime import datetime, timezone
from typing import Optional, List

from pydantic import BaseModel
from sqlalchemy.orm import Session

from campusops.core.constants import (
    AuditAction, RequestStatus, ENTITY_ACCESS_REQUEST, ENTITY_USER, parse_enum,
)
from campusops.core.exceptions import (
    AlreadyDecided, NotFound, PermissionDenied, ValidationError,
)
from campusops.db.session import commit_or_fail
from campusops.models.access_request import AccessChangeRequest
from campusops.models.user import User
from campusops.services.audit_service import audit_service
from campusops.services.auth_service import auth_service
from campusops.services.role_service import role_service

logger = logging.getLogger("campusops.access")

DECISIONS = (RequestStatus.APPROVED, RequestStatus.REJECTED)


class AccessRequestFilter(BaseModel):
    """Typed criteria for listing access-change requests."""
    status: Optional[RequestStatus] = None
    requester_id: Optional[int] = None


def _require_admin(user: User) -> None:
    if not user.is_active or not user.role or not user.role.is_admin:
        raise PermissionDenied("Administrator role required")


class AccessService:
    """Governs how a user's role changes.

    A request moves PENDING -> APPROVED or PENDING -> REJECTED exactly once.
    Every role change lands in the audit log within the same transaction as
    the change itself.
    """

    @staticmethod
    def submit(
        db: Session, requester_id: int, requested_role_id: int, reason: str
    ) -> AccessChangeRequest:
        """Open a PENDING request, snapshotting the requester's current role."""
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A reason is required")
        if requested_role_id is None:
            raise ValidationError("requestedRoleId is required")

        requester = auth_service.get_user(db, requester_id)
        requested_role = role_service.get_role(db, requested_role_id)

        request = AccessChangeRequest(
            requester_id=requester.id,
            current_role_id=requester.role_id,
            requested_role_id=requested_role.id,
            reason=reason,
            status=RequestStatus.PENDING,
        )
        db.add(request)
        commit_or_fail(db, f"submitting access request for user {requester.id}")
        db.refresh(request)
        logger.info(
            "Access request %s: %s asks %s -> %s",
            request.id, requester.email, requester.role.name, requested_role.name,
        )
        return request

    @staticmethod
    def get_request(db: Session, request_id: int) -> AccessChangeRequest:
        request = (
            db.query(AccessChangeRequest)
            .filter(AccessChangeRequest.id == request_id)
            .first()
        )
        if not request:
            raise NotFound(f"Access request {request_id} not found")
        return request

    @staticmethod
    def review(
        db: Session,
        request_id: int,
        reviewer_id: int,
        decision: str,
        comment: Optional[str] = None,
    ) -> AccessChangeRequest:
        """Decide a pending request.

        The status flip is a compare-and-swap on ``status = PENDING``: a
        second or concurrent review updates zero rows and gets AlreadyDecided
        instead of applying the role change twice.
        """
        decision = parse_enum(RequestStatus, decision, "status")
        if decision not in DECISIONS:
            raise ValidationError("status must be APPROVED or REJECTED")

        request = AccessService.get_request(db, request_id)
        reviewer = auth_service.get_user(db, reviewer_id)
        _require_admin(reviewer)

        comment = (comment or "").strip() or None
        updated = (
            db.query(AccessChangeRequest)
            .filter(
                AccessChangeRequest.id == request.id,
                AccessChangeRequest.status == RequestStatus.PENDING,
            )
            .update(
                {
                    AccessChangeRequest.status: decision,
                    AccessChangeRequest.reviewer_id: reviewer.id,
                    AccessChangeRequest.review_comment: comment,
                    AccessChangeRequest.reviewed_at: datetime.now(timezone.utc),
                },
                synchronize_session=False,
            )
        )
        if updated != 1:
            db.rollback()
            raise AlreadyDecided(f"Access request {request.id} has already been reviewed")

        requester = auth_service.get_user(db, request.requester_id)
        if decision == RequestStatus.APPROVED:
            previous_role = requester.role.name
            new_role = role_service.get_role(db, request.requested_role_id)
            requester.role_id = new_role.id
            audit_service.record(
                db, reviewer, AuditAction.ACCESS_REQUEST_APPROVED,
                ENTITY_ACCESS_REQUEST, request.id,
                {
                    "requesterId": requester.id,
                    "previousRole": previous_role,
                    "newRole": new_role.name,
                    "newRoleId": new_role.id,
                    "reviewComment": comment,
                },
                commit=False,
            )
        else:
            audit_service.record(
                db, reviewer, AuditAction.ACCESS_REQUEST_REJECTED,
                ENTITY_ACCESS_REQUEST, request.id,
                {
                    "requesterId": requester.id,
                    "requestedRoleId": request.requested_role_id,
                    "reviewComment": comment,
                },
                commit=False,
            )

        commit_or_fail(db, f"reviewing access request {request.id}")
        db.refresh(request)
        logger.info(
            "Access request %s %s by %s", request.id, decision.value, reviewer.email
        )
        return request

    @staticmethod
    def direct_change(
        db: Session, admin_id: int, target_user_id: int, new_role_id: int
    ) -> User:
        """Set a user's role without a request. Always audited as ROLE_CHANGE."""
        admin = auth_service.get_user(db, admin_id)
        _require_admin(admin)
        target = auth_service.get_user(db, target_user_id)
        new_role = role_service.get_role(db, new_role_id)

        previous_role = target.role.name
        target.role_id = new_role.id
        audit_service.record(
            db, admin, AuditAction.ROLE_CHANGE, ENTITY_USER, target.id,
            {
                "previousRole": previous_role,
                "newRole": new_role.name,
                "changedBy": admin.email,
            },
            commit=False,
        )
        commit_or_fail(db, f"changing role of user {target.id}")
        db.refresh(target)
        logger.info(
            "Role of %s changed %s -> %s by %s",
            target.email, previous_role, new_role.name, admin.email,
        )
        return target

    @staticmethod
    def list_requests(
        db: Session, criteria: Optional[AccessRequestFilter] = None
    ) -> List[AccessChangeRequest]:
        """Requests matching ``criteria``, newest first."""
        criteria = criteria or AccessRequestFilter()
        query = db.query(AccessChangeRequest)
        if criteria.status is not None:
            query = query.filter(AccessChangeRequest.status == criteria.status)
        if criteria.requester_id is not None:
            query = query.filter(AccessChangeRequest.requester_id == criteria.requester_id)
        return query.order_by(
            AccessChangeRequest.created_at.desc(), AccessChangeRequest.id.desc()
        ).all()


access_service = AccessService()
