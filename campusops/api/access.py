"""Access-change API router: requests, reviews and direct role changes."""

import enum
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from campusops.api.roles import role_listing
from campusops.core.constants import RequestStatus, TileKey
from campusops.core.exceptions import ValidationError
from campusops.core.security import RequireTile, get_current_user, require_admin
from campusops.db.session import get_db
from campusops.models.user import User
from campusops.schemas.schemas import (
    AccessPatch, AccessRequestCreate, AccessRequestOut, UserOut,
)
from campusops.services.access_service import AccessRequestFilter, access_service
from campusops.services.auth_service import auth_service

router = APIRouter(prefix="/access", tags=["access"])

can_view_access = RequireTile(TileKey.change_access)


class ListingType(str, enum.Enum):
    requests = "requests"
    users = "users"
    roles = "roles"


@router.get("")
async def list_access(
    listing_type: Optional[str] = Query(None, alias="type"),
    request_status: Optional[RequestStatus] = Query(None, alias="status"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """List requests, users or roles.

    Roles are visible to everyone signed in so they can pick a target role;
    requests and users need the change_access tile.
    """
    if listing_type is None:
        raise ValidationError("Provide type parameter (requests, users or roles)")
    try:
        listing = ListingType(listing_type)
    except ValueError:
        raise ValidationError(f"Unknown type '{listing_type}'")

    if listing == ListingType.roles:
        return role_listing(db)

    await can_view_access(user=user, db=db)
    if listing == ListingType.requests:
        requests = access_service.list_requests(
            db, AccessRequestFilter(status=request_status)
        )
        return [AccessRequestOut.model_validate(r) for r in requests]
    return [UserOut.model_validate(u) for u in auth_service.list_users(db)]


@router.post("", response_model=AccessRequestOut, status_code=status.HTTP_201_CREATED)
async def submit_request(
    body: AccessRequestCreate,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Ask for a different role."""
    return access_service.submit(db, user.id, body.requested_role_id, body.reason)


@router.patch("")
async def update_access(
    body: AccessPatch,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Direct role change or review of a pending request (admin only)."""
    if body.is_direct_change == body.is_review:
        raise ValidationError(
            "Provide either userId and newRoleId, or requestId and status"
        )
    if body.is_direct_change:
        user = access_service.direct_change(db, admin.id, body.user_id, body.new_role_id)
        return UserOut.model_validate(user)
    request = access_service.review(
        db, body.request_id, admin.id, body.status, body.review_comment
    )
    return AccessRequestOut.model_validate(request)
