"""Roles API router: role registry and tile permission matrix."""

from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from campusops.core.security import get_current_user, require_admin
from campusops.db.session import get_db
from campusops.models.user import User
from campusops.schemas.schemas import (
    PermissionOut, PermissionSet, RoleOut, RoleUpsert,
)
from campusops.services.role_service import role_service

router = APIRouter(prefix="/roles", tags=["roles"])


def role_listing(db: Session) -> List[RoleOut]:
    return [
        RoleOut.model_validate(row["role"]).model_copy(update={"user_count": row["user_count"]})
        for row in role_service.list_roles_with_counts(db)
    ]


@router.get("", response_model=List[RoleOut])
async def list_roles(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """All roles with their user counts."""
    return role_listing(db)


@router.put("", response_model=RoleOut)
async def upsert_role(
    body: RoleUpsert,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Create or update a role by name (admin only)."""
    return role_service.upsert_role(
        db, body.name.value, body.display_name, body.is_admin, actor=admin
    )


@router.get("/{role_id}/permissions", response_model=List[PermissionOut])
async def list_permissions(
    role_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    """Permission rows of a role."""
    return role_service.list_permissions(db, role_id)


@router.put("/{role_id}/permissions", response_model=PermissionOut)
async def set_permission(
    role_id: int,
    body: PermissionSet,
    db: Session = Depends(get_db),
    admin: User = Depends(require_admin),
):
    """Set access/write flags of one tile for a role (admin only)."""
    return role_service.set_permission(
        db, role_id, body.tile_key.value, body.can_access, body.can_write, actor=admin
    )
