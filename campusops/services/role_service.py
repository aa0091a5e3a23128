"""Role store: roles and their tile permission matrix."""

import logging
from typing import Optional, List, Dict, Any

from sqlalchemy import func
from sqlalchemy.orm import Session

from campusops.core.constants import (
    AuditAction, RoleName, TileKey, ENTITY_ROLE, parse_enum,
)
from campusops.core.exceptions import NotFound, ValidationError
from campusops.db.session import commit_or_fail
from campusops.models.role import Role, Permission
from campusops.models.user import User
from campusops.services.audit_service import audit_service

logger = logging.getLogger("campusops.roles")


class RoleService:
    """Authoritative registry of roles and per-tile permissions.

    Both writers are upserts: a role is keyed by name and a permission by
    (role, tile), so replaying seed data or an admin edit never duplicates
    rows.
    """

    @staticmethod
    def get_role(db: Session, role_id: int) -> Role:
        role = db.query(Role).filter(Role.id == role_id).first()
        if not role:
            raise NotFound(f"Role {role_id} not found")
        return role

    @staticmethod
    def get_role_by_name(db: Session, name: str) -> Role:
        role_name = parse_enum(RoleName, name, "role name")
        role = db.query(Role).filter(Role.name == role_name.value).first()
        if not role:
            raise NotFound(f"Role '{role_name.value}' not found")
        return role

    @staticmethod
    def upsert_role(
        db: Session,
        name: str,
        display_name: str,
        is_admin: bool,
        actor: Optional[User] = None,
    ) -> Role:
        """Create the role or update its display name and admin flag."""
        role_name = parse_enum(RoleName, name, "role name")
        if not display_name or not display_name.strip():
            raise ValidationError("display_name is required")

        role = db.query(Role).filter(Role.name == role_name.value).first()
        previous = None
        if role:
            previous = {"displayName": role.display_name, "isAdmin": role.is_admin}
            role.display_name = display_name.strip()
            role.is_admin = bool(is_admin)
        else:
            role = Role(
                name=role_name.value,
                display_name=display_name.strip(),
                is_admin=bool(is_admin),
            )
            db.add(role)
        db.flush()

        if actor is not None:
            audit_service.record(
                db, actor, AuditAction.ROLE_UPSERTED, ENTITY_ROLE, role.id,
                {
                    "role": role.name,
                    "previous": previous,
                    "new": {"displayName": role.display_name, "isAdmin": role.is_admin},
                },
                commit=False,
            )
        commit_or_fail(db, f"upserting role {role.name}")
        db.refresh(role)
        logger.info("Role %s upserted (admin=%s)", role.name, role.is_admin)
        return role

    @staticmethod
    def set_permission(
        db: Session,
        role_id: int,
        tile_key: str,
        can_access: bool,
        can_write: bool,
        actor: Optional[User] = None,
    ) -> Permission:
        """Set the flags for (role, tile); last write wins."""
        tile = parse_enum(TileKey, tile_key, "tile key")
        if can_write and not can_access:
            raise ValidationError(
                f"canWrite requires canAccess for tile '{tile.value}'"
            )
        role = RoleService.get_role(db, role_id)

        perm = (
            db.query(Permission)
            .filter(Permission.role_id == role.id, Permission.tile_key == tile.value)
            .first()
        )
        previous = None
        if perm:
            previous = {"canAccess": perm.can_access, "canWrite": perm.can_write}
            perm.can_access = bool(can_access)
            perm.can_write = bool(can_write)
        else:
            perm = Permission(
                role_id=role.id,
                tile_key=tile.value,
                can_access=bool(can_access),
                can_write=bool(can_write),
            )
            db.add(perm)
        db.flush()

        if actor is not None:
            audit_service.record(
                db, actor, AuditAction.PERMISSION_SET, ENTITY_ROLE, role.id,
                {
                    "role": role.name,
                    "tileKey": tile.value,
                    "previous": previous,
                    "new": {"canAccess": perm.can_access, "canWrite": perm.can_write},
                },
                commit=False,
            )
        commit_or_fail(db, f"setting {tile.value} for role {role.name}")
        db.refresh(perm)
        return perm

    @staticmethod
    def list_permissions(db: Session, role_id: int) -> List[Permission]:
        role = RoleService.get_role(db, role_id)
        return (
            db.query(Permission)
            .filter(Permission.role_id == role.id)
            .order_by(Permission.tile_key)
            .all()
        )

    @staticmethod
    def allowed_tiles(db: Session, role_id: int) -> List[Dict[str, Any]]:
        """Tiles the role may see, with their write flag."""
        return [
            {"tile_key": p.tile_key, "can_write": p.can_write}
            for p in RoleService.list_permissions(db, role_id)
            if p.can_access
        ]

    @staticmethod
    def is_admin(db: Session, role_id: int) -> bool:
        return bool(RoleService.get_role(db, role_id).is_admin)

    @staticmethod
    def can(db: Session, role_id: int, tile_key: str, write: bool = False) -> bool:
        tile = parse_enum(TileKey, tile_key, "tile key")
        perm = (
            db.query(Permission)
            .filter(Permission.role_id == role_id, Permission.tile_key == tile.value)
            .first()
        )
        if not perm or not perm.can_access:
            return False
        return perm.can_write if write else True

    @staticmethod
    def list_roles_with_counts(db: Session) -> List[Dict[str, Any]]:
        """All roles ordered by name, each with its number of users."""
        rows = (
            db.query(Role, func.count(User.id))
            .outerjoin(User, User.role_id == Role.id)
            .group_by(Role.id)
            .order_by(Role.name)
            .all()
        )
        return [{"role": role, "user_count": count} for role, count in rows]


role_service = RoleService()
