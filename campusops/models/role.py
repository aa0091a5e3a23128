"""Role and Permission models for RBAC."""

from sqlalchemy import (
    Column, Integer, String, Boolean, DateTime, ForeignKey, UniqueConstraint, func
)
from sqlalchemy.orm import relationship
from campusops.db.base import Base


class Role(Base):
    """System role; owns one Permission row per feature tile."""
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(50), unique=True, nullable=False, index=True)  # RoleName value
    display_name = Column(String(255), nullable=False)
    is_admin = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now(), nullable=False)

    permissions = relationship(
        "Permission",
        back_populates="role",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="Permission.tile_key",
    )


class Permission(Base):
    """Per-role access flags for a single tile. can_write implies can_access."""
    __tablename__ = "role_permissions"
    __table_args__ = (
        UniqueConstraint("role_id", "tile_key", name="uq_role_permissions_role_tile"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    tile_key = Column(String(50), nullable=False)  # TileKey value
    can_access = Column(Boolean, default=False, nullable=False)
    can_write = Column(Boolean, default=False, nullable=False)

    role = relationship("Role", back_populates="permissions")
