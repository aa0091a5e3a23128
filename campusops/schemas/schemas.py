"""Pydantic schemas for API request/response serialization.

Wire names are camelCase; Python attributes stay snake_case.
"""

import json
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from typing import Optional, List, Dict, Any
from datetime import datetime

from campusops.core.constants import RequestStatus, RoleName, TileKey


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# ---- Auth ----
class LoginRequest(CamelModel):
    email: str = Field(..., min_length=1)
    password: Optional[str] = None

class LoginUser(CamelModel):
    id: int
    email: str
    name: str
    role: str
    role_display_name: str

class LoginResponse(CamelModel):
    token: str
    user: LoginUser


# ---- User ----
class AllowedTile(CamelModel):
    tile_key: str
    can_write: bool

class MeResponse(CamelModel):
    id: int
    email: str
    name: str
    role: str
    role_display_name: str
    is_admin: bool
    allowed_tiles: List[AllowedTile]

class RoleBrief(CamelModel):
    id: int
    name: str
    display_name: str
    is_admin: bool

class UserOut(CamelModel):
    id: int
    email: str
    name: str
    is_active: bool = True
    role_id: int
    role: Optional[RoleBrief] = None
    last_login_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

class UserStatusUpdate(CamelModel):
    is_active: bool


# ---- Roles & permissions ----
class RoleOut(RoleBrief):
    user_count: Optional[int] = None
    created_at: Optional[datetime] = None

class RoleUpsert(CamelModel):
    name: RoleName
    display_name: str = Field(..., min_length=1)
    is_admin: bool = False

class PermissionOut(CamelModel):
    id: int
    role_id: int
    tile_key: str
    can_access: bool
    can_write: bool

class PermissionSet(CamelModel):
    tile_key: TileKey
    can_access: bool
    can_write: bool = False

    @model_validator(mode="after")
    def write_implies_access(self):
        if self.can_write and not self.can_access:
            raise ValueError("canWrite requires canAccess")
        return self


# ---- Access change ----
class AccessRequestCreate(CamelModel):
    requested_role_id: int
    reason: str = Field(..., min_length=1)

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("reason must not be blank")
        return v.strip()

class AccessPatch(CamelModel):
    """Either a direct change (userId + newRoleId) or a review (requestId + status)."""
    user_id: Optional[int] = None
    new_role_id: Optional[int] = None
    request_id: Optional[int] = None
    status: Optional[RequestStatus] = None
    review_comment: Optional[str] = None

    @property
    def is_direct_change(self) -> bool:
        return self.user_id is not None and self.new_role_id is not None

    @property
    def is_review(self) -> bool:
        return self.request_id is not None and self.status is not None

class UserRef(CamelModel):
    id: int
    name: str
    email: str

class AccessRequestOut(CamelModel):
    id: int
    requester_id: int
    current_role_id: int
    requested_role_id: int
    reason: str
    status: RequestStatus
    reviewer_id: Optional[int] = None
    review_comment: Optional[str] = None
    created_at: Optional[datetime] = None
    reviewed_at: Optional[datetime] = None
    requester: Optional[UserRef] = None
    reviewer: Optional[UserRef] = None
    current_role: Optional[RoleBrief] = None
    requested_role: Optional[RoleBrief] = None


# ---- Audit ----
class AuditLogOut(CamelModel):
    id: int
    actor_id: Optional[int] = None
    actor_email: Optional[str] = None
    action: str
    entity_type: str
    entity_id: str
    details: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None

    @model_validator(mode="before")
    @classmethod
    def decode_details(cls, data: Any) -> Any:
        if hasattr(data, "details_json"):
            return {
                "id": data.id,
                "actor_id": data.actor_id,
                "actor_email": data.actor_email,
                "action": data.action,
                "entity_type": data.entity_type,
                "entity_id": data.entity_id,
                "details": json.loads(data.details_json) if data.details_json else None,
                "created_at": data.created_at,
            }
        return data


# ---- Generic ----
class MessageResponse(CamelModel):
    message: str
    detail: Optional[Any] = None
