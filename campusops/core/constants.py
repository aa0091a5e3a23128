"""Closed enumerations shared across the RBAC core."""

import enum

from campusops.core.exceptions import ValidationError


class RoleName(str, enum.Enum):
    DEVELOPER = "DEVELOPER"
    PROGRAM_OFFICE = "PROGRAM_OFFICE"
    FACULTY = "FACULTY"
    TA = "TA"
    STUDENT = "STUDENT"
    COCO = "COCO"
    SODEXO = "SODEXO"
    EXAM_CELL = "EXAM_CELL"


class TileKey(str, enum.Enum):
    """Feature tiles shown on the dashboard, each gated by a Permission row."""
    onboard_batch = "onboard_batch"
    manage_batches = "manage_batches"
    timetable = "timetable"
    attendance_hub = "attendance_hub"
    materials = "materials"
    concerns = "concerns"
    leave_requests = "leave_requests"
    sodexo_support = "sodexo_support"
    change_access = "change_access"


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class AuditAction(str, enum.Enum):
    ROLE_CHANGE = "ROLE_CHANGE"
    ACCESS_REQUEST_APPROVED = "ACCESS_REQUEST_APPROVED"
    ACCESS_REQUEST_REJECTED = "ACCESS_REQUEST_REJECTED"
    ROLE_UPSERTED = "ROLE_UPSERTED"
    PERMISSION_SET = "PERMISSION_SET"
    USER_PROVISIONED = "USER_PROVISIONED"
    USER_STATUS_CHANGE = "USER_STATUS_CHANGE"


DEFAULT_ROLE = RoleName.STUDENT

ENTITY_USER = "User"
ENTITY_ROLE = "Role"
ENTITY_ACCESS_REQUEST = "AccessChangeRequest"


def parse_enum(enum_cls, value, field: str):
    """Coerce ``value`` into ``enum_cls`` or raise ValidationError."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        allowed = ", ".join(m.value for m in enum_cls)
        raise ValidationError(f"Invalid {field} '{value}'. Expected one of: {allowed}")
