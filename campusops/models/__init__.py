"""Models package: import all models so metadata.create_all can discover them."""

from campusops.models.role import Role, Permission
from campusops.models.user import User
from campusops.models.access_request import AccessChangeRequest
from campusops.models.audit_log import AuditLog

__all__ = [
    "Role", "Permission", "User",
    "AccessChangeRequest", "AuditLog",
]
