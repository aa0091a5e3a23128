"""Audit log model: append-only."""

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from campusops.db.base import Base


class AuditLog(Base):
    """Immutable audit trail for privilege-relevant mutations.

    This table is APPEND-ONLY: no UPDATE or DELETE operations should ever
    be performed on it (enforced at application level). The actor's email
    is copied in so entries stay readable if the user row changes.
    """
    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    actor_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)
    actor_email = Column(String(255), nullable=True)
    action = Column(String(100), nullable=False, index=True)  # AuditAction value
    entity_type = Column(String(50), nullable=False, index=True)  # User, Role, AccessChangeRequest
    entity_id = Column(String(100), nullable=False, index=True)
    details_json = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False, index=True)

    actor = relationship("User", lazy="joined")
