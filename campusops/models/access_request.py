"""Access-change request model."""

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum, func
from sqlalchemy.orm import relationship
from campusops.db.base import Base
from campusops.core.constants import RequestStatus


class AccessChangeRequest(Base):
    """A user's ticket to move to another role.

    PENDING until reviewed exactly once; APPROVED and REJECTED are terminal.
    """
    __tablename__ = "access_change_requests"

    id = Column(Integer, primary_key=True, autoincrement=True)
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    current_role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)  # snapshot at submission
    requested_role_id = Column(Integer, ForeignKey("roles.id"), nullable=False)
    reason = Column(Text, nullable=False)
    status = Column(Enum(RequestStatus), default=RequestStatus.PENDING, nullable=False, index=True)
    reviewer_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    review_comment = Column(Text, nullable=True)
    created_at = Column(DateTime, server_default=func.now(), nullable=False)
    reviewed_at = Column(DateTime, nullable=True)

    requester = relationship("User", foreign_keys=[requester_id], lazy="joined")
    reviewer = relationship("User", foreign_keys=[reviewer_id], lazy="joined")
    current_role = relationship("Role", foreign_keys=[current_role_id], lazy="joined")
    requested_role = relationship("Role", foreign_keys=[requested_role_id], lazy="joined")
