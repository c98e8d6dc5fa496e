"""
Leave request model and its frozen approver set.
"""
from sqlalchemy import (
    Column, String, Text, DateTime, ForeignKey, Integer,
    Enum as SQLEnum, UniqueConstraint
)
from sqlalchemy.orm import relationship
from gatepass.db.base import BaseModel
import enum


class RequestStatus(str, enum.Enum):
    """Leave request status enumeration."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    OUT = "out"
    IN = "in"


class TransportMode(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class LeaveRequest(BaseModel):
    """A student's request to leave campus."""
    __tablename__ = "leave_requests"
    
    requester_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    # Snapshot of the requester at submission time
    student_id = Column(String(50), nullable=False, default="N/A")
    name = Column(String(150), nullable=False)
    email = Column(String(100), nullable=False)
    
    leave_for = Column(Text, nullable=False)
    pick_up_with = Column(String(150), nullable=False)
    transport = Column(
        SQLEnum(TransportMode, values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=TransportMode.PUBLIC
    )
    vehicle_no = Column(String(50), nullable=False, default="-")
    driver_name = Column(String(150), nullable=False, default="-")
    scheduled_at = Column(DateTime, nullable=False, index=True)
    
    status = Column(
        SQLEnum(RequestStatus, values_callable=lambda e: [s.value for s in e]),
        default=RequestStatus.PENDING,
        nullable=False,
        index=True
    )
    approver_comment = Column(Text, nullable=True)
    category = Column(String(20), nullable=False, index=True)
    
    decided_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    decided_at = Column(DateTime, nullable=True)
    exited_at = Column(DateTime, nullable=True)
    returned_at = Column(DateTime, nullable=True)
    
    # Relationships
    requester = relationship("User", foreign_keys=[requester_id], back_populates="leave_requests")
    approvers = relationship(
        "LeaveRequestApprover",
        back_populates="request",
        cascade="all, delete-orphan",
        order_by="LeaveRequestApprover.approver_id"
    )
    
    @property
    def approver_ids(self) -> list:
        return [a.approver_id for a in self.approvers]


class LeaveRequestApprover(BaseModel):
    """Approver frozen onto a request at creation. Rows are never updated."""
    __tablename__ = "leave_request_approvers"
    __table_args__ = (
        UniqueConstraint("request_id", "approver_id", name="uq_request_approver"),
    )
    
    request_id = Column(Integer, ForeignKey("leave_requests.id"), nullable=False, index=True)
    approver_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    
    # Relationships
    request = relationship("LeaveRequest", back_populates="approvers")
