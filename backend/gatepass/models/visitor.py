"""
Visitor log model for guests passing the gate.
"""
from sqlalchemy import Column, String, DateTime, ForeignKey, Integer, Enum as SQLEnum
from sqlalchemy.orm import relationship
from gatepass.db.base import BaseModel
import enum


class VisitorStatus(str, enum.Enum):
    """Visitor status enumeration."""
    PENDING = "pending"
    IN = "in"
    OUT = "out"


class VisitorLog(BaseModel):
    """A single visitor entry recorded by gate or office staff."""
    __tablename__ = "visitor_logs"
    
    name = Column(String(150), nullable=False)
    cnic = Column(String(13), nullable=False, index=True)
    visiting_office = Column(String(150), nullable=False)
    vehicle_no = Column(String(50), nullable=False, default="-")
    
    recorded_by_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    
    status = Column(
        SQLEnum(VisitorStatus, values_callable=lambda e: [s.value for s in e]),
        default=VisitorStatus.PENDING,
        nullable=False
    )
    in_at = Column(DateTime, nullable=True)  # Set on first "in"
    out_at = Column(DateTime, nullable=True)  # Set on first "out"
    
    # Relationships
    recorded_by = relationship("User")
