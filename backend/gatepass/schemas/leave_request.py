"""
Pydantic schemas for LeaveRequest entity.
"""
from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from gatepass.models.leave_request import RequestStatus, TransportMode


class LeaveRequestCreate(BaseModel):
    """Schema for leave request submission."""
    leave_for: str
    pick_up_with: str
    transport: TransportMode = TransportMode.PUBLIC
    vehicle_no: Optional[str] = None  # Required for private transport
    driver_name: Optional[str] = None  # Required for private transport
    scheduled_at: datetime


class RequestDecision(BaseModel):
    """Schema for an approver's decision."""
    status: RequestStatus
    approver_comment: Optional[str] = None


class GateEvent(BaseModel):
    """Schema for a gate exit/return event."""
    status: RequestStatus


class LeaveRequestResponse(BaseModel):
    """Schema for leave request response."""
    id: int
    requester_id: int
    student_id: str
    name: str
    email: str
    category: str
    leave_for: str
    pick_up_with: str
    transport: TransportMode
    vehicle_no: str
    driver_name: str
    scheduled_at: datetime
    status: RequestStatus
    approver_comment: Optional[str] = None
    approver_ids: List[int] = []
    decided_at: Optional[datetime] = None
    exited_at: Optional[datetime] = None
    returned_at: Optional[datetime] = None
    created_at: datetime
    updated_at: datetime
    
    class Config:
        from_attributes = True
