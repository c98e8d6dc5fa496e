"""
Pydantic schemas for VisitorLog entity.
"""
from pydantic import BaseModel
from typing import Optional
from datetime import datetime
from gatepass.models.visitor import VisitorStatus


class VisitorCreate(BaseModel):
    """Schema for visitor creation."""
    name: str
    cnic: str
    visiting_office: str
    vehicle_no: Optional[str] = None
    created_at: Optional[datetime] = None  # Back-dating from a paper register


class VisitorStatusUpdate(BaseModel):
    status: VisitorStatus


class VisitorResponse(BaseModel):
    """Schema for visitor response."""
    id: int
    name: str
    cnic: str
    visiting_office: str
    vehicle_no: str
    recorded_by_id: int
    status: VisitorStatus
    in_at: Optional[datetime] = None
    out_at: Optional[datetime] = None
    created_at: datetime
    
    class Config:
        from_attributes = True
