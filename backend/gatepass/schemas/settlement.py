"""
Pydantic schemas for CashSettlement entity.
"""
from pydantic import BaseModel
from typing import List, Optional
from datetime import date, datetime
from decimal import Decimal
from gatepass.models.settlement import SettlementStatus


class SettlementCreate(BaseModel):
    """Schema for settlement creation."""
    amount: Optional[Decimal] = None  # Defaults to all unbanked cash
    due_date: date
    depositor_name: str = "-"
    depositor_cnic: str


class SettlementClose(BaseModel):
    """Proof-of-deposit reference attached when closing."""
    receipt_file: Optional[str] = None


class SettlementResponse(BaseModel):
    """Schema for settlement response."""
    id: int
    serial_no: int
    depositor_name: str
    depositor_cnic: str
    amount: Decimal
    due_date: date
    status: SettlementStatus
    method: Optional[str] = None
    receipt_file: Optional[str] = None
    uploaded_at: Optional[datetime] = None
    booking_ids: List[int] = []
    created_at: datetime
    
    class Config:
        from_attributes = True
