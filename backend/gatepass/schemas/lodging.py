"""
Pydantic schemas for LodgingBooking entity.
"""
from pydantic import BaseModel
from typing import Optional
from datetime import date, datetime
from decimal import Decimal
from gatepass.models.lodging import BookingStatus, GuestType, PaymentMethod


class BookingCreate(BaseModel):
    """Schema for booking creation."""
    name: str
    cnic: str
    room_no: str
    booking_date: date
    organization: Optional[str] = None
    guest_type: GuestType = GuestType.OUTSIDER
    purpose: Optional[str] = None
    vehicle_no: Optional[str] = None


class BookingUpdate(BaseModel):
    """Schema for status change, checkout bill and optional payment."""
    status: Optional[BookingStatus] = None
    stay_days: Optional[int] = None  # Applied on checkout
    bill_amount: Optional[Decimal] = None  # Applied on checkout
    payment_method: Optional[PaymentMethod] = None
    tx_id: Optional[str] = None


class BookingPayment(BaseModel):
    method: PaymentMethod
    tx_id: Optional[str] = None  # Transfer reference for account payments


class BookingResponse(BaseModel):
    """Schema for booking response."""
    id: int
    name: str
    cnic: str
    organization: str
    guest_type: GuestType
    room_no: str
    booking_date: date
    purpose: str
    vehicle_no: str
    registered_by_id: int
    status: BookingStatus
    check_in_at: Optional[datetime] = None
    check_out_at: Optional[datetime] = None
    stay_days: int
    bill_amount: Decimal
    payment_method: PaymentMethod
    tx_id: Optional[str] = None
    deposited: bool
    settlement_id: Optional[int] = None
    created_at: datetime
    
    class Config:
        from_attributes = True


class CashPendingResponse(BaseModel):
    """Unbanked cash total."""
    pending: Decimal
