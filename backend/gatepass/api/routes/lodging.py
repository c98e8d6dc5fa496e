"""
Guest-house booking routes.
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from typing import List
from gatepass.api.dependencies import require_capability
from gatepass.core.permissions import Capability
from gatepass.db.session import get_db
from gatepass.models.user import User
from gatepass.schemas.lodging import (
    BookingCreate, BookingPayment, BookingResponse, BookingUpdate, CashPendingResponse
)
from gatepass.services import lodging_service

router = APIRouter(prefix="/lodging", tags=["lodging"])


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
async def create_booking(
    data: BookingCreate,
    current_user: User = Depends(require_capability(Capability.MANAGE_LODGING)),
    db: Session = Depends(get_db)
):
    """Reserve a room for a day."""
    return lodging_service.create_booking(
        db,
        current_user,
        name=data.name,
        cnic=data.cnic,
        room_no=data.room_no,
        booking_date=data.booking_date,
        organization=data.organization,
        guest_type=data.guest_type,
        purpose=data.purpose,
        vehicle_no=data.vehicle_no
    )


@router.get("", response_model=List[BookingResponse])
async def list_bookings(
    current_user: User = Depends(require_capability(Capability.MANAGE_LODGING)),
    db: Session = Depends(get_db)
):
    """List bookings, newest first."""
    return lodging_service.list_bookings(db)


@router.get("/cash-pending", response_model=CashPendingResponse)
async def get_cash_pending(
    current_user: User = Depends(require_capability(Capability.MANAGE_LODGING)),
    db: Session = Depends(get_db)
):
    """Cash collected but not yet bundled into a settlement."""
    return {"pending": lodging_service.pending_cash_total(db)}


@router.put("/{booking_id}/pay", response_model=BookingResponse)
async def pay_booking(
    booking_id: int,
    data: BookingPayment,
    current_user: User = Depends(require_capability(Capability.MANAGE_LODGING)),
    db: Session = Depends(get_db)
):
    """Record the payment method. Fails if already paid."""
    return lodging_service.pay_booking(db, booking_id, data.method, data.tx_id)


@router.put("/{booking_id}", response_model=BookingResponse)
async def update_booking(
    booking_id: int,
    data: BookingUpdate,
    current_user: User = Depends(require_capability(Capability.MANAGE_LODGING)),
    db: Session = Depends(get_db)
):
    """Change status (with checkout bill) and optionally record payment."""
    return lodging_service.update_booking(
        db,
        booking_id,
        status=data.status,
        stay_days=data.stay_days,
        bill_amount=data.bill_amount,
        payment_method=data.payment_method,
        tx_id=data.tx_id
    )
