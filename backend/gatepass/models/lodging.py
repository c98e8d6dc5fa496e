"""
Guest-house booking model.
"""
from sqlalchemy import (
    Column, String, Date, DateTime, Boolean, Numeric, ForeignKey, Integer,
    Enum as SQLEnum
)
from sqlalchemy.orm import relationship
from gatepass.db.base import BaseModel
import enum


class BookingStatus(str, enum.Enum):
    """Booking status enumeration."""
    RESERVED = "reserved"
    CHECKED_IN = "checked-in"
    CHECKED_OUT = "checked-out"
    CANCELLED = "cancelled"


# Statuses that hold the room for the booking date
ACTIVE_BOOKING_STATUSES = (BookingStatus.RESERVED, BookingStatus.CHECKED_IN)


class GuestType(str, enum.Enum):
    UNIVERSITY = "BNB University"
    OUTSIDER = "Outsider"


class PaymentMethod(str, enum.Enum):
    NONE = "none"
    CASH = "cash"
    ACCOUNT = "account"


def occupancy_key_for(room_no: str, booking_date) -> str:
    """Key held in the unique occupancy column while a booking is active."""
    return f"{room_no}|{booking_date.isoformat()}"


class LodgingBooking(BaseModel):
    """Guest-house booking with its bill and payment state."""
    __tablename__ = "lodging_bookings"
    
    # Identity
    name = Column(String(150), nullable=False)
    cnic = Column(String(13), nullable=False, index=True)
    organization = Column(String(150), nullable=False, default="-")
    guest_type = Column(
        SQLEnum(GuestType, values_callable=lambda e: [g.value for g in e]),
        nullable=False,
        default=GuestType.OUTSIDER
    )
    
    # Booking
    room_no = Column(String(20), nullable=False, index=True)
    booking_date = Column(Date, nullable=False, index=True)
    purpose = Column(String(255), nullable=False, default="-")
    vehicle_no = Column(String(50), nullable=False, default="-")
    registered_by_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    # "room|date" while reserved or checked-in, NULL otherwise
    occupancy_key = Column(String(64), unique=True, nullable=True)
    
    # Lifecycle
    status = Column(
        SQLEnum(BookingStatus, values_callable=lambda e: [s.value for s in e]),
        default=BookingStatus.RESERVED,
        nullable=False,
        index=True
    )
    check_in_at = Column(DateTime, nullable=True)
    check_out_at = Column(DateTime, nullable=True)
    stay_days = Column(Integer, nullable=False, default=0)
    bill_amount = Column(Numeric(12, 2), nullable=False, default=0)
    
    # Payment
    payment_method = Column(
        SQLEnum(PaymentMethod, values_callable=lambda e: [p.value for p in e]),
        nullable=False,
        default=PaymentMethod.NONE,
        index=True
    )
    tx_id = Column(String(100), nullable=True)
    deposited = Column(Boolean, nullable=False, default=False, index=True)  # Cash banked
    settlement_id = Column(Integer, ForeignKey("cash_settlements.id"), nullable=True, index=True)
    
    # Relationships
    registered_by = relationship("User")
    settlement = relationship("CashSettlement", back_populates="bookings")
