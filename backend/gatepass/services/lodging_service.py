"""
Guest-house booking workflow.

    reserved → checked-in → checked-out
    reserved | checked-in → cancelled

A room can hold at most one reserved or checked-in booking per calendar day.
The database enforces it through the unique ``occupancy_key`` column, so the
conflict check and the insert cannot interleave with another booking.
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional
import logging
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from gatepass.core.config import settings
from gatepass.core.exceptions import (
    AlreadySettledError, ConflictError, InvalidTransitionError, NotFoundError, ValidationError
)
from gatepass.core.utils import from_cents, is_valid_cnic, to_cents
from gatepass.models.lodging import (
    ACTIVE_BOOKING_STATUSES, BookingStatus, GuestType, LodgingBooking, PaymentMethod,
    occupancy_key_for
)
from gatepass.models.user import User

logger = logging.getLogger(__name__)

# Statuses each target may be reached from; same-status repeats are no-ops
ALLOWED_FROM = {
    BookingStatus.RESERVED: (BookingStatus.RESERVED,),
    BookingStatus.CHECKED_IN: (BookingStatus.RESERVED, BookingStatus.CHECKED_IN),
    BookingStatus.CHECKED_OUT: (
        BookingStatus.RESERVED, BookingStatus.CHECKED_IN, BookingStatus.CHECKED_OUT
    ),
    BookingStatus.CANCELLED: (
        BookingStatus.RESERVED, BookingStatus.CHECKED_IN, BookingStatus.CANCELLED
    ),
}


def get_booking(db: Session, booking_id: int) -> LodgingBooking:
    booking = db.query(LodgingBooking).filter(LodgingBooking.id == booking_id).first()
    if not booking:
        raise NotFoundError("Booking not found")
    return booking


def find_conflict(db: Session, room_no: str, booking_date: date) -> Optional[LodgingBooking]:
    """Active booking holding ``room_no`` on ``booking_date``, if any."""
    return db.query(LodgingBooking).filter(
        LodgingBooking.room_no == room_no,
        LodgingBooking.booking_date == booking_date,
        LodgingBooking.status.in_(ACTIVE_BOOKING_STATUSES)
    ).first()


def create_booking(
    db: Session,
    registered_by: User,
    name: str,
    cnic: str,
    room_no: str,
    booking_date: date,
    organization: Optional[str] = None,
    guest_type: GuestType = GuestType.OUTSIDER,
    purpose: Optional[str] = None,
    vehicle_no: Optional[str] = None
) -> LodgingBooking:
    """Reserve a room for a calendar day."""
    if not (name or "").strip() or not cnic or not (room_no or "").strip() or not booking_date:
        raise ValidationError("name, cnic, roomNo, bookingDate required")
    if not is_valid_cnic(cnic):
        raise ValidationError("CNIC 13 digits")

    room_no = room_no.strip()
    if isinstance(booking_date, datetime):
        booking_date = booking_date.date()

    if find_conflict(db, room_no, booking_date):
        raise ConflictError(f"Room {room_no} already booked")

    booking = LodgingBooking(
        name=name.strip(),
        cnic=cnic,
        room_no=room_no,
        booking_date=booking_date,
        organization=(organization or "").strip() or "-",
        guest_type=GuestType(guest_type),
        purpose=(purpose or "").strip() or "-",
        vehicle_no=(vehicle_no or "").strip() or "-",
        registered_by_id=registered_by.id,
        status=BookingStatus.RESERVED,
        occupancy_key=occupancy_key_for(room_no, booking_date),
        payment_method=PaymentMethod.NONE,
        deposited=False,
    )
    db.add(booking)
    try:
        db.commit()
    except IntegrityError:
        # Another booking took the room between the check and the insert
        db.rollback()
        raise ConflictError(f"Room {room_no} already booked")
    db.refresh(booking)
    logger.info(f"Booking {booking.id} reserved room {room_no} on {booking_date}")
    return booking


def list_bookings(db: Session) -> List[LodgingBooking]:
    return db.query(LodgingBooking).order_by(
        LodgingBooking.created_at.desc(), LodgingBooking.id.desc()
    ).all()


def compute_bill(booking: LodgingBooking, checkout_at: datetime, stay_days: Optional[int] = None):
    """
    Stay length and bill at checkout.

    Without a staff-supplied ``stay_days`` the stay is counted in whole days
    from check-in (or the booking date), at least one day. The bill is the
    guest type's daily rate times the stay.
    """
    if stay_days is None:
        start = booking.check_in_at.date() if booking.check_in_at else booking.booking_date
        stay_days = max(1, (checkout_at.date() - start).days)
    rate = settings.LODGING_DAILY_RATES.get(GuestType(booking.guest_type).value, 0)
    return stay_days, from_cents(to_cents(rate) * stay_days)


def update_booking(
    db: Session,
    booking_id: int,
    status: Optional[BookingStatus] = None,
    stay_days: Optional[int] = None,
    bill_amount: Optional[Decimal] = None,
    payment_method: Optional[PaymentMethod] = None,
    tx_id: Optional[str] = None
) -> LodgingBooking:
    """Apply a status change and, optionally, a payment in one call."""
    booking = get_booking(db, booking_id)

    if status is not None:
        _apply_status(booking, BookingStatus(status), stay_days, bill_amount)

    if payment_method is not None:
        _apply_payment(booking, PaymentMethod(payment_method), tx_id)

    db.commit()
    db.refresh(booking)
    return booking


def _apply_status(
    booking: LodgingBooking,
    status: BookingStatus,
    stay_days: Optional[int],
    bill_amount: Optional[Decimal]
) -> None:
    current = BookingStatus(booking.status)
    if current not in ALLOWED_FROM[status]:
        raise InvalidTransitionError(current.value, status.value)

    now = datetime.now()
    if status == BookingStatus.CHECKED_IN and booking.check_in_at is None:
        booking.check_in_at = now

    if status == BookingStatus.CHECKED_OUT:
        if stay_days is not None and stay_days < 0:
            raise ValidationError("stayDays cannot be negative")
        if bill_amount is not None and bill_amount < 0:
            raise ValidationError("billAmount cannot be negative")
        supplied = stay_days is not None or bill_amount is not None
        paid = PaymentMethod(booking.payment_method) != PaymentMethod.NONE
        if supplied and paid:
            raise AlreadySettledError("Bill cannot change after payment")

        # Bill is set on the first checkout only, and never once paid
        if booking.check_out_at is None:
            booking.check_out_at = now
            if not paid:
                booking.stay_days, booking.bill_amount = compute_bill(
                    booking, booking.check_out_at, stay_days
                )
                if bill_amount is not None:
                    booking.bill_amount = bill_amount

    booking.status = status
    if status not in ACTIVE_BOOKING_STATUSES:
        booking.occupancy_key = None
    logger.info(f"Booking {booking.id} {current.value} -> {status.value}")


def _apply_payment(booking: LodgingBooking, method: PaymentMethod, tx_id: Optional[str]) -> None:
    if method not in (PaymentMethod.CASH, PaymentMethod.ACCOUNT):
        raise ValidationError("paymentMethod cash|account")
    if PaymentMethod(booking.payment_method) != PaymentMethod.NONE:
        raise AlreadySettledError("already paid")
    if method == PaymentMethod.ACCOUNT:
        if not (tx_id or "").strip():
            raise ValidationError("txId required for account payments")
        booking.tx_id = tx_id.strip()

    booking.payment_method = method
    logger.info(f"Booking {booking.id} paid by {method.value}, amount {booking.bill_amount}")


def pay_booking(
    db: Session,
    booking_id: int,
    method: PaymentMethod,
    tx_id: Optional[str] = None
) -> LodgingBooking:
    """Record how a booking was paid. A booking can be paid only once."""
    booking = get_booking(db, booking_id)
    _apply_payment(booking, PaymentMethod(method), tx_id)
    db.commit()
    db.refresh(booking)
    return booking


def pending_cash_total(db: Session) -> Decimal:
    """Cash collected but not yet bundled into a settlement."""
    total = db.query(func.coalesce(func.sum(LodgingBooking.bill_amount), 0)).filter(
        LodgingBooking.payment_method == PaymentMethod.CASH,
        LodgingBooking.deposited.is_(False)
    ).scalar()
    return from_cents(to_cents(total))
