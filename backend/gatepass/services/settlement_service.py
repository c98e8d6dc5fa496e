"""
Cash settlement service: bundles unbanked guest-house cash into deposit slips.
"""
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple
import logging
from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from gatepass.core.config import settings
from gatepass.core.exceptions import (
    AlreadySettledError, ConflictError, GatePassError, InsufficientFundsError,
    NotFoundError, ValidationError
)
from gatepass.core.utils import from_cents, is_valid_cnic, to_cents
from gatepass.models.lodging import LodgingBooking, PaymentMethod
from gatepass.models.settlement import CashSettlement, SettlementStatus
from gatepass.models.user import User

logger = logging.getLogger(__name__)


class _RetryAllocation(Exception):
    """Lost a race with a concurrent allocation; start over."""


@dataclass
class Allocation:
    """Bookings picked for one settlement and their total in cents."""
    booking_ids: List[int]
    amount_cents: int


def select_fifo(rows: Sequence[Tuple[int, int]], target_cents: int) -> Allocation:
    """
    Pick whole bookings oldest-first until their sum reaches ``target_cents``.

    ``rows`` holds ``(booking_id, bill_cents)`` already in FIFO order. The
    returned sum may exceed the target; a booking is never split.
    """
    picked = []
    running = 0
    for booking_id, cents in rows:
        picked.append(booking_id)
        running += cents
        if running >= target_cents:
            break
    return Allocation(booking_ids=picked, amount_cents=running)


def unbanked_cash_query(db: Session):
    """Cash-paid bookings not yet claimed by a settlement, oldest first."""
    return db.query(LodgingBooking).filter(
        LodgingBooking.payment_method == PaymentMethod.CASH,
        LodgingBooking.deposited.is_(False)
    ).order_by(LodgingBooking.created_at.asc(), LodgingBooking.id.asc())


def next_serial_no(db: Session) -> int:
    """One more than the highest serial issued, starting at SETTLEMENT_START_SERIAL."""
    current = db.query(func.max(CashSettlement.serial_no)).scalar()
    floor = settings.SETTLEMENT_START_SERIAL - 1
    return max(current or 0, floor) + 1


def create_settlement(
    db: Session,
    due_date: date,
    depositor_cnic: str,
    depositor_name: str = "-",
    amount: Optional[Decimal] = None,
    created_by: Optional[User] = None
) -> CashSettlement:
    """
    Bundle unbanked cash bookings into a new pending settlement.

    Without ``amount`` every unbanked booking is bundled. With it, bookings are
    taken oldest-first until their total reaches ``amount``.

    Row selection, serial allocation and booking marking commit together. If a
    concurrent allocation claims one of the rows or takes the serial first,
    the transaction is rolled back and retried.
    """
    if not due_date:
        raise ValidationError("dueDate required")
    if not is_valid_cnic(depositor_cnic):
        raise ValidationError("depositorCnic must be 13 digits")

    attempts = max(1, settings.SETTLEMENT_MAX_ATTEMPTS)
    for attempt in range(1, attempts + 1):
        try:
            settlement = _allocate(db, due_date, depositor_cnic, depositor_name, amount, created_by)
        except _RetryAllocation as e:
            db.rollback()
            logger.warning(f"Settlement allocation attempt {attempt}/{attempts} lost a race: {e}")
            continue
        except GatePassError:
            db.rollback()
            raise

        logger.info(
            f"Settlement {settlement.serial_no} created for {settlement.amount} "
            f"covering {len(settlement.bookings)} booking(s)"
        )
        return settlement

    raise ConflictError("Cash rows changed while allocating, please retry")


def _allocate(
    db: Session,
    due_date: date,
    depositor_cnic: str,
    depositor_name: str,
    amount: Optional[Decimal],
    created_by: Optional[User]
) -> CashSettlement:
    # Row locks where the backend supports them (no-op on SQLite)
    rows = unbanked_cash_query(db).with_for_update().all()
    fifo = [(row.id, to_cents(row.bill_amount)) for row in rows]
    total_cents = sum(cents for _, cents in fifo)

    if total_cents <= 0:
        raise InsufficientFundsError("Nothing to deposit")

    if amount is None:
        target_cents = total_cents
    else:
        target_cents = to_cents(amount)
        if target_cents < 100:
            raise ValidationError("amount must be > 0")
        if target_cents > total_cents:
            raise InsufficientFundsError("amount exceeds cash-in-hand")

    allocation = select_fifo(fifo, target_cents)

    settlement = CashSettlement(
        serial_no=next_serial_no(db),
        depositor_name=(depositor_name or "").strip() or "-",
        depositor_cnic=depositor_cnic,
        amount=from_cents(allocation.amount_cents),
        due_date=due_date,
        status=SettlementStatus.PENDING,
        created_by_id=created_by.id if created_by else None,
    )
    db.add(settlement)
    try:
        db.flush()
    except IntegrityError as e:
        raise _RetryAllocation(f"serial {settlement.serial_no} already taken") from e

    # Only flips rows still undeposited; a short count means another allocation got there first
    result = db.execute(
        update(LodgingBooking)
        .where(
            LodgingBooking.id.in_(allocation.booking_ids),
            LodgingBooking.deposited.is_(False)
        )
        .values(deposited=True, settlement_id=settlement.id)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != len(allocation.booking_ids):
        raise _RetryAllocation(
            f"claimed {result.rowcount} of {len(allocation.booking_ids)} selected booking(s)"
        )

    db.commit()
    db.refresh(settlement)
    return settlement


def get_settlement(db: Session, settlement_id: int) -> CashSettlement:
    settlement = db.query(CashSettlement).filter(CashSettlement.id == settlement_id).first()
    if not settlement:
        raise NotFoundError("Not found")
    return settlement


def close_settlement(
    db: Session,
    settlement_id: int,
    receipt_file: Optional[str] = None
) -> CashSettlement:
    """
    Attach the proof of deposit and mark the settlement paid.

    Succeeds once; the status guard in the UPDATE makes a second close fail
    even when two closes race.
    """
    get_settlement(db, settlement_id)

    values = {
        "status": SettlementStatus.PAID,
        "method": PaymentMethod.CASH.value,
        "uploaded_at": datetime.now(),
    }
    if receipt_file:
        values["receipt_file"] = receipt_file

    result = db.execute(
        update(CashSettlement)
        .where(
            CashSettlement.id == settlement_id,
            CashSettlement.status == SettlementStatus.PENDING
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        db.rollback()
        raise AlreadySettledError("Already settled")

    db.commit()
    settlement = get_settlement(db, settlement_id)
    logger.info(f"Settlement {settlement.serial_no} closed, receipt={settlement.receipt_file}")
    return settlement


def list_settlements(db: Session, status: Optional[SettlementStatus] = None) -> List[CashSettlement]:
    query = db.query(CashSettlement)
    if status:
        query = query.filter(CashSettlement.status == status)
    return query.order_by(CashSettlement.created_at.desc(), CashSettlement.id.desc()).all()
