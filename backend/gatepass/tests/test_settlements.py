"""
Tests for cash settlement allocation and closing.
"""
from datetime import date
from decimal import Decimal
import pytest
from sqlalchemy import update
from gatepass.core.exceptions import (
    AlreadySettledError, ConflictError, InsufficientFundsError, ValidationError
)
from gatepass.core.permissions import Role
from gatepass.models.lodging import BookingStatus, LodgingBooking, PaymentMethod
from gatepass.models.settlement import CashSettlement, SettlementStatus
from gatepass.services import lodging_service, settlement_service
from gatepass.services.settlement_service import (
    close_settlement, create_settlement, next_serial_no, select_fifo
)

CNIC = "3740512345679"
DUE = date(2026, 10, 31)


@pytest.fixture
def clerk(make_user):
    return make_user(Role.GUEST_HOUSE)


@pytest.fixture
def add_booking(db, clerk):
    """Insert a checked-out, paid booking; FIFO order follows insertion."""
    counter = {"n": 0}

    def _add_booking(amount, method=PaymentMethod.CASH):
        counter["n"] += 1
        booking = LodgingBooking(
            name=f"Guest {counter['n']}",
            cnic="4210112345678",
            room_no=f"R-{counter['n']}",
            booking_date=date(2026, 10, 1),
            registered_by_id=clerk.id,
            status=BookingStatus.CHECKED_OUT,
            stay_days=1,
            bill_amount=Decimal(amount),
            payment_method=method,
            deposited=False,
        )
        db.add(booking)
        db.commit()
        db.refresh(booking)
        return booking

    return _add_booking


def add_settlement(db, serial_no, amount="100"):
    settlement = CashSettlement(
        serial_no=serial_no,
        depositor_name="-",
        depositor_cnic=CNIC,
        amount=Decimal(amount),
        due_date=DUE,
        status=SettlementStatus.PAID,
    )
    db.add(settlement)
    db.commit()
    return settlement


def test_select_fifo_never_splits_bookings():
    rows = [(1, 50000), (2, 70000), (3, 30000)]

    assert select_fifo(rows, 90000).booking_ids == [1, 2]
    assert select_fifo(rows, 90000).amount_cents == 120000
    assert select_fifo(rows, 50000).booking_ids == [1]
    assert select_fifo(rows, 150000).booking_ids == [1, 2, 3]


def test_bundle_everything_by_default(db, add_booking):
    bookings = [add_booking("500"), add_booking("700"), add_booking("300")]

    settlement = create_settlement(db, due_date=DUE, depositor_cnic=CNIC)

    assert settlement.serial_no == 100
    assert settlement.amount == Decimal("1500.00")
    assert settlement.status == SettlementStatus.PENDING
    assert settlement.booking_ids == [b.id for b in bookings]
    assert all(b.deposited and b.settlement_id == settlement.id for b in bookings)


def test_target_amount_takes_oldest_first(db, add_booking):
    first, second, third = add_booking("500"), add_booking("700"), add_booking("300")

    settlement = create_settlement(db, due_date=DUE, depositor_cnic=CNIC, amount=Decimal("900"))

    assert settlement.amount == Decimal("1200.00")
    assert settlement.booking_ids == [first.id, second.id]
    db.refresh(third)
    assert third.deposited is False
    assert third.settlement_id is None

    follow_up = create_settlement(db, due_date=DUE, depositor_cnic=CNIC)
    assert follow_up.serial_no == 101
    assert follow_up.booking_ids == [third.id]


def test_account_payments_are_never_bundled(db, add_booking):
    cash = add_booking("400")
    account = add_booking("900", method=PaymentMethod.ACCOUNT)
    unpaid = add_booking("250", method=PaymentMethod.NONE)

    settlement = create_settlement(db, due_date=DUE, depositor_cnic=CNIC)

    assert settlement.booking_ids == [cash.id]
    assert settlement.amount == Decimal("400.00")
    db.refresh(account)
    db.refresh(unpaid)
    assert not account.deposited
    assert not unpaid.deposited


def test_nothing_to_deposit(db, add_booking):
    with pytest.raises(InsufficientFundsError):
        create_settlement(db, due_date=DUE, depositor_cnic=CNIC)

    add_booking("300", method=PaymentMethod.ACCOUNT)
    with pytest.raises(InsufficientFundsError):
        create_settlement(db, due_date=DUE, depositor_cnic=CNIC)


def test_amount_bounds(db, add_booking):
    add_booking("500")

    with pytest.raises(InsufficientFundsError):
        create_settlement(db, due_date=DUE, depositor_cnic=CNIC, amount=Decimal("500.01"))
    with pytest.raises(ValidationError):
        create_settlement(db, due_date=DUE, depositor_cnic=CNIC, amount=Decimal("0"))

    # Failed attempts consume nothing
    assert db.query(CashSettlement).count() == 0
    settlement = create_settlement(db, due_date=DUE, depositor_cnic=CNIC, amount=Decimal("500"))
    assert settlement.serial_no == 100


def test_depositor_cnic_validated(db, add_booking):
    add_booking("500")

    with pytest.raises(ValidationError):
        create_settlement(db, due_date=DUE, depositor_cnic="37405-1234567-9")


def test_serial_numbers_start_at_floor_and_follow_max(db):
    assert next_serial_no(db) == 100

    add_settlement(db, 150)
    assert next_serial_no(db) == 151


def test_serials_below_floor_are_ignored(db):
    add_settlement(db, 7)
    assert next_serial_no(db) == 100


def test_serial_collision_is_retried(db, add_booking, monkeypatch):
    add_settlement(db, 100)
    booking = add_booking("500")
    real_next = settlement_service.next_serial_no
    calls = []

    def stale_next(session):
        calls.append(1)
        # First read misses the row a concurrent allocation just committed
        return 100 if len(calls) == 1 else real_next(session)

    monkeypatch.setattr(settlement_service, "next_serial_no", stale_next)

    settlement = create_settlement(db, due_date=DUE, depositor_cnic=CNIC)

    assert len(calls) == 2
    assert settlement.serial_no == 101
    assert settlement.booking_ids == [booking.id]


def test_gives_up_after_repeated_collisions(db, add_booking, monkeypatch):
    add_settlement(db, 100)
    booking = add_booking("500")
    monkeypatch.setattr(settlement_service, "next_serial_no", lambda session: 100)

    with pytest.raises(ConflictError):
        create_settlement(db, due_date=DUE, depositor_cnic=CNIC)

    db.refresh(booking)
    assert booking.deposited is False
    assert db.query(CashSettlement).count() == 1


def test_row_claimed_mid_allocation_is_retried(db, add_booking, monkeypatch):
    first, second = add_booking("500"), add_booking("700")
    real_select = settlement_service.select_fifo
    calls = []

    def racing_select(rows, target_cents):
        calls.append(1)
        if len(calls) == 1:
            # Another allocation claims the oldest row after it was read
            db.execute(
                update(LodgingBooking)
                .where(LodgingBooking.id == first.id)
                .values(deposited=True)
            )
            db.commit()
        return real_select(rows, target_cents)

    monkeypatch.setattr(settlement_service, "select_fifo", racing_select)

    settlement = create_settlement(db, due_date=DUE, depositor_cnic=CNIC)

    assert len(calls) == 2
    assert settlement.booking_ids == [second.id]
    assert settlement.amount == Decimal("700.00")
    assert db.query(CashSettlement).count() == 1


def test_close_once(db, add_booking):
    add_booking("500")
    settlement = create_settlement(db, due_date=DUE, depositor_cnic=CNIC)

    closed = close_settlement(db, settlement.id, receipt_file="receipts/slip-100.jpg")
    assert closed.status == SettlementStatus.PAID
    assert closed.method == "cash"
    assert closed.receipt_file == "receipts/slip-100.jpg"
    assert closed.uploaded_at is not None

    with pytest.raises(AlreadySettledError):
        close_settlement(db, settlement.id, receipt_file="receipts/other.jpg")

    db.refresh(closed)
    assert closed.receipt_file == "receipts/slip-100.jpg"
    assert closed.amount == Decimal("500.00")
    assert len(closed.booking_ids) == 1


def test_settlement_endpoints(client, auth, clerk, add_booking):
    add_booking("500")
    add_booking("700")

    pending = client.get("/api/settlements/pending-total", headers=auth(clerk))
    assert Decimal(str(pending.json()["pending"])) == Decimal("1200.00")

    created = client.post(
        "/api/settlements",
        json={"amount": "400", "due_date": "2026-10-31", "depositor_name": "Ali Raza", "depositor_cnic": CNIC},
        headers=auth(clerk)
    )
    assert created.status_code == 201
    body = created.json()
    assert body["serial_no"] == 100
    assert Decimal(str(body["amount"])) == Decimal("500.00")
    assert body["status"] == "pending"
    assert len(body["booking_ids"]) == 1

    pending = client.get("/api/settlements/pending-total", headers=auth(clerk))
    assert Decimal(str(pending.json()["pending"])) == Decimal("700.00")

    too_much = client.post(
        "/api/settlements",
        json={"amount": "5000", "due_date": "2026-10-31", "depositor_cnic": CNIC},
        headers=auth(clerk)
    )
    assert too_much.status_code == 409
    assert too_much.json()["code"] == "InsufficientFundsError"

    closed = client.patch(
        f"/api/settlements/{body['id']}/close",
        json={"receipt_file": "slip-100.pdf"},
        headers=auth(clerk)
    )
    assert closed.status_code == 200
    assert closed.json()["status"] == "paid"

    again = client.patch(f"/api/settlements/{body['id']}/close", headers=auth(clerk))
    assert again.status_code == 409

    paid = client.get("/api/settlements", params={"status": "paid"}, headers=auth(clerk)).json()
    assert [s["id"] for s in paid] == [body["id"]]
    assert client.get("/api/settlements", params={"status": "pending"}, headers=auth(clerk)).json() == []


def test_settlement_errors_over_http(client, auth, clerk, make_user):
    response = client.post(
        "/api/settlements",
        json={"due_date": "2026-10-31", "depositor_cnic": CNIC},
        headers=auth(clerk)
    )
    assert response.status_code == 409

    response = client.post("/api/settlements", json={"depositor_cnic": CNIC}, headers=auth(clerk))
    assert response.status_code == 400

    assert client.patch("/api/settlements/999/close", headers=auth(clerk)).status_code == 404

    student = make_user(Role.STUDENT)
    assert client.get("/api/settlements", headers=auth(student)).status_code == 403


def test_checkout_does_not_rebill_a_bundled_booking(db, add_booking, clerk):
    early = lodging_service.create_booking(
        db, clerk, name="Early Payer", cnic="4210112345678", room_no="G-1",
        booking_date=date(2026, 10, 2)
    )
    lodging_service.pay_booking(db, early.id, PaymentMethod.CASH)
    add_booking("500")
    settlement = create_settlement(db, due_date=DUE, depositor_cnic=CNIC)
    assert early.id in settlement.booking_ids

    lodging_service.update_booking(db, early.id, status=BookingStatus.CHECKED_OUT)

    db.refresh(settlement)
    assert settlement.amount == sum(b.bill_amount for b in settlement.bookings)
    assert settlement.amount == Decimal("500.00")
