"""
Tests for guest-house bookings, checkout billing and payments.
"""
from decimal import Decimal
import pytest
from gatepass.core.permissions import Role

BOOKING = {
    "name": "Dr. Farah Naz",
    "cnic": "4210112345678",
    "room_no": "G-12",
    "booking_date": "2026-11-02",
    "organization": "HEC",
    "guest_type": "Outsider",
    "purpose": "External examiner"
}


@pytest.fixture
def clerk(make_user):
    return make_user(Role.GUEST_HOUSE)


def book(client, auth, clerk, **overrides):
    return client.post("/api/lodging", json={**BOOKING, **overrides}, headers=auth(clerk))


def test_create_booking(client, auth, clerk):
    response = book(client, auth, clerk)

    assert response.status_code == 201
    body = response.json()
    assert body["status"] == "reserved"
    assert body["payment_method"] == "none"
    assert body["deposited"] is False
    assert body["registered_by_id"] == clerk.id


def test_booking_requires_valid_fields(client, auth, clerk):
    assert book(client, auth, clerk, cnic="12345").status_code == 400
    assert book(client, auth, clerk, room_no=" ").status_code == 400


def test_same_room_same_day_conflicts(client, auth, clerk):
    assert book(client, auth, clerk).status_code == 201

    response = book(client, auth, clerk, name="Someone Else")
    assert response.status_code == 409
    assert response.json()["detail"] == "Room G-12 already booked"

    # Different day or different room is fine
    assert book(client, auth, clerk, booking_date="2026-11-03").status_code == 201
    assert book(client, auth, clerk, room_no="G-14").status_code == 201


def test_checked_in_booking_still_holds_room(client, auth, clerk):
    booking_id = book(client, auth, clerk).json()["id"]
    response = client.put(f"/api/lodging/{booking_id}", json={"status": "checked-in"}, headers=auth(clerk))
    assert response.status_code == 200
    assert response.json()["check_in_at"] is not None

    assert book(client, auth, clerk).status_code == 409


@pytest.mark.parametrize("final_status", ["cancelled", "checked-out"])
def test_finished_booking_releases_room(client, auth, clerk, final_status):
    booking_id = book(client, auth, clerk).json()["id"]
    response = client.put(f"/api/lodging/{booking_id}", json={"status": final_status}, headers=auth(clerk))
    assert response.status_code == 200

    assert book(client, auth, clerk).status_code == 201


def test_checkout_computes_bill_from_daily_rate(client, auth, clerk):
    outsider = book(client, auth, clerk).json()["id"]
    client.put(f"/api/lodging/{outsider}", json={"status": "checked-in"}, headers=auth(clerk))
    response = client.put(f"/api/lodging/{outsider}", json={"status": "checked-out"}, headers=auth(clerk))

    body = response.json()
    assert body["stay_days"] == 1
    assert Decimal(str(body["bill_amount"])) == Decimal("2500.00")
    assert body["check_out_at"] is not None

    university = book(client, auth, clerk, room_no="G-15", guest_type="BNB University").json()["id"]
    response = client.put(
        f"/api/lodging/{university}",
        json={"status": "checked-out", "stay_days": 3},
        headers=auth(clerk)
    )
    assert response.json()["stay_days"] == 3
    assert Decimal(str(response.json()["bill_amount"])) == Decimal("3000.00")


def test_checkout_accepts_staff_bill(client, auth, clerk):
    booking_id = book(client, auth, clerk).json()["id"]

    response = client.put(
        f"/api/lodging/{booking_id}",
        json={"status": "checked-out", "stay_days": 2, "bill_amount": "4200.50"},
        headers=auth(clerk)
    )
    assert response.status_code == 200
    assert Decimal(str(response.json()["bill_amount"])) == Decimal("4200.50")

    response = client.put(
        f"/api/lodging/{booking_id}",
        json={"status": "checked-out", "bill_amount": "-1"},
        headers=auth(clerk)
    )
    assert response.status_code == 400


def test_invalid_booking_transitions(client, auth, clerk):
    booking_id = book(client, auth, clerk).json()["id"]
    client.put(f"/api/lodging/{booking_id}", json={"status": "cancelled"}, headers=auth(clerk))

    response = client.put(f"/api/lodging/{booking_id}", json={"status": "checked-in"}, headers=auth(clerk))
    assert response.status_code == 400
    assert response.json()["code"] == "InvalidTransitionError"

    response = client.put("/api/lodging/999", json={"status": "checked-in"}, headers=auth(clerk))
    assert response.status_code == 404


def test_pay_once(client, auth, clerk):
    booking_id = book(client, auth, clerk).json()["id"]
    client.put(
        f"/api/lodging/{booking_id}",
        json={"status": "checked-out", "stay_days": 1},
        headers=auth(clerk)
    )

    paid = client.put(f"/api/lodging/{booking_id}/pay", json={"method": "cash"}, headers=auth(clerk))
    assert paid.status_code == 200
    assert paid.json()["payment_method"] == "cash"

    again = client.put(f"/api/lodging/{booking_id}/pay", json={"method": "account", "tx_id": "T1"}, headers=auth(clerk))
    assert again.status_code == 409
    assert again.json()["detail"] == "already paid"

    # Bill is frozen once paid
    response = client.put(
        f"/api/lodging/{booking_id}",
        json={"status": "checked-out", "bill_amount": "10"},
        headers=auth(clerk)
    )
    assert response.status_code == 409


def test_account_payment_needs_reference(client, auth, clerk):
    booking_id = book(client, auth, clerk).json()["id"]

    response = client.put(f"/api/lodging/{booking_id}/pay", json={"method": "account"}, headers=auth(clerk))
    assert response.status_code == 400

    response = client.put(
        f"/api/lodging/{booking_id}/pay",
        json={"method": "account", "tx_id": "IBFT-99812"},
        headers=auth(clerk)
    )
    assert response.status_code == 200
    assert response.json()["tx_id"] == "IBFT-99812"

    response = client.put(f"/api/lodging/{booking_id}/pay", json={"method": "none"}, headers=auth(clerk))
    assert response.status_code == 400


def test_checkout_and_pay_in_one_call(client, auth, clerk):
    booking_id = book(client, auth, clerk).json()["id"]

    response = client.put(
        f"/api/lodging/{booking_id}",
        json={"status": "checked-out", "stay_days": 2, "payment_method": "cash"},
        headers=auth(clerk)
    )
    assert response.status_code == 200
    assert response.json()["payment_method"] == "cash"
    assert Decimal(str(response.json()["bill_amount"])) == Decimal("5000.00")


def test_cash_pending_counts_only_unbanked_cash(client, auth, clerk):
    cash = book(client, auth, clerk).json()["id"]
    account = book(client, auth, clerk, room_no="G-20").json()["id"]
    for booking_id in (cash, account):
        client.put(
            f"/api/lodging/{booking_id}",
            json={"status": "checked-out", "stay_days": 1},
            headers=auth(clerk)
        )
    client.put(f"/api/lodging/{cash}/pay", json={"method": "cash"}, headers=auth(clerk))
    client.put(f"/api/lodging/{account}/pay", json={"method": "account", "tx_id": "T-1"}, headers=auth(clerk))

    response = client.get("/api/lodging/cash-pending", headers=auth(clerk))
    assert response.status_code == 200
    assert Decimal(str(response.json()["pending"])) == Decimal("2500.00")


def test_list_bookings_requires_lodging_role(client, auth, clerk, make_user):
    book(client, auth, clerk)
    book(client, auth, clerk, room_no="G-13")

    assert len(client.get("/api/lodging", headers=auth(clerk)).json()) == 2
    assert client.get("/api/lodging", headers=auth(make_user(Role.GATEKEEPER))).status_code == 403


def test_repeat_checkout_keeps_first_bill(client, auth, clerk):
    booking_id = book(client, auth, clerk).json()["id"]
    first = client.put(
        f"/api/lodging/{booking_id}",
        json={"status": "checked-out", "stay_days": 1, "bill_amount": "500"},
        headers=auth(clerk)
    ).json()

    again = client.put(
        f"/api/lodging/{booking_id}",
        json={"status": "checked-out", "stay_days": 4, "bill_amount": "9000"},
        headers=auth(clerk)
    )
    assert again.status_code == 200
    assert again.json()["stay_days"] == 1
    assert Decimal(str(again.json()["bill_amount"])) == Decimal("500.00")
    assert again.json()["check_out_at"] == first["check_out_at"]


def test_checkout_after_payment_keeps_paid_bill(client, auth, clerk):
    booking_id = book(client, auth, clerk).json()["id"]
    client.put(f"/api/lodging/{booking_id}/pay", json={"method": "cash"}, headers=auth(clerk))

    response = client.put(f"/api/lodging/{booking_id}", json={"status": "checked-out"}, headers=auth(clerk))
    assert response.status_code == 200
    assert response.json()["check_out_at"] is not None
    assert response.json()["stay_days"] == 0
    assert Decimal(str(response.json()["bill_amount"])) == Decimal("0")
