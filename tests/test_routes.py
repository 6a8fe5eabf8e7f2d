"""HTTP-level tests for the host endpoints."""

from __future__ import annotations

from fastapi.testclient import TestClient

from tests.fakes import HOST_ID, FakePayPal, FakeSupabase


def _seed_bookings(fake_db: FakeSupabase) -> None:
    fake_db.seed("profiles", {"id": "guest-1", "first_name": "Ana", "last_name": "Reyes"})
    fake_db.seed(
        "bookings",
        {
            "host_id": HOST_ID,
            "guest_id": "guest-1",
            "listing_title": "Beach House",
            "status": "completed",
            "totalAmount": 10000,
            "checkOut": "2025-12-20",
        },
        {
            "host_id": HOST_ID,
            "status": "confirmed",
            "total": 4000,
            "check_in": "2099-05-01",
            "check_out": "2099-05-04",
        },
        {"host_id": HOST_ID, "status": "cancelled", "total": 7000, "check_out": "2026-02-01"},
        {"host_id": "someone-else", "status": "completed", "total": 99999, "check_out": "2026-02-01"},
    )


def test_host_routes_require_auth(client: TestClient) -> None:
    response = client.get("/host/earnings")

    assert response.status_code == 401
    assert response.json() == {"error": "Missing authorization header", "code": "UNAUTHORIZED"}


def test_earnings_summary(api: TestClient, fake_db: FakeSupabase) -> None:
    _seed_bookings(fake_db)

    response = api.get("/host/earnings")

    assert response.status_code == 200
    payload = response.json()
    assert payload["total_earnings"] == 9500
    assert payload["admin_fees_total"] == 500
    assert payload["estimated_earnings"] == 4000
    assert payload["available_balance"] == 9500
    assert payload["completed_count"] == 1
    assert payload["upcoming_count"] == 1


def test_unreadable_booking_does_not_block_host(api: TestClient, fake_db: FakeSupabase) -> None:
    _seed_bookings(fake_db)
    fake_db.seed("bookings", {"host_id": HOST_ID, "status": "confirmed", "check_in": "TBD"})

    earnings = api.get("/host/earnings")
    cashout = api.post("/host/cashouts", json={"email": "host@example.com", "amount": "500"})

    assert earnings.status_code == 200
    assert earnings.json()["available_balance"] == 9500
    assert earnings.json()["anomaly_count"] == 1
    assert cashout.status_code == 201


def test_cashout_round_trip(api: TestClient, fake_db: FakeSupabase, paypal: FakePayPal) -> None:
    _seed_bookings(fake_db)

    response = api.post("/host/cashouts", json={"email": "host@example.com", "amount": "2500"})

    assert response.status_code == 201
    receipt = response.json()
    assert receipt["payout_batch_id"] == "BATCH0001"
    assert receipt["status"] == "processing"
    assert receipt["remaining_balance"] == 7000
    assert receipt["summary"]["available_balance"] == 7000
    assert paypal.payout_bodies()[0]["items"][0]["amount"] == {"value": "2500.00", "currency": "PHP"}

    history = api.get("/host/cashouts").json()
    assert history["total"] == 1
    assert history["cashouts"][0]["paypal_email"] == "host@example.com"


def test_cashout_validation_errors(api: TestClient, fake_db: FakeSupabase, paypal: FakePayPal) -> None:
    _seed_bookings(fake_db)

    below_min = api.post("/host/cashouts", json={"email": "host@example.com", "amount": "50"})
    too_much = api.post("/host/cashouts", json={"email": "host@example.com", "amount": "9500.01"})
    no_email = api.post("/host/cashouts", json={"amount": "500"})

    assert below_min.status_code == 422
    assert below_min.json()["code"] == "INVALID_INPUT"
    assert too_much.status_code == 400
    assert too_much.json()["code"] == "INSUFFICIENT_BALANCE"
    assert no_email.status_code == 422
    assert paypal.requests == []


def test_cashout_provider_failure_is_bad_gateway(
    api: TestClient, fake_db: FakeSupabase, paypal: FakePayPal
) -> None:
    _seed_bookings(fake_db)
    paypal.payout_status = 422

    response = api.post("/host/cashouts", json={"email": "host@example.com", "amount": "500"})

    assert response.status_code == 502
    assert response.json() == {"error": "Invalid request", "code": "PROVIDER_PAYOUT_FAILED"}
    assert fake_db.rows("cash_outs") == []


def test_redeem_credit(api: TestClient, fake_db: FakeSupabase) -> None:
    fake_db.seed("credit_codes", {"code": "BONUS200", "status": "active", "redeemed": False, "reward": "Promo"})

    first = api.post("/host/credits/redeem", json={"code": "bonus200"})
    second = api.post("/host/credits/redeem", json={"code": "BONUS200"})
    missing = api.post("/host/credits/redeem", json={"code": "NOPE"})
    empty = api.post("/host/credits/redeem", json={"code": ""})

    assert first.status_code == 200
    assert first.json()["amount"] == 200
    assert second.status_code == 409
    assert second.json()["code"] == "ALREADY_REDEEMED"
    assert missing.status_code == 404
    assert empty.status_code == 422
    assert api.get("/host/earnings").json()["available_balance"] == 200


def test_transaction_history(api: TestClient, fake_db: FakeSupabase) -> None:
    _seed_bookings(fake_db)
    fake_db.seed("credit_codes", {"code": "BONUS200", "status": "active", "redeemed": False, "reward": "Promo"})
    api.post("/host/credits/redeem", json={"code": "BONUS200"})
    api.post("/host/cashouts", json={"email": "host@example.com", "amount": "1000"})

    response = api.get("/host/transactions")

    assert response.status_code == 200
    entries = response.json()["transactions"]
    assert [entry["type"] for entry in entries] == ["payout", "credit", "booking"]
    payout, credit, booking = entries
    assert payout["amount"] == 1000
    assert credit["reward_name"] == "Promo"
    assert booking["guest_name"] == "Ana Reyes"
    assert booking["amount"] == 9500
    assert booking["admin_fee"] == 500
