"""Host earnings aggregation and transaction history."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, replace
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from pydantic import ValidationError

from app.services.booking_rules import (
    Booking,
    BookingBucket,
    classify,
    completion_date,
    is_completed,
    split_fee,
)
from app.services.common import SupabaseService
from app.services.ledger_service import LedgerService, total_cashed_out, total_credits
from app.services.profile_service import ProfileService
from app.utils.time import first_day_of_month, first_day_of_next_month, now_utc, to_local_date
from supabase import Client

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
DEFAULT_CREDIT_NAME = "E-wallet Credit"


@dataclass(frozen=True)
class EarningsSummary:
    estimated_earnings: Decimal = ZERO
    total_earnings: Decimal = ZERO
    admin_fees_total: Decimal = ZERO
    total_credits: Decimal = ZERO
    total_cashed_out: Decimal = ZERO
    available_balance: Decimal = ZERO
    this_month_earnings: Decimal = ZERO
    this_month_estimated: Decimal = ZERO
    completed_count: int = 0
    upcoming_count: int = 0
    anomaly_count: int = 0


def summarize_earnings(
    bookings: Iterable[Booking],
    now: date | datetime,
    cashouts: Iterable[Mapping[str, Any]] = (),
    credits: Iterable[Mapping[str, Any]] = (),
    fee_rate: Decimal | None = None,
) -> EarningsSummary:
    """Fold a host's bookings and ledger rows into an earnings summary.

    Upcoming bookings are a projection only and never reach the available
    balance, which is clamped at zero.
    """
    today = to_local_date(now) if isinstance(now, datetime) else now
    month_start = first_day_of_month(today)
    next_month_start = first_day_of_next_month(today)

    estimated = total = fees = this_month = this_month_estimated = ZERO
    completed_count = upcoming_count = anomaly_count = 0

    for booking in bookings:
        bucket, anomaly = classify(booking, today)
        anomaly_count += int(anomaly)

        if bucket == BookingBucket.COMPLETED:
            completed_count += 1
            split = split_fee(booking.total, fee_rate)
            total += split.net
            fees += split.fee
            credited_on = completion_date(booking)
            if credited_on is not None and credited_on >= month_start:
                this_month += split.net
        elif bucket == BookingBucket.UPCOMING:
            upcoming_count += 1
            estimated += booking.total
            if booking.check_in is not None and month_start <= booking.check_in < next_month_start:
                this_month_estimated += booking.total

    credited = total_credits(credits)
    cashed_out = total_cashed_out(cashouts)
    return EarningsSummary(
        estimated_earnings=estimated,
        total_earnings=total,
        admin_fees_total=fees,
        total_credits=credited,
        total_cashed_out=cashed_out,
        available_balance=max(ZERO, total + credited - cashed_out),
        this_month_earnings=this_month,
        this_month_estimated=this_month_estimated,
        completed_count=completed_count,
        upcoming_count=upcoming_count,
        anomaly_count=anomaly_count,
    )


def _sort_key(entry: Mapping[str, Any]) -> datetime:
    value = entry.get("completed_at") or entry.get("created_at")
    if value is None:
        return datetime.min.replace(tzinfo=UTC)
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    elif not isinstance(value, datetime):
        value = datetime.combine(value, datetime.min.time())
    return value if value.tzinfo else value.replace(tzinfo=UTC)


def build_transaction_history(
    bookings: Iterable[Booking],
    credits: Iterable[Mapping[str, Any]],
    payouts: Iterable[Mapping[str, Any]],
    now: date | datetime,
    reward_names: Mapping[str, str] | None = None,
    guest_names: Mapping[str, str] | None = None,
    fee_rate: Decimal | None = None,
) -> list[dict[str, Any]]:
    """Merge completed bookings, credits and payouts into one newest-first feed."""
    reward_names = reward_names or {}
    guest_names = guest_names or {}
    entries: list[dict[str, Any]] = []

    for booking in bookings:
        if not is_completed(booking, now):
            continue
        split = split_fee(booking.total, fee_rate)
        entries.append(
            {
                "id": booking.id,
                "type": "booking",
                "booking_id": booking.id,
                "listing_title": booking.listing_title or "Unknown Listing",
                "guest_id": booking.guest_id,
                "guest_name": guest_names.get(str(booking.guest_id)) if booking.guest_id else None,
                "check_in": booking.check_in,
                "check_out": booking.check_out,
                "booking_total": booking.total,
                "admin_fee": split.fee,
                "amount": split.net,
                "status": "completed",
                "completed_at": completion_date(booking),
                "created_at": booking.created_at or booking.updated_at,
            }
        )

    for credit in credits:
        code = credit.get("code")
        entries.append(
            {
                "id": str(credit.get("id")),
                "type": "credit",
                "amount": Decimal(str(credit.get("amount") or 0)),
                "reward_name": (code and reward_names.get(code))
                or credit.get("description")
                or DEFAULT_CREDIT_NAME,
                "code": code,
                "status": credit.get("status", "completed"),
                "completed_at": credit.get("created_at"),
                "created_at": credit.get("created_at"),
            }
        )

    for payout in payouts:
        status = payout.get("status") or "processing"
        settled_at = payout.get("updated_at") if status == "completed" else None
        entries.append(
            {
                "id": str(payout.get("id")),
                "type": "payout",
                "amount": Decimal(str(payout.get("amount") or 0)),
                "currency": payout.get("currency") or "PHP",
                "status": status,
                "payment_method": payout.get("payment_method") or "paypal",
                "paypal_email": payout.get("paypal_email") or "",
                "payout_batch_id": payout.get("payout_batch_id"),
                "description": payout.get("description") or "Cash out to PayPal",
                "completed_at": settled_at or payout.get("created_at"),
                "created_at": payout.get("created_at"),
            }
        )

    entries.sort(key=_sort_key, reverse=True)
    return entries


class EarningsService:
    """Load a host's ledger inputs and project earnings from them."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)
        self.ledger = LedgerService(client)
        self.profiles = ProfileService(client)

    def load_host_bookings(self, host_id: str) -> tuple[list[Booking], int]:
        """Return the host's parseable bookings and how many rows were skipped."""
        rows = self.db.select_many("bookings", filters={"host_id": host_id})
        bookings: list[Booking] = []
        skipped = 0
        for row in rows:
            try:
                bookings.append(Booking.model_validate(row))
            except ValidationError as exc:
                skipped += 1
                logger.warning(
                    "Skipping unreadable booking %s (%s invalid fields)",
                    row.get("id"),
                    exc.error_count(),
                    extra={"booking_id": row.get("id"), "host_id": host_id},
                )
        return bookings, skipped

    def list_host_bookings(self, host_id: str) -> list[Booking]:
        return self.load_host_bookings(host_id)[0]

    def get_summary(self, host_id: str, now: datetime | None = None) -> EarningsSummary:
        """Recompute the host's earnings summary from scratch."""
        bookings, skipped = self.load_host_bookings(host_id)
        summary = summarize_earnings(
            bookings,
            now or now_utc(),
            cashouts=self.ledger.list_cashouts(host_id),
            credits=self.ledger.list_credits(host_id),
        )
        if skipped:
            summary = replace(summary, anomaly_count=summary.anomaly_count + skipped)
        logger.debug(
            "Earnings for host %s: total=%s available=%s",
            host_id,
            summary.total_earnings,
            summary.available_balance,
            extra={"host_id": host_id, "anomalies": summary.anomaly_count},
        )
        return summary

    def get_transaction_history(self, host_id: str, now: datetime | None = None) -> list[dict[str, Any]]:
        bookings = self.list_host_bookings(host_id)
        reward_names = {
            row["code"]: row["reward"]
            for row in self.ledger.list_redeemed_codes(host_id)
            if row.get("code") and row.get("reward")
        }
        guest_names = self.profiles.display_names(b.guest_id for b in bookings if b.guest_id)
        return build_transaction_history(
            bookings,
            self.ledger.list_credits(host_id),
            self.ledger.list_wallet_payouts(host_id),
            now or now_utc(),
            reward_names=reward_names,
            guest_names=guest_names,
        )
