"""Transaction history schemas."""

from datetime import date, datetime

from pydantic import BaseModel


class TransactionEntry(BaseModel):
    """One booking earning, credit grant or payout in the history feed."""

    id: str | None = None
    type: str
    amount: float
    status: str
    completed_at: datetime | date | None = None
    created_at: datetime | None = None

    # booking
    booking_id: str | None = None
    listing_title: str | None = None
    guest_id: str | None = None
    guest_name: str | None = None
    check_in: date | None = None
    check_out: date | None = None
    booking_total: float | None = None
    admin_fee: float | None = None

    # credit
    reward_name: str | None = None
    code: str | None = None

    # payout
    currency: str | None = None
    payment_method: str | None = None
    paypal_email: str | None = None
    payout_batch_id: str | None = None
    description: str | None = None


class TransactionHistoryResponse(BaseModel):
    """Newest-first transaction feed."""

    transactions: list[TransactionEntry]
