"""Cashout request and history schemas."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel

from app.schemas.earnings import EarningsSummaryResponse


class CashoutRequest(BaseModel):
    """Request body for cashing out to a PayPal account."""

    email: str = ""
    amount: Decimal


class CashoutResponse(BaseModel):
    """Receipt for a recorded cashout."""

    amount: float
    currency: str
    paypal_email: str
    payout_batch_id: str
    provider_status: str
    status: str
    transaction_id: str | None = None
    remaining_balance: float
    summary: EarningsSummaryResponse | None = None


class CashoutRecord(BaseModel):
    """A single row of cashout history."""

    id: str
    amount: float
    currency: str = "PHP"
    status: str
    provider_status: str | None = None
    paypal_email: str | None = None
    payout_batch_id: str | None = None
    remaining_balance: float | None = None
    created_at: datetime | None = None
    processed_at: datetime | None = None


class CashoutListResponse(BaseModel):
    """Paginated cashout history."""

    cashouts: list[CashoutRecord]
    total: int
