"""Earnings summary schemas."""

from pydantic import BaseModel


class EarningsSummaryResponse(BaseModel):
    """Host earnings projection, recomputed on every request."""

    estimated_earnings: float = 0
    total_earnings: float = 0
    admin_fees_total: float = 0
    total_credits: float = 0
    total_cashed_out: float = 0
    available_balance: float = 0
    this_month_earnings: float = 0
    this_month_estimated: float = 0
    completed_count: int = 0
    upcoming_count: int = 0
    anomaly_count: int = 0
