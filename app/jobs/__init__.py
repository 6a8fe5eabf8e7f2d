"""Background job modules for periodic ledger tasks."""

from app.jobs.payout_sync import payout_sync, sync_processing_payouts

__all__ = [
    "payout_sync",
    "sync_processing_payouts",
]
