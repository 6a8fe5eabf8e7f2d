"""Scheduled reconciliation of in-flight PayPal payouts."""

from __future__ import annotations

import logging

from app.services.ledger_service import LedgerService
from app.services.payout_provider import PayPalPayoutProvider, get_payout_provider, ledger_status_for
from app.utils.errors import AppError
from app.utils.supabase_client import get_service_client
from supabase import Client

logger = logging.getLogger(__name__)


def sync_processing_payouts(client: Client, provider: PayPalPayoutProvider) -> int:
    """Refresh every processing payout from PayPal and return how many changed."""
    ledger = LedgerService(client)
    changed = 0
    for cashout in ledger.list_processing_cashouts():
        batch_id = cashout.get("payout_batch_id")
        if not batch_id:
            continue
        try:
            batch = provider.get_payout_batch(batch_id)
            status = ledger_status_for(batch.status)
            if status == cashout.get("status"):
                continue
            ledger.update_payout_status(batch_id, status=status, provider_status=batch.status)
        except AppError as exc:
            logger.warning(
                "Could not sync payout %s: %s",
                batch_id,
                exc.message,
                extra={"payout_batch_id": batch_id},
            )
            continue
        changed += 1
        logger.info("Payout %s moved to %s", batch_id, status, extra={"payout_batch_id": batch_id})
    return changed


def payout_sync() -> None:
    """Scheduler entry point for payout status reconciliation.

    Plain ``def`` so the scheduler runs the blocking PayPal and Supabase calls
    in its thread pool instead of on the event loop.
    """
    changed = sync_processing_payouts(get_service_client(), get_payout_provider())
    logger.info("payout_sync completed with %s status changes", changed)
