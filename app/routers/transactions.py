"""Host transaction history endpoint."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from app.dependencies import get_current_host_id, get_db_client
from app.schemas.transaction import TransactionHistoryResponse
from app.services.earnings_service import EarningsService
from supabase import Client

router = APIRouter()


@router.get("/transactions", response_model=TransactionHistoryResponse)
def get_transactions(
    host_id: str = Depends(get_current_host_id),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return completed booking earnings, credits and payouts, newest first."""
    return {"transactions": EarningsService(client).get_transaction_history(host_id)}
