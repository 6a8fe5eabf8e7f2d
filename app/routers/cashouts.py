"""Host cashout endpoints."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends, Query

from app.dependencies import get_current_host_id, get_db_client, get_payout_client
from app.schemas.cashout import CashoutListResponse, CashoutRequest, CashoutResponse
from app.services.cashout_service import CashoutService
from app.services.payout_provider import PayPalPayoutProvider
from supabase import Client

router = APIRouter()


@router.get("/cashouts", response_model=CashoutListResponse)
def list_cashouts(
    limit: int = Query(default=50, ge=1, le=200),
    offset: int = Query(default=0, ge=0),
    host_id: str = Depends(get_current_host_id),
    client: Client = Depends(get_db_client),
    provider: PayPalPayoutProvider = Depends(get_payout_client),
) -> dict:
    """Return the current host's cashout history."""
    rows, total = CashoutService(client, provider).list_cashouts(host_id, limit=limit, offset=offset)
    return {"cashouts": rows, "total": total}


@router.post("/cashouts", response_model=CashoutResponse, status_code=201)
def request_cashout(
    payload: CashoutRequest,
    host_id: str = Depends(get_current_host_id),
    client: Client = Depends(get_db_client),
    provider: PayPalPayoutProvider = Depends(get_payout_client),
) -> dict:
    """Pay out part of the available balance to a PayPal account."""
    receipt = CashoutService(client, provider).request_cashout(
        host_id=host_id,
        email=payload.email,
        amount=payload.amount,
    )
    return asdict(receipt)
