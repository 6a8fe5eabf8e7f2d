"""Credit code endpoints."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends

from app.dependencies import get_current_host_id, get_db_client
from app.schemas.credit import CreditRedeemRequest, CreditRedeemResponse
from app.services.credit_service import CreditService
from supabase import Client

router = APIRouter()


@router.post("/credits/redeem", response_model=CreditRedeemResponse)
def redeem_credit(
    payload: CreditRedeemRequest,
    host_id: str = Depends(get_current_host_id),
    client: Client = Depends(get_db_client),
) -> dict:
    """Redeem one credit code into the host's available balance."""
    grant = CreditService(client).redeem(code=payload.code, host_id=host_id)
    return asdict(grant)
