"""Host earnings endpoint."""

from __future__ import annotations

from dataclasses import asdict

from fastapi import APIRouter, Depends

from app.dependencies import get_current_host_id, get_db_client
from app.schemas.earnings import EarningsSummaryResponse
from app.services.earnings_service import EarningsService
from supabase import Client

router = APIRouter()


@router.get("/earnings", response_model=EarningsSummaryResponse)
def get_earnings(
    host_id: str = Depends(get_current_host_id),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return the current host's earnings summary."""
    return asdict(EarningsService(client).get_summary(host_id))
