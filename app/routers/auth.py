"""Authentication endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from app.dependencies import get_authenticated_user, get_current_user_id, get_db_client
from app.schemas.user import SessionResponse
from app.services.profile_service import ProfileService
from supabase import Client

router = APIRouter()


@router.get("/session", response_model=SessionResponse)
def auth_session(
    user: Any = Depends(get_authenticated_user),
    client: Client = Depends(get_db_client),
) -> dict:
    """Return the currently authenticated user."""
    display_name = ProfileService(client).display_name(get_current_user_id(user))
    return {"user": user, "display_name": display_name}


@router.post("/signout")
def auth_signout() -> dict:
    """Return success for stateless sign-out handling."""
    return {"success": True}
