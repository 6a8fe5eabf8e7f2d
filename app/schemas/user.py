"""User-related schemas."""

from typing import Any

from pydantic import BaseModel


class SessionResponse(BaseModel):
    """Authenticated user with their resolved display name."""

    user: Any
    display_name: str
