"""Profile lookups and display-name resolution."""

from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping
from typing import Any

from app.services.common import SupabaseService
from app.utils.fields import is_blank
from supabase import Client

DEFAULT_DISPLAY_NAME = "Guest"


def _field(name: str) -> Callable[[Mapping[str, Any]], str | None]:
    return lambda profile: profile.get(name)


def _first_and_last(profile: Mapping[str, Any]) -> str | None:
    first = (profile.get("first_name") or "").strip()
    last = (profile.get("last_name") or "").strip()
    if first and last:
        return f"{first} {last}"
    return None


def _email_local_part(profile: Mapping[str, Any]) -> str | None:
    email = profile.get("email") or ""
    return email.split("@", 1)[0] if "@" in email else None


# Earlier entries win.
DISPLAY_NAME_CANDIDATES: tuple[Callable[[Mapping[str, Any]], str | None], ...] = (
    _field("display_name"),
    _field("full_name"),
    _first_and_last,
    _field("first_name"),
    _email_local_part,
)


def resolve_display_name(profile: Mapping[str, Any] | None, default: str = DEFAULT_DISPLAY_NAME) -> str:
    """Return the first non-empty name candidate for a profile."""
    if not profile:
        return default
    for candidate in DISPLAY_NAME_CANDIDATES:
        value = candidate(profile)
        if not is_blank(value):
            return str(value).strip()
    return default


class ProfileService:
    """Resolve user ids to display names."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def display_names(self, user_ids: Iterable[str]) -> dict[str, str]:
        profiles = self.db.get_profiles_map(user_ids)
        return {user_id: resolve_display_name(profile) for user_id, profile in profiles.items()}

    def display_name(self, user_id: str) -> str:
        return self.display_names([user_id]).get(str(user_id), DEFAULT_DISPLAY_NAME)
