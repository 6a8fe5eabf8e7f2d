"""Display-name resolution tests."""

from __future__ import annotations

import pytest

from app.services.profile_service import ProfileService, resolve_display_name
from tests.fakes import FakeSupabase


@pytest.mark.parametrize(
    ("profile", "expected"),
    [
        ({"display_name": "Ria", "full_name": "Maria Santos"}, "Ria"),
        ({"display_name": "  ", "full_name": "Maria Santos"}, "Maria Santos"),
        ({"first_name": "Maria", "last_name": "Santos"}, "Maria Santos"),
        ({"first_name": "Maria", "last_name": ""}, "Maria"),
        ({"email": "maria.s@example.com"}, "maria.s"),
        ({"email": "not-an-email"}, "Guest"),
        ({}, "Guest"),
        (None, "Guest"),
    ],
)
def test_resolution_order(profile, expected: str) -> None:
    assert resolve_display_name(profile) == expected


def test_display_names_for_known_and_unknown_ids(fake_db: FakeSupabase) -> None:
    fake_db.seed("profiles", {"id": "guest-1", "full_name": "Juan Dela Cruz"})
    service = ProfileService(fake_db)

    assert service.display_names(["guest-1", "guest-9"]) == {"guest-1": "Juan Dela Cruz"}
    assert service.display_name("guest-9") == "Guest"


def test_profiles_are_cached(fake_db: FakeSupabase) -> None:
    fake_db.seed("profiles", {"id": "guest-1", "display_name": "Ana"})
    service = ProfileService(fake_db)
    assert service.display_name("guest-1") == "Ana"

    fake_db.fail("profiles")

    assert service.display_name("guest-1") == "Ana"
