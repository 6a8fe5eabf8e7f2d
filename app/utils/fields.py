"""Ordered optional-field resolution for loosely shaped rows."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any


def is_blank(value: Any) -> bool:
    """Return True for None, empty/whitespace strings and numeric zero."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, bool):
        return False
    if isinstance(value, int | float | Decimal):
        return value == 0
    return False


def first_present(row: Mapping[str, Any], keys: Sequence[str], default: Any = None) -> Any:
    """Return the value of the first key in ``keys`` that is not blank."""
    for key in keys:
        value = row.get(key)
        if not is_blank(value):
            return value
    return default
