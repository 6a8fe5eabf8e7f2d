"""Service package exports with lazy loading."""

from __future__ import annotations

from importlib import import_module
from typing import Any

_EXPORTS = {
    "CashoutService": "app.services.cashout_service",
    "CashoutWorkflow": "app.services.cashout_service",
    "CreditService": "app.services.credit_service",
    "EarningsService": "app.services.earnings_service",
    "LedgerService": "app.services.ledger_service",
    "PayPalPayoutProvider": "app.services.payout_provider",
    "ProfileService": "app.services.profile_service",
    "SupabaseService": "app.services.common",
}

__all__ = sorted(_EXPORTS.keys())


def __getattr__(name: str) -> Any:
    if name not in _EXPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
    module = import_module(_EXPORTS[name])
    return getattr(module, name)
