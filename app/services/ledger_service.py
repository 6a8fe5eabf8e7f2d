"""Host payout and credit ledger service."""

from __future__ import annotations

from collections.abc import Iterable
from decimal import Decimal
from typing import Any

from app.services.common import SupabaseService
from supabase import Client

BALANCE_REDUCING_STATUSES = frozenset({"processing", "completed"})


def _amount(row: dict[str, Any]) -> Decimal:
    return Decimal(str(row.get("amount") or 0))


def total_cashed_out(cashouts: Iterable[dict[str, Any]]) -> Decimal:
    """Sum payouts that hold or have left the host's balance (failed ones are ignored)."""
    return sum(
        (_amount(row) for row in cashouts if row.get("status") in BALANCE_REDUCING_STATUSES),
        Decimal("0"),
    )


def total_credits(credits: Iterable[dict[str, Any]]) -> Decimal:
    """Sum completed credit grants."""
    return sum(
        (
            _amount(row)
            for row in credits
            if row.get("type", "credit") == "credit" and row.get("status") == "completed"
        ),
        Decimal("0"),
    )


class LedgerService:
    """Read and append host cashout, wallet and credit ledger rows."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def list_cashouts(
        self,
        host_id: str,
        limit: int | None = None,
        offset: int | None = None,
    ) -> list[dict[str, Any]]:
        return self.db.select_many(
            "cash_outs",
            filters={"host_id": host_id},
            order_by="created_at",
            descending=True,
            limit=limit,
            offset=offset,
        )

    def count_cashouts(self, host_id: str) -> int:
        return self.db.count("cash_outs", {"host_id": host_id})

    def list_processing_cashouts(self) -> list[dict[str, Any]]:
        """Return every payout still waiting on a final provider status."""
        return self.db.select_many("cash_outs", filters={"status": "processing"}, order_by="created_at")

    def list_credits(self, host_id: str) -> list[dict[str, Any]]:
        return self.db.select_many(
            "transactions",
            filters={"user_id": host_id, "type": "credit", "status": "completed"},
            order_by="created_at",
            descending=True,
        )

    def list_wallet_payouts(self, host_id: str) -> list[dict[str, Any]]:
        return self.db.select_many(
            "wallet_transactions",
            filters={"user_id": host_id, "type": "payout"},
            order_by="created_at",
            descending=True,
        )

    def list_redeemed_codes(self, host_id: str) -> list[dict[str, Any]]:
        return self.db.select_many(
            "credit_codes",
            filters={"redeemed_by": host_id, "redeemed": True},
        )

    def record_cashout(
        self,
        host_id: str,
        email: str,
        amount: Decimal,
        currency: str,
        status: str,
        provider_status: str,
        payout_batch_id: str,
        sender_batch_id: str,
        transaction_id: str | None,
        remaining_balance: Decimal,
    ) -> dict[str, Any]:
        """Write the cashout, wallet transaction and history rows in one transaction.

        Returns the ids of the three rows created by ``record_host_cashout``.
        """
        return self.db.rpc_one(
            "record_host_cashout",
            {
                "p_host_id": host_id,
                "p_paypal_email": email,
                "p_amount": str(amount),
                "p_currency": currency,
                "p_status": status,
                "p_provider_status": provider_status,
                "p_payout_batch_id": payout_batch_id,
                "p_sender_batch_id": sender_batch_id,
                "p_transaction_id": transaction_id,
                "p_remaining_balance": str(remaining_balance),
            },
        )

    def update_payout_status(
        self,
        payout_batch_id: str,
        status: str,
        provider_status: str,
    ) -> dict[str, Any]:
        """Move every row linked to a payout batch to a new status atomically."""
        return self.db.rpc_one(
            "update_host_payout_status",
            {
                "p_payout_batch_id": payout_batch_id,
                "p_status": status,
                "p_provider_status": provider_status,
            },
        )
