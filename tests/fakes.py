"""In-memory stand-ins for Supabase and PayPal used across the test suite."""

from __future__ import annotations

import itertools
import json
import threading
import uuid
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from typing import Any

import httpx
from postgrest import APIError

from app.services.payout_provider import PayPalPayoutProvider

HOST_ID = "host-1"

_clock = itertools.count()
_EPOCH = datetime(2026, 1, 1, tzinfo=UTC)


def _timestamp() -> str:
    # Strictly increasing so created_at ordering is deterministic.
    return (_EPOCH + timedelta(microseconds=next(_clock))).isoformat()


class FakeResponse:
    def __init__(self, data: Any, count: int | None = None) -> None:
        self.data = data
        self.count = count


class FakeQuery:
    """Subset of the postgrest query builder used by ``SupabaseService``."""

    def __init__(self, db: FakeSupabase, table: str) -> None:
        self.db = db
        self.table_name = table
        self.operation = "select"
        self.payload: Any = None
        self.filters: list[Callable[[dict[str, Any]], bool]] = []
        self.order_key: str | None = None
        self.descending = False
        self.limit_value: int | None = None
        self.offset_value = 0
        self.count_mode: str | None = None
        self.head = False

    def select(self, columns: str = "*", count: str | None = None, head: bool = False) -> FakeQuery:
        self.operation = "select"
        self.count_mode = count
        self.head = head
        return self

    def insert(self, payload: Any) -> FakeQuery:
        self.operation = "insert"
        self.payload = payload
        return self

    def update(self, payload: dict[str, Any]) -> FakeQuery:
        self.operation = "update"
        self.payload = payload
        return self

    def delete(self) -> FakeQuery:
        self.operation = "delete"
        return self

    def eq(self, key: str, value: Any) -> FakeQuery:
        self.filters.append(lambda row: row.get(key) == value)
        return self

    def in_(self, key: str, values: list[Any]) -> FakeQuery:
        wanted = set(values)
        self.filters.append(lambda row: row.get(key) in wanted)
        return self

    def gt(self, key: str, value: Any) -> FakeQuery:
        self.filters.append(lambda row: row.get(key) is not None and row.get(key) > value)
        return self

    def order(self, key: str, desc: bool = False) -> FakeQuery:
        self.order_key = key
        self.descending = desc
        return self

    def limit(self, value: int) -> FakeQuery:
        self.limit_value = value
        return self

    def offset(self, value: int) -> FakeQuery:
        self.offset_value = value
        return self

    def _matching(self) -> list[dict[str, Any]]:
        rows = self.db.tables.setdefault(self.table_name, [])
        return [row for row in rows if all(check(row) for check in self.filters)]

    def execute(self) -> FakeResponse:
        self.db.check_failure(self.table_name)
        with self.db.lock:
            if self.operation == "insert":
                payloads = self.payload if isinstance(self.payload, list) else [self.payload]
                created = [self.db.insert(self.table_name, payload) for payload in payloads]
                return FakeResponse([dict(row) for row in created])

            matching = self._matching()
            if self.operation == "update":
                for row in matching:
                    row.update(self.payload)
                return FakeResponse([dict(row) for row in matching])
            if self.operation == "delete":
                rows = self.db.tables[self.table_name]
                self.db.tables[self.table_name] = [r for r in rows if r not in matching]
                return FakeResponse([dict(row) for row in matching])

            if self.order_key:
                matching.sort(key=lambda row: str(row.get(self.order_key) or ""), reverse=self.descending)
            total = len(matching)
            matching = matching[self.offset_value :]
            if self.limit_value is not None:
                matching = matching[: self.limit_value]
            if self.head:
                return FakeResponse(None, count=total)
            return FakeResponse([dict(row) for row in matching], count=total if self.count_mode else None)


class FakeRpc:
    def __init__(self, db: FakeSupabase, function: str, params: dict[str, Any]) -> None:
        self.db = db
        self.function = function
        self.params = params

    def execute(self) -> FakeResponse:
        self.db.rpc_calls.append((self.function, dict(self.params)))
        self.db.check_failure(self.function)
        handler = getattr(self.db, f"_rpc_{self.function}")
        with self.db.lock:
            return FakeResponse(handler(**self.params))


class FakeSupabase:
    """Supabase client double backed by dict tables.

    The ledger RPCs mirror ``sql/host_ledger.sql`` and run under one lock,
    standing in for the database transaction.
    """

    def __init__(self) -> None:
        self.tables: dict[str, list[dict[str, Any]]] = {}
        self.lock = threading.RLock()
        self.failures: dict[str, str] = {}
        self.rpc_calls: list[tuple[str, dict[str, Any]]] = []

    def table(self, name: str) -> FakeQuery:
        return FakeQuery(self, name)

    def rpc(self, function: str, params: dict[str, Any]) -> FakeRpc:
        return FakeRpc(self, function, params)

    def fail(self, target: str, message: str = "connection reset") -> None:
        """Make every call against a table or RPC raise ``APIError``."""
        self.failures[target] = message

    def check_failure(self, target: str) -> None:
        if target in self.failures:
            raise APIError({"message": self.failures[target], "code": "XX000"})

    def insert(self, table: str, payload: dict[str, Any]) -> dict[str, Any]:
        row = {"id": str(uuid.uuid4()), "created_at": _timestamp(), **payload}
        self.tables.setdefault(table, []).append(row)
        return row

    def seed(self, table: str, *rows: dict[str, Any]) -> list[dict[str, Any]]:
        with self.lock:
            return [self.insert(table, row) for row in rows]

    def rows(self, table: str) -> list[dict[str, Any]]:
        return list(self.tables.get(table, []))

    def _rpc_redeem_credit_code(
        self, p_code: str, p_host_id: str, p_default_value: str = "200"
    ) -> list[dict[str, Any]]:
        code = p_code.strip().upper()
        row = next((r for r in self.tables.get("credit_codes", []) if r.get("code") == code), None)
        if row is None or row.get("host_id") not in (None, p_host_id):
            return [{"success": False, "reason": "code_not_found"}]
        if row.get("redeemed"):
            return [{"success": False, "reason": "already_redeemed"}]
        if row.get("status") != "active":
            return [{"success": False, "reason": "code_inactive"}]

        value = Decimal(str(row.get("credit_value") or p_default_value))
        row.update(redeemed=True, redeemed_by=p_host_id, redeemed_at=_timestamp(), status="redeemed")
        transaction = self.insert(
            "transactions",
            {
                "user_id": p_host_id,
                "type": "credit",
                "amount": float(value),
                "currency": "PHP",
                "status": "completed",
                "payment_method": "e-wallet",
                "description": f"E-wallet credit claimed - Code: {code}",
                "code": code,
            },
        )
        return [
            {
                "success": True,
                "reason": "redeemed",
                "credit_value": float(value),
                "reward": row.get("reward"),
                "transaction_id": transaction["id"],
            }
        ]

    def _rpc_record_host_cashout(self, **params: Any) -> list[dict[str, Any]]:
        amount = float(params["p_amount"])
        remaining = float(params["p_remaining_balance"])
        description = f"Cash out to PayPal - {params['p_paypal_email']}"
        wallet = self.insert(
            "wallet_transactions",
            {
                "user_id": params["p_host_id"],
                "type": "payout",
                "amount": amount,
                "currency": params["p_currency"],
                "status": params["p_status"],
                "payment_method": "paypal",
                "paypal_email": params["p_paypal_email"],
                "payout_batch_id": params["p_payout_batch_id"],
                "transaction_id": params["p_transaction_id"],
                "remaining_balance": remaining,
                "description": description,
            },
        )
        cash_out = self.insert(
            "cash_outs",
            {
                "host_id": params["p_host_id"],
                "amount": amount,
                "currency": params["p_currency"],
                "paypal_email": params["p_paypal_email"],
                "payout_batch_id": params["p_payout_batch_id"],
                "sender_batch_id": params["p_sender_batch_id"],
                "status": params["p_status"],
                "provider_status": params["p_provider_status"],
                "remaining_balance": remaining,
                "wallet_transaction_id": wallet["id"],
            },
        )
        history = self.insert(
            "transactions",
            {
                "user_id": params["p_host_id"],
                "type": "cashout",
                "amount": amount,
                "currency": params["p_currency"],
                "status": params["p_status"],
                "payout_batch_id": params["p_payout_batch_id"],
                "description": description,
                "cash_out_id": cash_out["id"],
                "wallet_transaction_id": wallet["id"],
            },
        )
        return [
            {
                "cash_out_id": cash_out["id"],
                "wallet_transaction_id": wallet["id"],
                "transaction_id": history["id"],
            }
        ]

    def _rpc_update_host_payout_status(
        self, p_payout_batch_id: str, p_status: str, p_provider_status: str
    ) -> list[dict[str, Any]]:
        updated = 0
        for row in self.tables.get("cash_outs", []):
            if row.get("payout_batch_id") == p_payout_batch_id:
                row.update(status=p_status, provider_status=p_provider_status)
                updated += 1
        for table in ("wallet_transactions", "transactions"):
            for row in self.tables.get(table, []):
                if row.get("payout_batch_id") == p_payout_batch_id:
                    row["status"] = p_status
        return [{"updated": updated}]


class FakePayPal:
    """Scriptable PayPal REST endpoint served through ``httpx.MockTransport``."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.token_status = 200
        self.payout_status = 201
        self.payout_error: dict[str, Any] = {"name": "VALIDATION_ERROR", "message": "Invalid request"}
        self.batch_status = "PENDING"
        self.batch_statuses: dict[str, str] = {}
        self.raise_on_payout = False
        self._batches = itertools.count(1)

    def paths(self) -> list[str]:
        return [request.url.path for request in self.requests]

    def payout_bodies(self) -> list[dict[str, Any]]:
        return [
            json.loads(request.content)
            for request in self.requests
            if request.method == "POST" and request.url.path == "/v1/payments/payouts"
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/v1/oauth2/token":
            if self.token_status != 200:
                return httpx.Response(self.token_status, text="invalid_client")
            return httpx.Response(200, json={"access_token": "token-abc", "expires_in": 32400})

        if path == "/v1/payments/payouts" and request.method == "POST":
            if self.raise_on_payout:
                raise httpx.ConnectError("connection refused", request=request)
            if self.payout_status >= 400:
                return httpx.Response(self.payout_status, json=self.payout_error)
            body = json.loads(request.content)
            batch_id = f"BATCH{next(self._batches):04d}"
            return httpx.Response(
                self.payout_status,
                json={
                    "batch_header": {
                        "payout_batch_id": batch_id,
                        "batch_status": self.batch_status,
                        "sender_batch_header": body["sender_batch_header"],
                    },
                    "links": [{"rel": "self", "href": f"https://paypal.test/v1/payments/payouts/{batch_id}"}],
                },
            )

        if path.startswith("/v1/payments/payouts/"):
            batch_id = path.rsplit("/", 1)[-1]
            status = self.batch_statuses.get(batch_id)
            if status is None:
                return httpx.Response(404, json={"name": "RESOURCE_NOT_FOUND", "message": "Batch not found"})
            return httpx.Response(
                200,
                json={
                    "batch_header": {"payout_batch_id": batch_id, "batch_status": status},
                    "items": [{"transaction_id": f"TX-{batch_id}"}],
                },
            )

        return httpx.Response(404)

    def provider(self, **overrides: Any) -> PayPalPayoutProvider:
        options: dict[str, Any] = {
            "client_id": "client-id",
            "client_secret": "client-secret",
            "base_url": "https://paypal.test",
            "currency": "PHP",
            "http_client": httpx.Client(transport=httpx.MockTransport(self.handler)),
        }
        options.update(overrides)
        return PayPalPayoutProvider(**options)
