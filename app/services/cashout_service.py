"""Host cashout workflow.

One ``CashoutWorkflow`` drives a single cashout attempt through
``idle -> form_entry -> validating -> issuing -> recorded``. Validation
failures detour through ``error`` and provider failures through ``failed``;
both return to ``form_entry`` on acknowledgment. Nothing is retried
automatically.
"""

from __future__ import annotations

import logging
import re
import threading
import weakref
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import StrEnum
from typing import Any

import httpx

from app.config import settings
from app.services.earnings_service import EarningsService, EarningsSummary
from app.services.ledger_service import LedgerService
from app.services.payout_provider import PayoutResult, PayPalPayoutProvider
from app.utils.errors import (
    AppError,
    InsufficientBalanceError,
    InvalidInputError,
    InvalidTransitionError,
    LedgerWriteError,
    ProviderAuthError,
    ProviderPayoutError,
)
from supabase import Client

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Entries vanish once no request holds the lock.
_host_locks: weakref.WeakValueDictionary[str, threading.Lock] = weakref.WeakValueDictionary()
_host_locks_guard = threading.Lock()


class CashoutState(StrEnum):
    IDLE = "idle"
    FORM_ENTRY = "form_entry"
    VALIDATING = "validating"
    ISSUING = "issuing"
    RECORDED = "recorded"
    ERROR = "error"
    FAILED = "failed"


ALLOWED_TRANSITIONS: dict[CashoutState, set[CashoutState]] = {
    CashoutState.IDLE: {CashoutState.FORM_ENTRY},
    CashoutState.FORM_ENTRY: {CashoutState.VALIDATING},
    CashoutState.VALIDATING: {CashoutState.ISSUING, CashoutState.ERROR},
    CashoutState.ERROR: {CashoutState.FORM_ENTRY},
    CashoutState.ISSUING: {CashoutState.RECORDED, CashoutState.FAILED},
    CashoutState.FAILED: {CashoutState.FORM_ENTRY},
    CashoutState.RECORDED: {CashoutState.IDLE, CashoutState.FORM_ENTRY},
}


@dataclass
class CashoutReceipt:
    amount: Decimal
    currency: str
    paypal_email: str
    payout_batch_id: str
    sender_batch_id: str
    provider_status: str
    status: str
    transaction_id: str | None
    remaining_balance: Decimal
    ledger_ids: dict[str, Any] = field(default_factory=dict)
    summary: EarningsSummary | None = None


def parse_amount(value: Any) -> Decimal:
    """Parse a user-entered cashout amount into a positive Decimal."""
    if isinstance(value, bool) or value is None or value == "":
        raise InvalidInputError("Please enter a valid amount")
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise InvalidInputError("Please enter a valid amount") from exc
    if not amount.is_finite() or amount <= 0:
        raise InvalidInputError("Please enter a valid amount")
    # Payouts move whole cents; the same value goes to PayPal and the ledger.
    try:
        cents = amount.quantize(CENT)
    except InvalidOperation as exc:
        raise InvalidInputError("Please enter a valid amount") from exc
    if cents != amount:
        raise InvalidInputError("Amount cannot have more than two decimal places")
    return cents


def validate_cashout(
    email: str | None,
    amount: Any,
    available_balance: Decimal,
    min_amount: Decimal,
) -> tuple[str, Decimal]:
    """Apply cashout guards in order and return the cleaned email and amount."""
    cleaned = (email or "").strip()
    if not cleaned:
        raise InvalidInputError("Please enter your PayPal email address")
    if not EMAIL_PATTERN.match(cleaned):
        raise InvalidInputError("Please enter a valid email address")

    parsed = parse_amount(amount)
    if parsed < min_amount:
        raise InvalidInputError(f"Minimum cash out amount is {min_amount}")
    if parsed > available_balance:
        raise InsufficientBalanceError(requested=parsed, available=available_balance)
    return cleaned, parsed


class CashoutWorkflow:
    """State machine for one host cashout attempt."""

    def __init__(
        self,
        host_id: str,
        available_balance: Decimal,
        provider: PayPalPayoutProvider,
        ledger: LedgerService,
        min_amount: Decimal | None = None,
        currency: str | None = None,
    ) -> None:
        self.host_id = host_id
        self.available_balance = available_balance
        self.provider = provider
        self.ledger = ledger
        self.min_amount = settings.min_cashout_amount if min_amount is None else min_amount
        self.currency = currency or settings.payout_currency
        self.state = CashoutState.IDLE
        self.history: list[CashoutState] = [CashoutState.IDLE]
        self.last_error: AppError | None = None

    def _transition(self, target: CashoutState) -> None:
        if target not in ALLOWED_TRANSITIONS.get(self.state, set()):
            raise InvalidTransitionError(self.state.value, target.value)
        logger.debug("Cashout %s -> %s", self.state, target, extra={"host_id": self.host_id})
        self.state = target
        self.history.append(target)

    def open_form(self) -> None:
        self._transition(CashoutState.FORM_ENTRY)

    def submit(self, email: str | None, amount: Any) -> CashoutReceipt:
        """Validate, pay out through the provider and record the ledger rows."""
        self._transition(CashoutState.VALIDATING)
        try:
            cleaned_email, parsed_amount = validate_cashout(
                email, amount, self.available_balance, self.min_amount
            )
        except (InvalidInputError, InsufficientBalanceError) as exc:
            self.last_error = exc
            self._transition(CashoutState.ERROR)
            raise

        self._transition(CashoutState.ISSUING)
        try:
            result = self.provider.create_payout(cleaned_email, parsed_amount, currency=self.currency)
        except (ProviderAuthError, ProviderPayoutError) as exc:
            logger.warning(
                "Cashout for host %s failed at provider: %s",
                self.host_id,
                exc.message,
                extra={"host_id": self.host_id},
            )
            self.last_error = exc
            self._transition(CashoutState.FAILED)
            raise

        remaining = max(Decimal("0"), self.available_balance - parsed_amount)
        try:
            ledger_ids = self._record(cleaned_email, parsed_amount, result, remaining)
        except (AppError, httpx.HTTPError) as exc:
            logger.error(
                "Payout %s sent for host %s but ledger write failed",
                result.payout_batch_id,
                self.host_id,
                exc_info=exc,
                extra={"host_id": self.host_id, "payout_batch_id": result.payout_batch_id},
            )
            error = LedgerWriteError(result.payout_batch_id)
            self.last_error = error
            self._transition(CashoutState.FAILED)
            raise error from exc

        self._transition(CashoutState.RECORDED)
        logger.info(
            "Recorded cashout %s of %s %s for host %s",
            result.payout_batch_id,
            self.currency,
            parsed_amount,
            self.host_id,
        )
        return CashoutReceipt(
            amount=parsed_amount,
            currency=self.currency,
            paypal_email=cleaned_email,
            payout_batch_id=result.payout_batch_id,
            sender_batch_id=result.sender_batch_id,
            provider_status=result.status,
            status=result.ledger_status,
            transaction_id=result.transaction_id,
            remaining_balance=remaining,
            ledger_ids=ledger_ids,
        )

    def _record(
        self,
        email: str,
        amount: Decimal,
        result: PayoutResult,
        remaining: Decimal,
    ) -> dict[str, Any]:
        return self.ledger.record_cashout(
            host_id=self.host_id,
            email=email,
            amount=amount,
            currency=self.currency,
            status=result.ledger_status,
            provider_status=result.status,
            payout_batch_id=result.payout_batch_id,
            sender_batch_id=result.sender_batch_id,
            transaction_id=result.transaction_id,
            remaining_balance=remaining,
        )

    def acknowledge(self) -> None:
        """Close a finished attempt so the host can start again."""
        if self.state == CashoutState.RECORDED:
            self._transition(CashoutState.IDLE)
        else:
            self._transition(CashoutState.FORM_ENTRY)
            self.last_error = None


def _host_lock(host_id: str) -> threading.Lock:
    with _host_locks_guard:
        lock = _host_locks.get(host_id)
        if lock is None:
            lock = threading.Lock()
            _host_locks[host_id] = lock
        return lock


class CashoutService:
    """Cashout requests and history for a host."""

    def __init__(self, client: Client, provider: PayPalPayoutProvider) -> None:
        self.earnings = EarningsService(client)
        self.ledger = LedgerService(client)
        self.provider = provider

    def request_cashout(self, host_id: str, email: str | None, amount: Any) -> CashoutReceipt:
        """Run one cashout attempt and return the receipt with a fresh summary.

        Requests for the same host are serialized within this process so two
        submissions cannot both spend the same balance.
        """
        with _host_lock(host_id):
            summary = self.earnings.get_summary(host_id)
            workflow = CashoutWorkflow(
                host_id=host_id,
                available_balance=summary.available_balance,
                provider=self.provider,
                ledger=self.ledger,
            )
            workflow.open_form()
            receipt = workflow.submit(email, amount)
            workflow.acknowledge()
            try:
                receipt.summary = self.earnings.get_summary(host_id)
            except (AppError, httpx.HTTPError) as exc:
                # Payout is already recorded; return the receipt without a summary.
                logger.warning(
                    "Cashout %s recorded but summary refresh failed",
                    receipt.payout_batch_id,
                    exc_info=exc,
                    extra={"host_id": host_id, "payout_batch_id": receipt.payout_batch_id},
                )
            return receipt

    def list_cashouts(
        self,
        host_id: str,
        limit: int = 50,
        offset: int = 0,
    ) -> tuple[list[dict[str, Any]], int]:
        """Return cashout history with total count for pagination."""
        rows = self.ledger.list_cashouts(host_id, limit=limit, offset=offset)
        return rows, self.ledger.count_cashouts(host_id)
