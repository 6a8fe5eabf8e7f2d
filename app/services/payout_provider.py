"""PayPal Payouts adapter.

Token acquisition strictly precedes every payout call. Tokens are cached
until shortly before PayPal's ``expires_in`` so back-to-back cashouts do not
each pay for a new OAuth round trip.
"""

from __future__ import annotations

import logging
import threading
import time
import uuid
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Any

import httpx

from app.config import settings
from app.utils.errors import ProviderAuthError, ProviderPayoutError

logger = logging.getLogger(__name__)

TOKEN_EXPIRY_MARGIN_SECONDS = 60
COMPLETED_PROVIDER_STATUSES = frozenset({"SUCCESS", "COMPLETED"})
FAILED_PROVIDER_STATUSES = frozenset(
    {"DENIED", "CANCELED", "FAILED", "RETURNED", "BLOCKED", "REFUNDED", "REVERSED"}
)


def ledger_status_for(provider_status: str | None) -> str:
    """Map a PayPal batch/item status onto the ledger's payout status."""
    normalized = (provider_status or "").upper()
    if normalized in COMPLETED_PROVIDER_STATUSES:
        return "completed"
    if normalized in FAILED_PROVIDER_STATUSES:
        return "failed"
    return "processing"


def new_sender_batch_id() -> str:
    """Return a unique sender batch id, also used as the idempotency key."""
    return f"PAYOUT-{uuid.uuid4().hex}"


@dataclass(frozen=True)
class PayoutResult:
    payout_batch_id: str
    sender_batch_id: str
    status: str
    transaction_id: str | None = None
    links: list[dict[str, Any]] = field(default_factory=list)

    @property
    def ledger_status(self) -> str:
        return ledger_status_for(self.status)


class PayPalPayoutProvider:
    """Minimal PayPal REST client for OAuth and the Payouts API."""

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        base_url: str,
        currency: str = "PHP",
        email_subject: str = "You have a payout",
        http_client: httpx.Client | None = None,
        timeout_seconds: float = 20,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.currency = currency
        self.email_subject = email_subject
        self.http = http_client or httpx.Client(timeout=httpx.Timeout(timeout_seconds))
        self.base_url = base_url.rstrip("/")
        self._token: str | None = None
        self._token_expires_at = 0.0
        self._token_lock = threading.Lock()

    def get_access_token(self) -> str:
        """Return a cached or freshly issued client-credentials token."""
        if not self.client_id or not self.client_secret:
            raise ProviderAuthError("PayPal credentials are not configured")

        with self._token_lock:
            if self._token and time.monotonic() < self._token_expires_at:
                return self._token

            try:
                response = self.http.post(
                    f"{self.base_url}/v1/oauth2/token",
                    auth=(self.client_id, self.client_secret),
                    data={"grant_type": "client_credentials"},
                    headers={"Accept": "application/json", "Accept-Language": "en_US"},
                )
            except httpx.HTTPError as exc:
                logger.warning("PayPal token request failed: %s", exc)
                raise ProviderAuthError() from exc

            if response.is_error:
                logger.warning(
                    "PayPal token request rejected with %s", response.status_code,
                    extra={"provider_body": response.text[:500]},
                )
                raise ProviderAuthError(
                    f"Failed to authenticate with PayPal: {response.status_code}"
                )

            payload = response.json()
            token = payload.get("access_token")
            if not token:
                raise ProviderAuthError("Failed to obtain PayPal access token")

            expires_in = int(payload.get("expires_in") or 0)
            self._token = token
            self._token_expires_at = time.monotonic() + max(
                0, expires_in - TOKEN_EXPIRY_MARGIN_SECONDS
            )
            return token

    def invalidate_token(self) -> None:
        with self._token_lock:
            self._token = None
            self._token_expires_at = 0.0

    def create_payout(
        self,
        receiver_email: str,
        amount: Decimal,
        currency: str | None = None,
        sender_batch_id: str | None = None,
    ) -> PayoutResult:
        """Submit a single-item payout batch to ``receiver_email``."""
        token = self.get_access_token()
        batch_id = sender_batch_id or new_sender_batch_id()
        currency = currency or self.currency
        value = str(Decimal(amount).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))

        body = {
            "sender_batch_header": {
                "sender_batch_id": batch_id,
                "email_subject": self.email_subject,
                "email_message": f"You have received a payout of {currency} {value}.",
            },
            "items": [
                {
                    "recipient_type": "EMAIL",
                    "amount": {"value": value, "currency": currency},
                    "receiver": receiver_email,
                    "note": "Host earnings payout",
                    "sender_item_id": f"{batch_id}-1",
                }
            ],
        }

        try:
            response = self.http.post(
                f"{self.base_url}/v1/payments/payouts",
                json=body,
                headers={
                    "Authorization": f"Bearer {token}",
                    "PayPal-Request-Id": batch_id,
                },
            )
        except httpx.HTTPError as exc:
            logger.warning("PayPal payout request failed: %s", exc, extra={"sender_batch_id": batch_id})
            raise ProviderPayoutError() from exc

        payload = _json_or_empty(response)
        if response.status_code == 401:
            self.invalidate_token()
        if response.is_error:
            message = payload.get("message") or payload.get("name") or (
                f"PayPal payout failed: {response.status_code}"
            )
            logger.warning(
                "PayPal payout rejected with %s", response.status_code,
                extra={"sender_batch_id": batch_id, "provider_error": payload.get("name")},
            )
            raise ProviderPayoutError(str(message))

        result = _parse_batch(payload, fallback_batch_id=batch_id, sender_batch_id=batch_id)
        if result.ledger_status == "failed":
            raise ProviderPayoutError(f"PayPal reported payout status {result.status}")
        logger.info(
            "PayPal payout %s created with status %s",
            result.payout_batch_id,
            result.status,
            extra={"sender_batch_id": batch_id},
        )
        return result

    def get_payout_batch(self, payout_batch_id: str) -> PayoutResult:
        """Fetch the current status of a payout batch."""
        token = self.get_access_token()
        try:
            response = self.http.get(
                f"{self.base_url}/v1/payments/payouts/{payout_batch_id}",
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as exc:
            raise ProviderPayoutError(f"Failed to fetch payout {payout_batch_id}") from exc

        payload = _json_or_empty(response)
        if response.is_error:
            if response.status_code == 401:
                self.invalidate_token()
            raise ProviderPayoutError(
                payload.get("message") or f"Failed to fetch payout {payout_batch_id}"
            )
        return _parse_batch(payload, fallback_batch_id=payout_batch_id)


def _json_or_empty(response: httpx.Response) -> dict[str, Any]:
    try:
        payload = response.json()
    except ValueError:
        return {}
    return payload if isinstance(payload, dict) else {}


def _parse_batch(
    payload: dict[str, Any],
    fallback_batch_id: str,
    sender_batch_id: str | None = None,
) -> PayoutResult:
    header = payload.get("batch_header") or {}
    items = payload.get("items") or header.get("items") or []
    first_item = items[0] if items else {}
    sender_header = header.get("sender_batch_header") or {}
    return PayoutResult(
        payout_batch_id=header.get("payout_batch_id") or fallback_batch_id,
        sender_batch_id=sender_batch_id or sender_header.get("sender_batch_id") or fallback_batch_id,
        status=str(header.get("batch_status") or "PENDING").upper(),
        transaction_id=first_item.get("transaction_id"),
        links=payload.get("links") or [],
    )


@lru_cache(maxsize=1)
def get_payout_provider() -> PayPalPayoutProvider:
    """Return the process-wide PayPal provider built from settings."""
    return PayPalPayoutProvider(
        client_id=settings.paypal_client_id,
        client_secret=settings.paypal_client_secret,
        base_url=settings.paypal_base_url,
        currency=settings.payout_currency,
        email_subject=settings.payout_email_subject,
        timeout_seconds=settings.paypal_timeout_seconds,
    )
