"""Credit code redemption service."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from app.config import settings
from app.services.common import SupabaseService
from app.utils.errors import (
    AlreadyRedeemedError,
    InactiveCodeError,
    InvalidInputError,
    NotFoundError,
)
from supabase import Client

logger = logging.getLogger(__name__)

DEFAULT_REWARD_NAME = "E-wallet Credit"


@dataclass(frozen=True)
class CreditGrant:
    granted: bool
    amount: Decimal
    code: str
    reward: str
    transaction_id: str | None = None


class CreditService:
    """Redeem one-time credit codes into a host's balance."""

    def __init__(self, client: Client) -> None:
        self.db = SupabaseService(client)

    def redeem(self, code: str, host_id: str) -> CreditGrant:
        """Redeem a credit code for a host.

        The lookup, the redeemed-flag flip and the credit transaction insert
        all happen inside ``redeem_credit_code`` under a row lock, so a code
        can only ever be granted once.
        """
        normalized_code = (code or "").strip().upper()
        if not normalized_code:
            raise InvalidInputError("Please enter a valid code")

        payload = self.db.rpc_one(
            "redeem_credit_code",
            {
                "p_code": normalized_code,
                "p_host_id": host_id,
                "p_default_value": str(settings.default_credit_value),
            },
        )
        if not payload.get("success"):
            self._raise_for_reason(str(payload.get("reason") or ""))

        amount = Decimal(str(payload.get("credit_value") or settings.default_credit_value))
        logger.info(
            "Host %s redeemed credit code %s for %s",
            host_id,
            normalized_code,
            amount,
            extra={"host_id": host_id},
        )
        return CreditGrant(
            granted=True,
            amount=amount,
            code=normalized_code,
            reward=payload.get("reward") or DEFAULT_REWARD_NAME,
            transaction_id=(
                str(payload["transaction_id"]) if payload.get("transaction_id") else None
            ),
        )

    @staticmethod
    def _raise_for_reason(reason: str) -> None:
        if reason == "code_not_found":
            raise NotFoundError("Credit code")
        if reason == "already_redeemed":
            raise AlreadyRedeemedError()
        if reason == "code_inactive":
            raise InactiveCodeError()
        raise InvalidInputError("Credit redemption failed")
