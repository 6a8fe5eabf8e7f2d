"""Generate one-time credit codes and insert them into Supabase."""

from __future__ import annotations

import argparse
import secrets
import string
import sys
from collections.abc import Sequence
from decimal import Decimal
from pathlib import Path

from postgrest import APIError

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# No 0/O or 1/I so codes survive being read aloud.
ALPHABET = "".join(c for c in string.ascii_uppercase + string.digits if c not in "01IO")
MAX_ATTEMPTS = 100


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Create redeemable credit codes in public.credit_codes.",
    )
    parser.add_argument("count", type=int, help="How many credit codes to generate.")
    parser.add_argument("--length", type=int, default=8, help="Code length (default: 8).")
    parser.add_argument(
        "--credit-value",
        type=Decimal,
        default=Decimal("200"),
        help="Amount granted when the code is redeemed (default: 200).",
    )
    parser.add_argument(
        "--reward",
        type=str,
        default="E-wallet Credit",
        help="Reward name shown in the host's transaction history.",
    )
    parser.add_argument(
        "--host-id",
        type=str,
        default=None,
        help="Optionally earmark the codes for one host.",
    )
    return parser.parse_args(argv)


def random_code(length: int) -> str:
    """Return an uppercase alphanumeric code."""
    return "".join(secrets.choice(ALPHABET) for _ in range(length))


def is_unique_violation(exc: APIError) -> bool:
    """Return True when an insert failed due to duplicate code."""
    message = str(getattr(exc, "message", "")).lower()
    code = str(getattr(exc, "code", "")).lower()
    return "duplicate key value" in message or code == "23505"


def create_codes(
    count: int,
    length: int,
    credit_value: Decimal,
    reward: str,
    host_id: str | None = None,
    client=None,
) -> list[str]:
    """Insert ``count`` unique active credit codes and return them."""
    if count <= 0:
        raise ValueError("count must be >= 1")
    if length < 6:
        raise ValueError("length must be >= 6")
    if credit_value <= 0:
        raise ValueError("credit value must be positive")

    if client is None:
        from app.utils.supabase_client import get_service_client

        client = get_service_client()

    generated: list[str] = []
    for _ in range(count):
        for _attempt in range(MAX_ATTEMPTS):
            code = random_code(length)
            try:
                client.table("credit_codes").insert(
                    {
                        "code": code,
                        "credit_value": str(credit_value),
                        "reward": reward,
                        "status": "active",
                        "redeemed": False,
                        "host_id": host_id,
                    }
                ).execute()
            except APIError as exc:
                if is_unique_violation(exc):
                    continue
                raise
            generated.append(code)
            break
        else:
            raise RuntimeError(
                f"Failed to generate a unique credit code after {MAX_ATTEMPTS} attempts"
            )

    return generated


def print_codes(codes: Sequence[str], credit_value: Decimal) -> None:
    """Print generated codes in copy-friendly form."""
    print(f"Generated {len(codes)} credit code(s) worth {credit_value} each:")
    for code in codes:
        print(code)


def main(argv: Sequence[str] | None = None) -> None:
    """CLI entry point."""
    args = parse_args(argv)
    codes = create_codes(
        count=args.count,
        length=args.length,
        credit_value=args.credit_value,
        reward=args.reward,
        host_id=args.host_id,
    )
    print_codes(codes, args.credit_value)


if __name__ == "__main__":
    main()
