"""Custom exception hierarchy for the host earnings API."""

from __future__ import annotations


class AppError(Exception):
    """Base application error with a stable machine-readable code."""

    def __init__(self, message: str, code: str, status_code: int = 400) -> None:
        self.message = message
        self.code = code
        self.status_code = status_code
        super().__init__(message)

    def to_dict(self) -> dict[str, str]:
        """Serialize the error in the API standard shape."""
        return {"error": self.message, "code": self.code}


class InvalidInputError(AppError):
    """Raised for request payload or parameter validation issues."""

    def __init__(self, reason: str) -> None:
        super().__init__(message=reason, code="INVALID_INPUT", status_code=422)


class InsufficientBalanceError(AppError):
    """Raised when a host asks to cash out more than is available."""

    def __init__(self, requested: object, available: object) -> None:
        self.requested = requested
        self.available = available
        super().__init__(
            message=f"Insufficient available balance: requested {requested}, have {available}",
            code="INSUFFICIENT_BALANCE",
        )


class NotFoundError(AppError):
    """Raised when a requested resource does not exist."""

    def __init__(self, resource: str) -> None:
        super().__init__(message=f"{resource} not found", code="NOT_FOUND", status_code=404)


class ConflictError(AppError):
    """Raised on duplicate/conflicting operations."""

    def __init__(self, reason: str, code: str = "CONFLICT") -> None:
        super().__init__(message=reason, code=code, status_code=409)


class AlreadyRedeemedError(ConflictError):
    """Raised when a credit code has already been claimed."""

    def __init__(self) -> None:
        super().__init__("This code has already been redeemed", code="ALREADY_REDEEMED")


class InactiveCodeError(ConflictError):
    """Raised when a credit code exists but is no longer active."""

    def __init__(self) -> None:
        super().__init__("This code is no longer valid", code="CODE_INACTIVE")


class InvalidTransitionError(ConflictError):
    """Raised when the cashout workflow is driven out of order."""

    def __init__(self, current: str, target: str) -> None:
        super().__init__(f"Cannot transition from '{current}' to '{target}'", code="INVALID_STATE")


class UnauthorizedError(AppError):
    """Raised when the caller is not authenticated."""

    def __init__(self, reason: str = "Unauthorized") -> None:
        super().__init__(message=reason, code="UNAUTHORIZED", status_code=401)


class ProviderAuthError(AppError):
    """Raised when the payout provider rejects or cannot issue an access token."""

    def __init__(self, reason: str = "Failed to authenticate with PayPal") -> None:
        super().__init__(message=reason, code="PROVIDER_AUTH_FAILED", status_code=502)


class ProviderPayoutError(AppError):
    """Raised when the payout provider refuses or fails a payout request."""

    def __init__(self, reason: str = "Failed to process payout with PayPal") -> None:
        super().__init__(message=reason, code="PROVIDER_PAYOUT_FAILED", status_code=502)


class LedgerWriteError(AppError):
    """Raised when a payout was sent but could not be recorded in the ledger."""

    def __init__(self, payout_batch_id: str) -> None:
        self.payout_batch_id = payout_batch_id
        super().__init__(
            message=(
                f"Payout {payout_batch_id} was sent but could not be recorded. "
                "Support has been notified; do not resubmit."
            ),
            code="LEDGER_WRITE_FAILED",
            status_code=500,
        )
