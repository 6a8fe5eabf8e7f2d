"""Credit code schemas."""

from pydantic import BaseModel, Field


class CreditRedeemRequest(BaseModel):
    """Request body for claiming one credit code."""

    code: str = Field(..., min_length=1, max_length=64)


class CreditRedeemResponse(BaseModel):
    """Result of a successful credit claim."""

    granted: bool
    amount: float
    code: str
    reward: str
    transaction_id: str | None = None
