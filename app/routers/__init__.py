"""API router package."""

from app.routers import auth, cashouts, credits, earnings, transactions

__all__ = [
    "auth",
    "cashouts",
    "credits",
    "earnings",
    "transactions",
]
