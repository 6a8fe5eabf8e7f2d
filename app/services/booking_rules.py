"""Booking classification and admin fee rules shared by every earnings view."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import StrEnum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

from app.config import settings
from app.utils.errors import InvalidInputError
from app.utils.fields import first_present
from app.utils.time import to_local_date

logger = logging.getLogger(__name__)

TOTAL_FIELDS = ("total", "total_amount", "totalAmount")


class BookingStatus(StrEnum):
    PENDING_APPROVAL = "pending_approval"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    ACTIVE = "active"


class BookingBucket(StrEnum):
    COMPLETED = "completed"
    UPCOMING = "upcoming"
    EXCLUDED = "excluded"


class Booking(BaseModel):
    """A host booking row as stored in the ``bookings`` table.

    camelCase aliases are accepted for documents migrated from the old
    document store.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = None
    status: str = ""
    host_id: str | None = Field(default=None, validation_alias=AliasChoices("host_id", "hostId"))
    guest_id: str | None = Field(default=None, validation_alias=AliasChoices("guest_id", "guestId"))
    listing_title: str | None = Field(
        default=None, validation_alias=AliasChoices("listing_title", "listingTitle")
    )
    check_in: date | None = Field(default=None, validation_alias=AliasChoices("check_in", "checkIn"))
    check_out: date | None = Field(
        default=None, validation_alias=AliasChoices("check_out", "checkOut")
    )
    total: Decimal = Decimal("0")
    created_at: datetime | None = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )
    updated_at: datetime | None = Field(
        default=None, validation_alias=AliasChoices("updated_at", "updatedAt")
    )

    @model_validator(mode="before")
    @classmethod
    def _resolve_total(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            data["total"] = first_present(data, TOTAL_FIELDS, default=0)
            data.pop("total_amount", None)
            data.pop("totalAmount", None)
        return data

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, value: Any) -> Any:
        return None if value is None else str(value)

    @field_validator("check_in", "check_out", mode="before")
    @classmethod
    def _normalize_date(cls, value: Any) -> date | None:
        return to_local_date(value)


@dataclass(frozen=True)
class FeeSplit:
    fee: Decimal
    net: Decimal


def _today(now: date | datetime) -> date:
    if isinstance(now, datetime):
        return to_local_date(now)
    return now


def end_date(booking: Booking) -> date | None:
    """Return the date a booking's service period ends, if it has one."""
    return booking.check_out or booking.check_in


def completion_date(booking: Booking) -> date | None:
    """Return the date a completed booking is credited on."""
    return (
        booking.check_out
        or booking.check_in
        or to_local_date(booking.updated_at)
        or to_local_date(booking.created_at)
    )


def is_completed(booking: Booking, now: date | datetime) -> bool:
    """Return whether a booking counts toward final (payable) earnings.

    A confirmed booking completes the day after its end date; the end date
    itself still belongs to the upcoming bucket.
    """
    if booking.status == BookingStatus.COMPLETED:
        return True
    if booking.status != BookingStatus.CONFIRMED:
        return False

    ends_on = end_date(booking)
    if ends_on is None:
        return True
    return _today(now) > ends_on


def is_upcoming(booking: Booking, now: date | datetime) -> bool:
    """Return whether a confirmed booking is still a projected earning."""
    if booking.status != BookingStatus.CONFIRMED:
        return False

    today = _today(now)
    if booking.check_out is not None:
        return today <= booking.check_out
    if booking.check_in is not None:
        return today < booking.check_in
    return True


def classify(booking: Booking, now: date | datetime) -> tuple[BookingBucket, bool]:
    """Place a booking in exactly one bucket.

    Returns the bucket and whether the booking is a data-quality anomaly: a
    confirmed booking for which both classifiers or neither fired.
    Completion wins when both fire.
    """
    completed = is_completed(booking, now)
    upcoming = is_upcoming(booking, now)

    anomaly = booking.status == BookingStatus.CONFIRMED and completed == upcoming
    if anomaly:
        logger.warning(
            "Booking %s classified as %s",
            booking.id,
            "both completed and upcoming" if completed else "neither completed nor upcoming",
            extra={
                "booking_id": booking.id,
                "check_in": booking.check_in,
                "check_out": booking.check_out,
            },
        )

    if completed:
        return BookingBucket.COMPLETED, anomaly
    if upcoming:
        return BookingBucket.UPCOMING, anomaly
    return BookingBucket.EXCLUDED, anomaly


def split_fee(booking_total: Decimal | int | float | str, fee_rate: Decimal | None = None) -> FeeSplit:
    """Split a booking total into the platform fee and the host's net."""
    rate = settings.admin_fee_rate if fee_rate is None else Decimal(str(fee_rate))
    total = Decimal(str(booking_total))
    if total < 0:
        raise InvalidInputError("Booking total cannot be negative")
    if not Decimal("0") <= rate <= Decimal("1"):
        raise InvalidInputError("Fee rate must be between 0 and 1")

    fee = total * rate
    return FeeSplit(fee=fee, net=total - fee)
