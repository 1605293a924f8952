"""Offer entity, derived-field rules, and validation."""

from __future__ import annotations

import math
import uuid
from dataclasses import dataclass, fields, replace
from datetime import date, datetime, time, timedelta, timezone
from enum import Enum
from typing import Any, Iterable

from offerdesk.errors import ValidationError

WEEKS_PER_MONTH = 4.33
DAYS_PER_MONTH = 30


class OfferStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    COUNTERED = "countered"  # placeholder, nothing drives countered -> accepted/rejected yet
    EXPIRED = "expired"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class OfferRules:
    """Business constants for offer creation, overridable from config.yaml."""

    expiry_hours: int = 48
    min_lead_hours: int = 24
    min_rental_days: int = 30  # 0 disables the minimum-period rule
    note_max_length: int = 500
    preview_length: int = 50
    default_profile_image: str = "https://via.placeholder.com/100?text=User"

    @classmethod
    def from_settings(cls, config: dict[str, Any] | None) -> OfferRules:
        config = config or {}
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in config.items() if k in known})


@dataclass
class OfferSubmission:
    """Flat submission from the renter-side form: listing snapshot plus proposal."""

    property_id: str
    owner_id: str
    renter_id: str
    renter_offer_price: float
    renter_start_date: date | None
    renter_end_date: date | None
    property_title: str = ""
    property_image: str = ""
    owner_price: float = 0.0
    owner_start_date: date | None = None
    owner_end_date: date | None = None
    renter_note: str = ""


@dataclass
class RenterSnapshot:
    name: str
    age: int = 0
    occupation: str = ""
    location: str = ""
    profile_image: str | None = None
    is_verified: bool = False


@dataclass
class OwnerInfo:
    name: str


@dataclass
class Offer:
    id: str
    property_id: str
    property_title: str
    property_image: str
    renter_id: str
    renter_name: str
    renter_age: int
    renter_occupation: str
    renter_location: str
    renter_profile_image: str
    renter_is_verified: bool
    owner_id: str
    owner_name: str
    owner_price: float
    owner_start_date: date | None
    owner_end_date: date | None
    renter_offer_price: float
    renter_start_date: date
    renter_end_date: date
    renter_note: str
    status: OfferStatus
    message_preview: str
    price_difference: float
    is_price_increase: bool
    weekly_rate: int
    daily_rate: int
    rental_duration_months: int
    created_at: datetime
    updated_at: datetime
    expires_at: datetime
    chat_id: str | None = None

    def __repr__(self) -> str:
        return (
            f"<Offer id={self.id!r} property_id={self.property_id!r} "
            f"renter={self.renter_name!r} price={self.renter_offer_price} status={self.status.value!r}>"
        )

    @property
    def is_pending(self) -> bool:
        return self.status is OfferStatus.PENDING

    def is_expired_at(self, now: datetime) -> bool:
        return self.is_pending and self.expires_at <= now

    def with_status(self, status: OfferStatus, now: datetime) -> Offer:
        return replace(self, status=status, updated_at=now)

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the camelCase record layout used in storage."""
        record: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if f.name == "chat_id" and value is None:
                continue
            if isinstance(value, Enum):
                value = value.value
            elif isinstance(value, (date, datetime)):
                value = value.isoformat()
            record[_camel(f.name)] = value
        return record

    @classmethod
    def from_dict(cls, record: dict[str, Any]) -> Offer:
        """Inverse of to_dict. Raises KeyError/ValueError on malformed records."""
        values: dict[str, Any] = {}
        for f in fields(cls):
            key = _camel(f.name)
            if key not in record:
                if f.name == "chat_id":
                    continue
                raise KeyError(key)
            values[f.name] = record[key]

        values["status"] = OfferStatus(values["status"])
        for name in ("renter_start_date", "renter_end_date", "owner_start_date", "owner_end_date"):
            values[name] = _parse_date(values[name])
        for name in ("created_at", "updated_at", "expires_at"):
            values[name] = _parse_datetime(values[name])
        return cls(**values)


@dataclass
class OfferFilters:
    """Owner-inbox filters. Bounds are inclusive; None means unbounded."""

    statuses: set[OfferStatus] | None = None
    property_id: str | None = None
    min_price: float | None = None
    max_price: float | None = None
    start: date | None = None
    end: date | None = None

    def matches(self, offer: Offer) -> bool:
        if self.statuses and offer.status not in {OfferStatus(s) for s in self.statuses}:
            return False
        if self.property_id and offer.property_id != self.property_id:
            return False
        if self.min_price is not None and offer.renter_offer_price < self.min_price:
            return False
        if self.max_price is not None and offer.renter_offer_price > self.max_price:
            return False
        # Date-range overlap with the renter's requested window
        if self.start is not None and offer.renter_end_date < self.start:
            return False
        if self.end is not None and offer.renter_start_date > self.end:
            return False
        return True


@dataclass
class OfferStats:
    total: int = 0
    pending: int = 0
    accepted: int = 0
    rejected: int = 0
    expired: int = 0
    average_offer_price: float = 0.0
    total_today: int = 0


@dataclass
class OfferSummary:
    formatted_price: str
    formatted_date_range: str
    duration: str
    total_amount: float
    weekly_rate: int
    daily_rate: int
    note_preview: str


# --- Derivation ---


def round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def rental_duration_months(start: date, end: date) -> int:
    """Whole 30-day periods covering the rental window, rounded up."""
    return math.ceil((end - start).days / DAYS_PER_MONTH)


def message_preview(note: str, length: int = 50) -> str:
    if len(note) > length:
        return note[:length] + "..."
    return note


def new_offer_id() -> str:
    return f"offer_{uuid.uuid4().hex}"


def validate_submission(
    submission: OfferSubmission,
    now: datetime | None = None,
    rules: OfferRules | None = None,
) -> ValidationError | None:
    """Return the first broken rule as a ValidationError, or None if valid."""
    now = now or utcnow()
    rules = rules or OfferRules()

    if not submission.property_id or not submission.owner_id or not submission.renter_id:
        return ValidationError("Missing required IDs")

    price = submission.renter_offer_price
    if not price or not math.isfinite(price) or price <= 0:
        return ValidationError("Invalid offer price")

    start, end = submission.renter_start_date, submission.renter_end_date
    if not start or not end:
        return ValidationError("Missing rental dates")

    if start >= end:
        return ValidationError("End date must be after start date")

    if rules.min_rental_days and (end - start).days < rules.min_rental_days:
        return ValidationError(f"Minimum rental period is {rules.min_rental_days} days")

    if _start_of_day(start) < now + timedelta(hours=rules.min_lead_hours):
        return ValidationError("Start date must be at least 1 day in the future")

    if submission.renter_note and len(submission.renter_note) > rules.note_max_length:
        return ValidationError(f"Note cannot exceed {rules.note_max_length} characters")

    return None


def derive_offer(
    submission: OfferSubmission,
    renter: RenterSnapshot,
    owner_name: str,
    now: datetime | None = None,
    rules: OfferRules | None = None,
) -> Offer:
    """Build a pending Offer with all derived fields computed.

    Assumes ``submission`` already passed :func:`validate_submission`.
    """
    now = now or utcnow()
    rules = rules or OfferRules()
    note = submission.renter_note or ""
    price = submission.renter_offer_price
    price_difference = price - submission.owner_price

    return Offer(
        id=new_offer_id(),
        property_id=submission.property_id,
        property_title=submission.property_title,
        property_image=submission.property_image,
        renter_id=submission.renter_id,
        renter_name=renter.name,
        renter_age=renter.age,
        renter_occupation=renter.occupation,
        renter_location=renter.location,
        renter_profile_image=renter.profile_image or rules.default_profile_image,
        renter_is_verified=bool(renter.is_verified),
        owner_id=submission.owner_id,
        owner_name=owner_name,
        owner_price=submission.owner_price,
        owner_start_date=submission.owner_start_date,
        owner_end_date=submission.owner_end_date,
        renter_offer_price=price,
        renter_start_date=submission.renter_start_date,
        renter_end_date=submission.renter_end_date,
        renter_note=note,
        status=OfferStatus.PENDING,
        message_preview=message_preview(note, rules.preview_length),
        price_difference=price_difference,
        is_price_increase=price_difference > 0,
        weekly_rate=round_half_up(price / WEEKS_PER_MONTH),
        daily_rate=round_half_up(price / DAYS_PER_MONTH),
        rental_duration_months=rental_duration_months(
            submission.renter_start_date, submission.renter_end_date
        ),
        created_at=now,
        updated_at=now,
        expires_at=now + timedelta(hours=rules.expiry_hours),
    )


def check_transition(current: OfferStatus, new: OfferStatus) -> bool:
    """Whether an owner may move an offer from ``current`` to ``new``.

    Every transition is currently allowed, including leaving a terminal status.
    """
    return True


# --- Reporting helpers ---


def compute_stats(offers: Iterable[Offer], today: date) -> OfferStats:
    offers = list(offers)
    stats = OfferStats(total=len(offers))
    for offer in offers:
        if offer.status is OfferStatus.PENDING:
            stats.pending += 1
        elif offer.status is OfferStatus.ACCEPTED:
            stats.accepted += 1
        elif offer.status is OfferStatus.REJECTED:
            stats.rejected += 1
        elif offer.status is OfferStatus.EXPIRED:
            stats.expired += 1
        if offer.created_at.astimezone(timezone.utc).date() == today:
            stats.total_today += 1
    if offers:
        stats.average_offer_price = sum(o.renter_offer_price for o in offers) / len(offers)
    return stats


def price_recommendations(owner_price: float) -> dict[str, int]:
    """Suggested offer prices around the owner's asking rent."""
    return {
        "conservative": round_half_up(owner_price * 0.95),
        "listing_price": round_half_up(owner_price),
        "competitive": round_half_up(owner_price * 1.05),
        "premium": round_half_up(owner_price * 1.10),
    }


def summarize_offer(offer: Offer) -> OfferSummary:
    months = offer.rental_duration_months
    return OfferSummary(
        formatted_price=f"{_format_money(offer.renter_offer_price)}/month",
        formatted_date_range=(
            f"{offer.renter_start_date:%b %d, %Y} - {offer.renter_end_date:%b %d, %Y}"
        ),
        duration=f"{months} months",
        total_amount=offer.renter_offer_price * months,
        weekly_rate=offer.weekly_rate,
        daily_rate=offer.daily_rate,
        note_preview=offer.message_preview,
    )


# --- Internal ---


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.capitalize() for part in rest)


def _start_of_day(value: date) -> datetime:
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    return datetime.combine(value, time.min, tzinfo=timezone.utc)


def _parse_date(value: str | None) -> date | None:
    if not value:
        return None
    return date.fromisoformat(value[:10])


def _parse_datetime(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _format_money(amount: float) -> str:
    if float(amount).is_integer():
        return f"${amount:,.0f}"
    return f"${amount:,.2f}"
