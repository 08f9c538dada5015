"""
Price computation for a tour booking.

All amounts are integers in minor currency units (cents). The breakdown is
what the booking stores and what the review step shows as line items.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import DiscountInvalid, NotFound, ValidationError
from app.models.discount_code import (
    CATEGORY_FIXED_VALUE,
    CATEGORY_FREE_TOUR,
    CATEGORY_PERCENTAGE,
    DiscountCode,
)
from app.models.tour import PRICE_PER_GROUP, Tour
from app.schemas.booking import DiscountSnapshot, PricingSnapshot


@dataclass(frozen=True)
class PriceBreakdown:
    original_amount: int
    discount_amount: int
    total_amount: int
    applied_discount: DiscountSnapshot | None = None

    def snapshot(self) -> PricingSnapshot:
        return PricingSnapshot(
            original_amount=self.original_amount,
            discount_amount=self.discount_amount,
            total_amount=self.total_amount,
        )

    def as_dict(self) -> dict:
        return {
            "original_amount": self.original_amount,
            "discount_amount": self.discount_amount,
            "total_amount": self.total_amount,
            "applied_discount": self.applied_discount.model_dump() if self.applied_discount else None,
        }


def business_today() -> date:
    return datetime.now(ZoneInfo(settings.business_timezone)).date()


def normalize_code(code: str) -> str:
    return (code or "").strip().upper()


def round_half_up_div(numerator: int, denominator: int) -> int:
    return (numerator * 2 + denominator) // (denominator * 2)


def check_participants(tour: Tour, participants: int) -> None:
    if participants < 1:
        raise ValidationError("At least one participant is required", field="number_of_participants")
    if participants > tour.max_group_size:
        raise ValidationError(
            f"This tour takes at most {tour.max_group_size} participants",
            field="number_of_participants",
        )


def subtotal(tour: Tour, participants: int) -> int:
    if tour.price_type == PRICE_PER_GROUP:
        return tour.price
    return tour.price * participants


def find_discount(db: Session, code: str) -> DiscountCode:
    normalized = normalize_code(code)
    discount = db.query(DiscountCode).filter(DiscountCode.code == normalized).first() if normalized else None
    if discount is None:
        raise DiscountInvalid("Unknown discount code", field="discount_code")
    return discount


def check_discount(discount: DiscountCode, tour: Tour, participants: int, today: date) -> None:
    """Raise DiscountInvalid unless the code can be redeemed for this booking today."""
    if not discount.is_active:
        raise DiscountInvalid("This discount code is no longer active", field="discount_code")
    if discount.valid_until is not None and discount.valid_until < today:
        raise DiscountInvalid("This discount code has expired", field="discount_code")
    limit = discount.effective_limit
    if limit is not None and (discount.used_count or 0) >= limit:
        raise DiscountInvalid("This discount code has already been used up", field="discount_code")
    if discount.category == CATEGORY_FREE_TOUR and tour.price_type == PRICE_PER_GROUP:
        raise DiscountInvalid("Free-tour codes only apply to per-person tours", field="discount_code")


def discount_amount(discount: DiscountCode, tour: Tour, participants: int, base: int) -> int:
    if discount.category == CATEGORY_PERCENTAGE:
        amount = round_half_up_div(base * discount.value, 100)
    elif discount.category == CATEGORY_FIXED_VALUE:
        amount = discount.value
    elif discount.category == CATEGORY_FREE_TOUR:
        amount = tour.price * min(discount.value, participants)
    else:
        raise DiscountInvalid(f"Unsupported discount category '{discount.category}'", field="discount_code")
    return max(0, min(amount, base))


def compute_total(tour: Tour, participants: int, discount: DiscountCode | None = None, today: date | None = None) -> PriceBreakdown:
    check_participants(tour, participants)
    base = subtotal(tour, participants)
    if discount is None:
        return PriceBreakdown(original_amount=base, discount_amount=0, total_amount=base)
    check_discount(discount, tour, participants, today or business_today())
    amount = discount_amount(discount, tour, participants, base)
    applied = DiscountSnapshot(
        code=discount.code,
        name=discount.name,
        category=discount.category,
        value=discount.value,
        amount=amount,
    )
    return PriceBreakdown(
        original_amount=base,
        discount_amount=amount,
        total_amount=base - amount,
        applied_discount=applied,
    )


def quote(db: Session, tour_id: int, participants: int, code: str | None = None, today: date | None = None) -> PriceBreakdown:
    """Price a prospective booking without redeeming anything."""
    tour = db.get(Tour, tour_id)
    if tour is None or not tour.is_active:
        raise NotFound("Tour not found")
    discount = find_discount(db, code) if code and code.strip() else None
    return compute_total(tour, participants, discount, today)
