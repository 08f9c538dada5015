"""
Multi-step booking wizard.

Holds the customer's answers while they move between steps and only talks
to the database to price a discount code and, at the end, to create the
booking. Steps:

    date_time -> participants -> review -> confirmation

Going back never loses answers, but answers that stop fitting (participants
above the spots of a newly picked slot) pull the cursor back to the step
that has to be redone.
"""
from __future__ import annotations

from datetime import date
from typing import Sequence

from sqlalchemy.orm import Session

from app.core.errors import CapacityExceeded, DiscountInvalid, ValidationError
from app.models.availability import Availability
from app.models.discount_code import DiscountCode
from app.models.tour import Tour
from app.schemas.booking import BookingCreate
from app.services import pricing
from app.services.booking_service import BookingResult, create_booking
from app.services.pricing import PriceBreakdown

STEP_DATE_TIME = "date_time"
STEP_PARTICIPANTS = "participants"
STEP_REVIEW = "review"
STEP_CONFIRMATION = "confirmation"
STEPS = (STEP_DATE_TIME, STEP_PARTICIPANTS, STEP_REVIEW, STEP_CONFIRMATION)


class BookingWizard:
    def __init__(self, tour: Tour, slots: Sequence[Availability], language: str = "en"):
        self.tour = tour
        self.slots = {s.id: s for s in slots}
        self.language = language
        self.step = STEP_DATE_TIME
        self.slot: Availability | None = None
        self.participants: int | None = None
        self.contact: dict | None = None
        self.special_requests: str | None = None
        self.discount: DiscountCode | None = None
        self.discount_error: str | None = None
        self.result: BookingResult | None = None

    # navigation

    @property
    def step_index(self) -> int:
        return STEPS.index(self.step)

    def _rewind_to(self, step: str) -> None:
        if STEPS.index(step) < self.step_index:
            self.step = step

    def _require_open(self) -> None:
        if self.step == STEP_CONFIRMATION:
            raise ValidationError("This booking has already been submitted")

    def can_advance(self) -> bool:
        if self.step == STEP_DATE_TIME:
            return self.slot is not None
        if self.step == STEP_PARTICIPANTS:
            return self.participants is not None and self.contact is not None
        if self.step == STEP_REVIEW:
            return False  # review is left through submit()
        return False

    def next(self) -> str:
        self._require_open()
        if not self.can_advance():
            raise ValidationError(f"Step '{self.step}' is not complete")
        self.step = STEPS[self.step_index + 1]
        return self.step

    def back(self) -> str:
        self._require_open()
        if self.step_index > 0:
            self.step = STEPS[self.step_index - 1]
        return self.step

    # answers

    def max_participants(self) -> int:
        if self.slot is None:
            return self.tour.max_group_size
        return min(self.tour.max_group_size, self.slot.spots_left)

    def select_slot(self, availability_id: int) -> None:
        self._require_open()
        slot = self.slots.get(availability_id)
        if slot is None:
            raise ValidationError("This time slot is not available", field="availability_id")
        self.slot = slot
        if self.participants is not None and self.participants > self.max_participants():
            self.participants = None
            self._rewind_to(STEP_PARTICIPANTS)

    def set_participants(self, count: int) -> None:
        self._require_open()
        if count < 1 or count > self.max_participants():
            raise ValidationError(
                f"Choose between 1 and {self.max_participants()} participants",
                field="number_of_participants",
            )
        self.participants = count
        if self.discount is not None:
            # re-check the code against the new group size (free_tour caps)
            self._validate_discount(self.discount)

    def set_contact(self, first_name: str, last_name: str, email: str, phone: str, special_requests: str | None = None) -> None:
        self._require_open()
        if not all(v and v.strip() for v in (first_name, last_name, email, phone)):
            raise ValidationError("Name, email and phone are required")
        self.contact = {
            "customer_first_name": first_name.strip(),
            "customer_last_name": last_name.strip(),
            "customer_email": email.strip(),
            "customer_phone": phone.strip(),
        }
        self.special_requests = special_requests

    def _validate_discount(self, discount: DiscountCode, today: date | None = None) -> None:
        try:
            pricing.check_discount(discount, self.tour, self.participants or 1, today or pricing.business_today())
        except DiscountInvalid as exc:
            self.discount_error = exc.message
            raise
        self.discount_error = None

    def apply_discount(self, db: Session, code: str, today: date | None = None) -> PriceBreakdown:
        """Attach a code. An invalid code is kept as an error and blocks submit until removed."""
        self._require_open()
        try:
            discount = pricing.find_discount(db, code)
        except DiscountInvalid as exc:
            self.discount = None
            self.discount_error = exc.message
            raise
        self.discount = discount
        self._validate_discount(discount, today)
        return self.quote(today)

    def remove_discount(self) -> None:
        self.discount = None
        self.discount_error = None

    def quote(self, today: date | None = None) -> PriceBreakdown:
        if self.participants is None:
            raise ValidationError("Choose the number of participants first", field="number_of_participants")
        discount = self.discount if self.discount_error is None else None
        return pricing.compute_total(self.tour, self.participants, discount, today)

    def to_request(self) -> BookingCreate:
        if self.slot is None or self.participants is None or self.contact is None:
            raise ValidationError("The booking is incomplete")
        return BookingCreate(
            tour_id=self.tour.id,
            availability_id=self.slot.id,
            number_of_participants=self.participants,
            special_requests=self.special_requests,
            discount_code=self.discount.code if self.discount is not None else None,
            language=self.language,
            **self.contact,
        )

    def submit(self, db: Session, today: date | None = None) -> BookingResult:
        if self.step != STEP_REVIEW:
            raise ValidationError("Review the booking before submitting")
        if self.discount_error is not None:
            raise DiscountInvalid(self.discount_error, field="discount_code")
        try:
            self.result = create_booking(db, self.to_request(), today)
        except CapacityExceeded:
            self.slot = None
            self.step = STEP_DATE_TIME
            raise
        self.step = STEP_CONFIRMATION
        return self.result
