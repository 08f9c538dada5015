"""
Booking lifecycle.

Two independent axes live on a booking:

    booking_status:  requested -> confirmed -> cancelled
                     requested -> cancelled
    payment_status:  unpaid -> paid -> refunded

Capacity follows booking_status only: creation takes spots, cancellation
gives them back. Payment and refund never touch availability.

Capacity and discount usage are changed with guarded single-statement
UPDATEs inside the creating transaction, so concurrent requests for the last
spot (or the last redemption of a code) serialize in the database and the
losers get CapacityExceeded / DiscountInvalid with nothing written.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
import logging
import secrets
import string

from sqlalchemy import and_, case, or_, update
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import CapacityExceeded, DiscountInvalid, NotFound, StateConflict, ValidationError
from app.models.admin_setting import SETTINGS_ROW_ID, AdminSetting
from app.models.availability import Availability
from app.models.booking import (
    BOOKING_CANCELLED,
    BOOKING_CONFIRMED,
    BOOKING_REQUESTED,
    PAYMENT_PAID,
    PAYMENT_REFUNDED,
    PAYMENT_UNPAID,
    Booking,
)
from app.models.closed_day import ClosedDay
from app.models.discount_code import DiscountCode
from app.models.notification import Notification
from app.models.tour import Tour
from app.schemas.booking import BookingCreate, BookingDetails
from app.schemas.i18n import localize
from app.services import pricing
from app.services.availability import is_date_closed
from app.services.pricing import PriceBreakdown

logger = logging.getLogger(__name__)

REFERENCE_LENGTH = 7
_REFERENCE_ALPHABET = string.ascii_uppercase + string.digits
_MAX_REFERENCE_ATTEMPTS = 10

# allowed booking_status moves; same-state moves are handled by each operation
BOOKING_TRANSITIONS: dict[str, set[str]] = {
    BOOKING_REQUESTED: {BOOKING_CONFIRMED, BOOKING_CANCELLED},
    BOOKING_CONFIRMED: {BOOKING_CONFIRMED, BOOKING_CANCELLED},
    BOOKING_CANCELLED: set(),
}

PAYMENT_TRANSITIONS: dict[str, set[str]] = {
    PAYMENT_UNPAID: {PAYMENT_PAID},
    PAYMENT_PAID: {PAYMENT_REFUNDED},
    PAYMENT_REFUNDED: set(),
}


@dataclass(frozen=True)
class BookingResult:
    booking: Booking
    price: PriceBreakdown


def generate_reference() -> str:
    suffix = "".join(secrets.choice(_REFERENCE_ALPHABET) for _ in range(REFERENCE_LENGTH))
    return f"{settings.booking_reference_prefix}-{suffix}"


def _unused_reference(db: Session) -> str:
    for _ in range(_MAX_REFERENCE_ATTEMPTS):
        ref = generate_reference()
        if db.query(Booking.id).filter(Booking.booking_reference == ref).first() is None:
            return ref
    raise RuntimeError("could not generate a unique booking reference")


def status_label(booking: Booking) -> str:
    """Combined label for lists and badges, e.g. 'confirmed / paid'."""
    if booking.payment_status == PAYMENT_UNPAID:
        return booking.booking_status
    return f"{booking.booking_status} / {booking.payment_status}"


def booking_details(booking: Booking) -> BookingDetails | None:
    if not booking.additional_info:
        return None
    return BookingDetails.model_validate(booking.additional_info)


def get_booking(db: Session, booking_id: int) -> Booking:
    booking = db.get(Booking, booking_id)
    if booking is None:
        raise NotFound("Booking not found")
    return booking


def get_by_reference(db: Session, reference: str) -> Booking:
    ref = (reference or "").strip().upper()
    booking = db.query(Booking).filter(Booking.booking_reference == ref).first() if ref else None
    if booking is None:
        raise NotFound("Booking not found")
    return booking


def auto_close_enabled(db: Session) -> bool:
    row = db.get(AdminSetting, SETTINGS_ROW_ID)
    return bool(row and row.auto_close_day)


def _take_spots(db: Session, availability_id: int, participants: int) -> None:
    result = db.execute(
        update(Availability)
        .where(Availability.id == availability_id, Availability.spots_left >= participants)
        .values(spots_left=Availability.spots_left - participants)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise CapacityExceeded("Not enough spots left for this time slot", field="availability_id")


def _restore_spots(db: Session, availability_id: int, participants: int) -> None:
    restored = Availability.spots_left + participants
    db.execute(
        update(Availability)
        .where(Availability.id == availability_id)
        .values(spots_left=case((restored > Availability.max_spots, Availability.max_spots), else_=restored))
        .execution_options(synchronize_session=False)
    )


def _redeem_discount(db: Session, discount: DiscountCode) -> None:
    limit_ok = or_(
        and_(DiscountCode.one_time.is_(True), DiscountCode.used_count < 1),
        and_(
            DiscountCode.one_time.is_not(True),
            or_(DiscountCode.usage_limit.is_(None), DiscountCode.used_count < DiscountCode.usage_limit),
        ),
    )
    result = db.execute(
        update(DiscountCode)
        .where(DiscountCode.id == discount.id, DiscountCode.is_active.is_(True), limit_ok)
        .values(used_count=DiscountCode.used_count + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise DiscountInvalid("This discount code has already been used up", field="discount_code")


def create_booking(db: Session, data: BookingCreate, today: date | None = None) -> BookingResult:
    """Create a booking in the `requested` state.

    Validation happens first and reads only. The writes (spots, discount
    usage, booking row, optional auto-close, admin inbox entry) go into a
    single transaction; any failure rolls all of them back.
    """
    tour = db.get(Tour, data.tour_id)
    if tour is None or not tour.is_active:
        raise NotFound("Tour not found")
    availability = db.get(Availability, data.availability_id)
    if availability is None or availability.tour_id != tour.id:
        raise NotFound("Time slot not found")
    if is_date_closed(db, availability.date):
        raise CapacityExceeded("This date is closed for bookings", field="availability_id")
    participants = data.number_of_participants
    discount = pricing.find_discount(db, data.discount_code) if data.discount_code and data.discount_code.strip() else None
    price = pricing.compute_total(tour, participants, discount, today)
    if availability.spots_left < participants:
        raise CapacityExceeded(
            f"Not enough spots available. Only {availability.spots_left} spots left.",
            field="number_of_participants",
        )

    details = BookingDetails(
        requested_date=availability.date,
        requested_time=availability.time,
        pricing=price.snapshot(),
        discount=price.applied_discount,
    )
    try:
        _take_spots(db, availability.id, participants)
        if discount is not None:
            _redeem_discount(db, discount)
        booking = Booking(
            tour_id=tour.id,
            availability_id=availability.id,
            customer_first_name=data.customer_first_name.strip(),
            customer_last_name=data.customer_last_name.strip(),
            customer_email=str(data.customer_email).lower(),
            customer_phone=data.customer_phone.strip(),
            number_of_participants=participants,
            special_requests=data.special_requests,
            booking_reference=_unused_reference(db),
            total_amount=price.total_amount,
            booking_status=BOOKING_REQUESTED,
            payment_status=PAYMENT_UNPAID,
            additional_info=details.model_dump(),
            language=data.language,
            created_at=datetime.utcnow(),
        )
        db.add(booking)
        if auto_close_enabled(db) and db.query(ClosedDay.id).filter(ClosedDay.date == availability.date).first() is None:
            db.add(ClosedDay(date=availability.date, reason=f"Auto-closed by booking {booking.booking_reference}"))
        db.add(Notification(
            type="booking",
            title=f"New booking request {booking.booking_reference}",
            body=f"{booking.customer_name}: {localize(tour.name)} on {availability.date} {availability.time}, {participants} participant(s)",
            payload={"booking_reference": booking.booking_reference, "tour_id": tour.id},
        ))
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(booking)
    db.refresh(availability)
    logger.info(
        "Booking %s created: tour=%s slot=%s participants=%s total=%s",
        booking.booking_reference, tour.id, availability.id, participants, price.total_amount,
    )
    return BookingResult(booking=booking, price=price)


def _sources(transitions: dict[str, set[str]], target: str) -> list[str]:
    return [state for state, targets in transitions.items() if target in targets]


def _guarded_update(db: Session, booking_id: int, guard, **values) -> bool:
    """Apply `values` only if the row still matches `guard`; True when it did."""
    result = db.execute(
        update(Booking)
        .where(Booking.id == booking_id, guard)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount == 1


def _finish(db: Session, booking: Booking) -> Booking:
    db.commit()
    db.refresh(booking)
    return booking


def confirm_booking(
    db: Session,
    booking_id: int,
    confirmed_date: str,
    confirmed_time: str,
    meeting_point: str,
    admin_notes: str | None = None,
) -> Booking:
    """Fix the schedule of a requested booking. Re-confirming updates the schedule."""
    booking = get_booking(db, booking_id)
    values = dict(
        booking_status=BOOKING_CONFIRMED,
        confirmed_date=confirmed_date,
        confirmed_time=confirmed_time,
        confirmed_meeting_point=meeting_point,
    )
    if admin_notes is not None:
        values["admin_notes"] = admin_notes
    guard = Booking.booking_status.in_(_sources(BOOKING_TRANSITIONS, BOOKING_CONFIRMED))
    if not _guarded_update(db, booking_id, guard, **values):
        db.rollback()
        db.refresh(booking)
        raise StateConflict(f"Cannot move booking from {booking.booking_status} to {BOOKING_CONFIRMED}")
    _finish(db, booking)
    logger.info("Booking %s confirmed for %s %s", booking.booking_reference, confirmed_date, confirmed_time)
    return booking


def cancel_booking(db: Session, booking_id: int, admin_notes: str | None = None) -> Booking:
    """Cancel and give the spots back in one transaction. Cancelling twice is a no-op.

    Only the request whose UPDATE flips the status restores spots, so
    overlapping cancels of the same booking return capacity once.
    """
    booking = get_booking(db, booking_id)
    values = dict(booking_status=BOOKING_CANCELLED)
    if admin_notes is not None:
        values["admin_notes"] = admin_notes
    guard = Booking.booking_status.in_(_sources(BOOKING_TRANSITIONS, BOOKING_CANCELLED))
    try:
        if not _guarded_update(db, booking_id, guard, **values):
            db.rollback()
            db.refresh(booking)
            return booking
        _restore_spots(db, booking.availability_id, booking.number_of_participants)
        _finish(db, booking)
    except Exception:
        db.rollback()
        raise
    logger.info("Booking %s cancelled, %s spot(s) restored", booking.booking_reference, booking.number_of_participants)
    return booking


def mark_paid(db: Session, booking_id: int) -> Booking:
    booking = get_booking(db, booking_id)
    guard = Booking.payment_status.in_(_sources(PAYMENT_TRANSITIONS, PAYMENT_PAID))
    if not _guarded_update(db, booking_id, guard, payment_status=PAYMENT_PAID, paid_at=datetime.utcnow()):
        db.rollback()
        db.refresh(booking)
        if booking.payment_status == PAYMENT_PAID:
            return booking
        raise StateConflict(f"Cannot mark a {booking.payment_status} booking as paid")
    _finish(db, booking)
    logger.info("Booking %s marked paid", booking.booking_reference)
    return booking


def refund_booking(db: Session, booking_id: int, reason: str) -> Booking:
    """paid -> refunded. Anything else, including a second refund, is a StateConflict."""
    booking = get_booking(db, booking_id)
    guard = Booking.payment_status.in_(_sources(PAYMENT_TRANSITIONS, PAYMENT_REFUNDED))
    values = dict(payment_status=PAYMENT_REFUNDED, refunded_at=datetime.utcnow(), refund_reason=reason)
    if not _guarded_update(db, booking_id, guard, **values):
        db.rollback()
        db.refresh(booking)
        raise StateConflict(f"Only paid bookings can be refunded (current: {booking.payment_status})")
    _finish(db, booking)
    logger.info("Booking %s refunded: %s", booking.booking_reference, reason)
    return booking


def update_booking(db: Session, booking_id: int, changes: dict) -> Booking:
    """Admin edit from the requests screen.

    A booking_status change is routed through confirm/cancel so their rules
    apply; the remaining fields are plain edits.
    """
    booking = get_booking(db, booking_id)
    target = changes.get("booking_status")
    notes = changes.get("admin_notes")
    if target == BOOKING_CONFIRMED:
        day = changes.get("confirmed_date") or booking.confirmed_date
        time = changes.get("confirmed_time") or booking.confirmed_time
        point = changes.get("confirmed_meeting_point") or booking.confirmed_meeting_point
        if not (day and time and point):
            raise ValidationError("Confirmed date, time and meeting point are required to confirm")
        return confirm_booking(db, booking_id, day, time, point, notes)
    if target == BOOKING_CANCELLED:
        return cancel_booking(db, booking_id, notes)
    if target == BOOKING_REQUESTED and booking.booking_status != BOOKING_REQUESTED:
        raise StateConflict(f"Cannot move booking from {booking.booking_status} back to requested")
    for key in ("confirmed_date", "confirmed_time", "confirmed_meeting_point", "admin_notes"):
        if key in changes and changes[key] is not None:
            setattr(booking, key, changes[key])
    db.commit()
    return booking
