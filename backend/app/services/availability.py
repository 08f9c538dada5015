"""
Bookable slots for a tour.

A slot is bookable when it has spots left and its date is not a closed day.
Closed days override every tour's availability rows without deleting them:
removing the ClosedDay row makes the slots bookable again.
"""
from __future__ import annotations

from datetime import date, timedelta
from typing import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.availability import Availability
from app.models.closed_day import ClosedDay


def is_date_closed(db: Session, day: str) -> bool:
    return db.query(ClosedDay.id).filter(ClosedDay.date == day).first() is not None


def bookable_slots(db: Session, tour_id: int, date_from: str | None = None, date_to: str | None = None) -> list[Availability]:
    """Availability rows of the tour with spots left on open dates, sorted by date and time.

    Dates are ISO strings, so range filters compare lexicographically.
    An unknown tour simply has no rows.
    """
    closed = select(ClosedDay.date)
    q = db.query(Availability).filter(
        Availability.tour_id == tour_id,
        Availability.spots_left > 0,
        Availability.date.not_in(closed),
    )
    if date_from:
        q = q.filter(Availability.date >= date_from)
    if date_to:
        q = q.filter(Availability.date <= date_to)
    return q.order_by(Availability.date.asc(), Availability.time.asc()).all()


def slots_for_date(db: Session, tour_id: int, day: str) -> list[Availability]:
    return bookable_slots(db, tour_id, date_from=day, date_to=day)


def js_weekday(d: date) -> int:
    # calendar widget numbering: 0=Sunday .. 6=Saturday
    return (d.weekday() + 1) % 7


def calendar_hints(slots: Iterable[Availability], date_from: date, date_to: date) -> dict:
    """Calendar affordances for the visible range [date_from, date_to].

    available_dates: dates with at least one bookable slot.
    disabled_weekdays: weekdays on which no date of the range has a bookable slot.
    Only a hint for the date picker; booking rules are enforced at creation.
    """
    lo, hi = date_from.isoformat(), date_to.isoformat()
    available = sorted({s.date for s in slots if s.spots_left > 0 and lo <= s.date <= hi})
    open_weekdays = {js_weekday(date.fromisoformat(d)) for d in available}
    seen_weekdays = set()
    cursor = date_from
    while cursor <= date_to and len(seen_weekdays) < 7:
        seen_weekdays.add(js_weekday(cursor))
        cursor += timedelta(days=1)
    disabled = sorted(wd for wd in seen_weekdays if wd not in open_weekdays)
    return {"available_dates": available, "disabled_weekdays": disabled}
