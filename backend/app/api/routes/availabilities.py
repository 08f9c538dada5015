from datetime import date, timedelta
import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import asc, case, update
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.api.serializers import availability_out
from app.core.errors import NotFound, StateConflict, ValidationError
from app.db.session import get_db
from app.models.availability import Availability
from app.models.booking import Booking
from app.models.tour import Tour
from app.schemas.tour import AvailabilityIn, AvailabilityUpdate
from app.services.availability import bookable_slots, calendar_hints, slots_for_date
from app.services.pricing import business_today

router = APIRouter()
logger = logging.getLogger(__name__)

CALENDAR_DEFAULT_DAYS = 90

def _parse_day(value: Optional[str], field: str) -> Optional[date]:
    if not value:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError:
        raise ValidationError(f"{field} must be a YYYY-MM-DD date", field=field)

# Public

@router.get("/availabilities", response_model=List[dict])
def list_bookable(
    tour_id: int = Query(..., alias="tourId"),
    day: Optional[str] = Query(None, alias="date"),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    db: Session = Depends(get_db),
):
    """Bookable slots of a tour: spots left, date not closed, sorted by date and time."""
    if day:
        _parse_day(day, "date")
        return [availability_out(a) for a in slots_for_date(db, tour_id, day)]
    _parse_day(date_from, "dateFrom")
    _parse_day(date_to, "dateTo")
    return [availability_out(a) for a in bookable_slots(db, tour_id, date_from, date_to)]

@router.get("/availabilities/calendar", response_model=dict)
def calendar(
    tour_id: int = Query(..., alias="tourId"),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    db: Session = Depends(get_db),
):
    start = _parse_day(date_from, "dateFrom") or business_today()
    end = _parse_day(date_to, "dateTo") or start + timedelta(days=CALENDAR_DEFAULT_DAYS)
    if end < start:
        raise ValidationError("dateTo must not be before dateFrom", field="dateTo")
    slots = bookable_slots(db, tour_id, start.isoformat(), end.isoformat())
    return calendar_hints(slots, start, end)

# Admin

def _get_availability(db: Session, availability_id: int) -> Availability:
    a = db.get(Availability, availability_id)
    if a is None:
        raise NotFound("Time slot not found")
    return a

@router.get("/admin/availabilities", dependencies=[Depends(require_admin)], response_model=List[dict])
def admin_list(
    tour_id: Optional[int] = Query(None, alias="tourId"),
    date_from: Optional[str] = Query(None, alias="dateFrom"),
    date_to: Optional[str] = Query(None, alias="dateTo"),
    db: Session = Depends(get_db),
):
    q = db.query(Availability)
    if tour_id is not None:
        q = q.filter(Availability.tour_id == tour_id)
    if date_from:
        q = q.filter(Availability.date >= date_from)
    if date_to:
        q = q.filter(Availability.date <= date_to)
    items = q.order_by(asc(Availability.date), asc(Availability.time), asc(Availability.id)).all()
    return [availability_out(a) for a in items]

@router.post("/admin/availabilities", dependencies=[Depends(require_admin)], response_model=dict, status_code=status.HTTP_201_CREATED)
def create_availability(payload: AvailabilityIn, db: Session = Depends(get_db)):
    _parse_day(payload.date, "date")
    if db.get(Tour, payload.tour_id) is None:
        raise NotFound("Tour not found")
    spots_left = payload.max_spots if payload.spots_left is None else payload.spots_left
    a = Availability(
        tour_id=payload.tour_id,
        date=payload.date,
        time=payload.time,
        max_spots=payload.max_spots,
        spots_left=spots_left,
    )
    db.add(a)
    db.commit()
    db.refresh(a)
    return availability_out(a)

@router.put("/admin/availabilities/{availability_id}", dependencies=[Depends(require_admin)], response_model=dict)
def update_availability(availability_id: int, payload: AvailabilityUpdate, db: Session = Depends(get_db)):
    """Edit a slot. spots_left always ends up within 0..max_spots.

    Lowering max_spots without an explicit spots_left clamps spots_left down;
    an explicit spots_left above max_spots is rejected.
    """
    a = _get_availability(db, availability_id)
    changes = payload.model_dump(exclude_unset=True)
    if changes.get("date"):
        _parse_day(changes["date"], "date")
        a.date = changes["date"]
    if changes.get("time"):
        a.time = changes["time"]
    max_spots = changes.get("max_spots") or a.max_spots
    if changes.get("spots_left") is not None:
        if changes["spots_left"] > max_spots:
            raise ValidationError("spots_left cannot exceed max_spots", field="spots_left")
        spots_left = changes["spots_left"]
    else:
        # clamp the stored value in SQL so a booking committed meanwhile is not overwritten
        spots_left = case((Availability.spots_left > max_spots, max_spots), else_=Availability.spots_left)
    db.execute(
        update(Availability)
        .where(Availability.id == a.id)
        .values(max_spots=max_spots, spots_left=spots_left)
        .execution_options(synchronize_session=False)
    )
    db.commit()
    db.refresh(a)
    return availability_out(a)

@router.delete("/admin/availabilities/{availability_id}", dependencies=[Depends(require_admin)], response_model=dict)
def delete_availability(availability_id: int, db: Session = Depends(get_db)):
    a = _get_availability(db, availability_id)
    if db.query(Booking.id).filter(Booking.availability_id == a.id).first() is not None:
        raise StateConflict("This time slot has bookings; set its spots to 0 instead")
    db.delete(a)
    db.commit()
    logger.info("Time slot %s deleted", availability_id)
    return {"status": "deleted", "id": availability_id}
