import logging
from typing import List
from fastapi import APIRouter, Depends, status
from sqlalchemy import asc
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.api.serializers import tour_out
from app.core.errors import NotFound
from app.db.session import get_db
from app.models.booking import Booking
from app.models.tour import Tour
from app.schemas.tour import TourIn, TourUpdate

router = APIRouter()
logger = logging.getLogger(__name__)

_TEXT_FIELDS = ("name", "short_description", "description", "duration", "difficulty", "badge")

def _get_tour(db: Session, tour_id: int, active_only: bool = False) -> Tour:
    t = db.get(Tour, tour_id)
    if t is None or (active_only and not t.is_active):
        raise NotFound("Tour not found")
    return t

# Public

@router.get("/tours", response_model=List[dict])
def list_tours(db: Session = Depends(get_db)):
    items = db.query(Tour).filter(Tour.is_active == True).order_by(asc(Tour.id)).all()  # noqa: E712
    return [tour_out(t) for t in items]

@router.get("/tours/{tour_id}", response_model=dict)
def get_tour(tour_id: int, db: Session = Depends(get_db)):
    return tour_out(_get_tour(db, tour_id, active_only=True))

# Admin CRUD

@router.get("/admin/tours", dependencies=[Depends(require_admin)], response_model=List[dict])
def admin_list_tours(db: Session = Depends(get_db)):
    return [tour_out(t) for t in db.query(Tour).order_by(asc(Tour.id)).all()]

@router.post("/admin/tours", dependencies=[Depends(require_admin)], response_model=dict, status_code=status.HTTP_201_CREATED)
def create_tour(payload: TourIn, db: Session = Depends(get_db)):
    data = payload.model_dump()
    t = Tour(**data)
    db.add(t)
    db.commit()
    db.refresh(t)
    logger.info("Tour %s created", t.id)
    return tour_out(t)

@router.put("/admin/tours/{tour_id}", dependencies=[Depends(require_admin)], response_model=dict)
def update_tour(tour_id: int, payload: TourUpdate, db: Session = Depends(get_db)):
    t = _get_tour(db, tour_id)
    for key, value in payload.model_dump(exclude_unset=True).items():
        if value is None and key in _TEXT_FIELDS:
            continue
        setattr(t, key, value)
    db.commit()
    db.refresh(t)
    return tour_out(t)

@router.delete("/admin/tours/{tour_id}", dependencies=[Depends(require_admin)], response_model=dict)
def delete_tour(tour_id: int, db: Session = Depends(get_db)):
    """Delete a tour. A tour with bookings is only deactivated so their history stays intact."""
    t = _get_tour(db, tour_id)
    has_bookings = db.query(Booking.id).filter(Booking.tour_id == t.id).first() is not None
    if has_bookings:
        t.is_active = False
        db.commit()
        logger.info("Tour %s has bookings, deactivated instead of deleted", t.id)
        return {"status": "deactivated", "id": t.id}
    db.delete(t)
    db.commit()
    logger.info("Tour %s deleted", tour_id)
    return {"status": "deleted", "id": tour_id}
