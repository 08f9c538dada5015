import logging
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import asc, desc
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.api.serializers import testimonial_out
from app.core.errors import NotFound, StateConflict
from app.db.session import get_db
from app.models.notification import Notification
from app.models.testimonial import Testimonial
from app.schemas.testimonial import ReviewIn
from app.services.booking_service import get_by_reference

router = APIRouter()
logger = logging.getLogger(__name__)

# Public

@router.get("/testimonials", response_model=List[dict])
def approved_testimonials(tour_id: Optional[int] = Query(None, alias="tourId"), db: Session = Depends(get_db)):
    q = db.query(Testimonial).filter(Testimonial.is_approved == True)  # noqa: E712
    if tour_id is not None:
        q = q.filter(Testimonial.tour_id == tour_id)
    return [testimonial_out(t) for t in q.order_by(desc(Testimonial.created_at), desc(Testimonial.id)).all()]

@router.post("/reviews/{reference}", response_model=dict, status_code=status.HTTP_201_CREATED)
def submit_review(reference: str, payload: ReviewIn, db: Session = Depends(get_db)):
    """Review left through the link in the customer's email. Held for moderation."""
    booking = get_by_reference(db, reference)
    if db.query(Testimonial.id).filter(Testimonial.booking_reference == booking.booking_reference).first():
        raise StateConflict("A review for this booking has already been submitted")
    t = Testimonial(
        tour_id=booking.tour_id,
        booking_reference=booking.booking_reference,
        customer_name=payload.customer_name.strip(),
        customer_country=payload.customer_country.strip(),
        rating=payload.rating,
        text=payload.text.strip(),
        is_approved=False,
    )
    db.add(t)
    db.add(Notification(
        type="review",
        title=f"New review for {booking.booking_reference}",
        body=f"{t.customer_name} rated {t.rating}/5",
        payload={"booking_reference": booking.booking_reference, "tour_id": booking.tour_id},
    ))
    db.commit()
    db.refresh(t)
    logger.info("Review received for booking %s", booking.booking_reference)
    return {"id": t.id, "status": "pending"}

# Admin moderation

@router.get("/admin/testimonials", dependencies=[Depends(require_admin)], response_model=List[dict])
def all_testimonials(approved: Optional[bool] = None, db: Session = Depends(get_db)):
    q = db.query(Testimonial)
    if approved is not None:
        q = q.filter(Testimonial.is_approved == approved)
    return [testimonial_out(t, admin=True) for t in q.order_by(asc(Testimonial.is_approved), desc(Testimonial.id)).all()]

@router.put("/admin/testimonials/{testimonial_id}/approve", dependencies=[Depends(require_admin)], response_model=dict)
def approve_testimonial(testimonial_id: int, db: Session = Depends(get_db)):
    t = db.get(Testimonial, testimonial_id)
    if t is None:
        raise NotFound("Testimonial not found")
    if not t.is_approved:
        t.is_approved = True
        db.commit()
    return testimonial_out(t, admin=True)

@router.delete("/admin/testimonials/{testimonial_id}", dependencies=[Depends(require_admin)], response_model=dict)
def delete_testimonial(testimonial_id: int, db: Session = Depends(get_db)):
    t = db.get(Testimonial, testimonial_id)
    if t is None:
        raise NotFound("Testimonial not found")
    db.delete(t)
    db.commit()
    return {"status": "deleted", "id": testimonial_id}
