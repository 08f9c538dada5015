from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from app.api.serializers import booking_out
from app.db.session import get_db
from app.schemas.booking import BookingCreate, QuoteRequest
from app.services import pricing
from app.services.booking_service import create_booking, get_by_reference
from app.services.notifier import Notifier, get_notifier, message_for

router = APIRouter()

@router.post("/quote", response_model=dict)
def quote(payload: QuoteRequest, db: Session = Depends(get_db)):
    """Price breakdown for the review step. Nothing is reserved or redeemed."""
    price = pricing.quote(db, payload.tour_id, payload.number_of_participants, payload.discount_code)
    return price.as_dict()

@router.post("", response_model=dict, status_code=status.HTTP_201_CREATED)
def create(
    payload: BookingCreate,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    """Create a booking request.

    Spots are taken and the discount redeemed atomically; the customer email
    goes out after the response via BackgroundTasks.
    """
    result = create_booking(db, payload)
    booking = result.booking
    background.add_task(notifier.booking_requested, message_for(booking, booking.tour, booking.availability))
    data = booking_out(booking)
    data["price"] = result.price.as_dict()
    return data

@router.get("/reference/{reference}", response_model=dict)
def by_reference(reference: str, db: Session = Depends(get_db)):
    return booking_out(get_by_reference(db, reference))
