import csv
import io
import logging
from datetime import datetime, timedelta
from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import Response
from pydantic import BaseModel
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.api.deps import require_admin
from app.api.serializers import booking_admin_out
from app.db.session import get_db
from app.models.admin_setting import SETTINGS_ROW_ID, AdminSetting
from app.models.booking import (
    BOOKING_CANCELLED,
    BOOKING_CONFIRMED,
    BOOKING_REQUESTED,
    BOOKING_STATUSES,
    PAYMENT_PAID,
    PAYMENT_REFUNDED,
    PAYMENT_STATUSES,
    Booking,
)
from app.models.notification import Notification
from app.models.tour import Tour
from app.schemas.booking import BookingAdminUpdate, BookingCancel, BookingConfirm, RefundRequest
from app.schemas.i18n import localize
from app.services import booking_service
from app.services.notifier import Notifier, get_notifier, message_for

router = APIRouter(dependencies=[Depends(require_admin)])
logger = logging.getLogger(__name__)


class SettingsIn(BaseModel):
    auto_close_day: bool


def _settings_row(db: Session) -> AdminSetting:
    row = db.get(AdminSetting, SETTINGS_ROW_ID)
    if row is None:
        row = AdminSetting(id=SETTINGS_ROW_ID, auto_close_day=False)
        db.add(row)
        db.commit()
        db.refresh(row)
    return row


def _notify(background: BackgroundTasks, send, booking: Booking) -> None:
    background.add_task(send, message_for(booking, booking.tour, booking.availability))


@router.get("/requests", response_model=dict)
def list_requests(
    booking_status: str | None = Query(None, alias="status"),
    payment_status: str | None = Query(None, alias="payment"),
    tour_id: int | None = Query(None, alias="tourId"),
    search: str | None = None,
    page: int = 1,
    page_size: int = 25,
    db: Session = Depends(get_db),
):
    """Paginated booking requests, newest first.

    Returns:
        items: current page of bookings
        total: number of bookings under current filter
        page, page_size, pages
    """
    page = max(page, 1)
    page_size = max(1, min(page_size, 200))

    q = db.query(Booking)
    if booking_status in BOOKING_STATUSES:
        q = q.filter(Booking.booking_status == booking_status)
    if payment_status in PAYMENT_STATUSES:
        q = q.filter(Booking.payment_status == payment_status)
    if tour_id is not None:
        q = q.filter(Booking.tour_id == tour_id)
    if search:
        s = f"%{search.strip().lower()}%"
        q = q.filter(or_(
            func.lower(Booking.booking_reference).like(s),
            func.lower(Booking.customer_email).like(s),
            func.lower(Booking.customer_first_name).like(s),
            func.lower(Booking.customer_last_name).like(s),
        ))
    q = q.order_by(Booking.created_at.desc(), Booking.id.desc())

    total = q.count()
    items = q.offset((page - 1) * page_size).limit(page_size).all()
    pages = (total + page_size - 1) // page_size if total else 0
    return {
        "items": [booking_admin_out(b) for b in items],
        "total": total,
        "page": page,
        "page_size": page_size,
        "pages": pages,
    }


@router.get("/requests/{booking_id}", response_model=dict)
def get_request(booking_id: int, db: Session = Depends(get_db)):
    return booking_admin_out(booking_service.get_booking(db, booking_id))


@router.put("/requests/{booking_id}", response_model=dict)
def update_request(
    booking_id: int,
    payload: BookingAdminUpdate,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    before = booking_service.get_booking(db, booking_id).booking_status
    booking = booking_service.update_booking(db, booking_id, payload.model_dump(exclude_unset=True))
    if payload.booking_status == BOOKING_CONFIRMED:
        _notify(background, notifier.booking_confirmed, booking)
    elif payload.booking_status == BOOKING_CANCELLED and before != BOOKING_CANCELLED:
        _notify(background, notifier.booking_cancelled, booking)
    return booking_admin_out(booking)


@router.post("/requests/{booking_id}/confirm", response_model=dict)
def confirm_request(
    booking_id: int,
    payload: BookingConfirm,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    booking = booking_service.confirm_booking(
        db,
        booking_id,
        payload.confirmed_date,
        payload.confirmed_time,
        payload.confirmed_meeting_point,
        payload.admin_notes,
    )
    _notify(background, notifier.booking_confirmed, booking)
    return booking_admin_out(booking)


@router.post("/requests/{booking_id}/cancel", response_model=dict)
def cancel_request(
    booking_id: int,
    background: BackgroundTasks,
    payload: BookingCancel | None = None,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    already = booking_service.get_booking(db, booking_id).booking_status == BOOKING_CANCELLED
    booking = booking_service.cancel_booking(db, booking_id, payload.admin_notes if payload else None)
    if not already:
        _notify(background, notifier.booking_cancelled, booking)
    return booking_admin_out(booking)


@router.post("/payments/{booking_id}/paid", response_model=dict)
def mark_paid(booking_id: int, db: Session = Depends(get_db)):
    return booking_admin_out(booking_service.mark_paid(db, booking_id))


@router.post("/refund/{booking_id}", response_model=dict)
def refund(
    booking_id: int,
    payload: RefundRequest,
    background: BackgroundTasks,
    db: Session = Depends(get_db),
    notifier: Notifier = Depends(get_notifier),
):
    booking = booking_service.refund_booking(db, booking_id, payload.reason)
    _notify(background, notifier.booking_refunded, booking)
    return booking_admin_out(booking)


@router.get("/settings", response_model=dict)
def get_settings(db: Session = Depends(get_db)):
    row = _settings_row(db)
    return {"auto_close_day": row.auto_close_day, "last_updated": row.last_updated.isoformat() if row.last_updated else None}


@router.put("/settings", response_model=dict)
def update_settings(payload: SettingsIn, db: Session = Depends(get_db)):
    row = _settings_row(db)
    row.auto_close_day = payload.auto_close_day
    row.last_updated = datetime.utcnow()
    db.commit()
    logger.info("Admin settings updated: auto_close_day=%s", row.auto_close_day)
    return {"auto_close_day": row.auto_close_day, "last_updated": row.last_updated.isoformat()}


def _time_range(name: str):
    now = datetime.utcnow()
    if name == "today":
        start = datetime(now.year, now.month, now.day)
        end = start + timedelta(days=1)
    elif name == "week":
        start = now - timedelta(days=7)
        end = now
    elif name == "month":
        start = now - timedelta(days=30)
        end = now
    else:
        return None, None
    return start, end


@router.get("/stats", response_model=dict)
def booking_stats(range: str = "all", db: Session = Depends(get_db)):
    start, end = _time_range(range)

    def _bookings():
        q = db.query(Booking)
        if start and end:
            q = q.filter(Booking.created_at >= start, Booking.created_at < end)
        return q

    total = _bookings().count()
    by_status = {s: _bookings().filter(Booking.booking_status == s).count() for s in BOOKING_STATUSES}
    participants = _bookings().filter(Booking.booking_status != BOOKING_CANCELLED).with_entities(
        func.coalesce(func.sum(Booking.number_of_participants), 0)
    ).scalar()
    revenue = _bookings().filter(Booking.payment_status == PAYMENT_PAID).with_entities(
        func.coalesce(func.sum(Booking.total_amount), 0)
    ).scalar()
    refunded = _bookings().filter(Booking.payment_status == PAYMENT_REFUNDED).with_entities(
        func.coalesce(func.sum(Booking.total_amount), 0)
    ).scalar()
    unread = db.query(func.count(Notification.id)).filter(Notification.read == False).scalar() or 0  # noqa: E712
    return {
        "bookings": total,
        "requested": by_status[BOOKING_REQUESTED],
        "confirmed": by_status[BOOKING_CONFIRMED],
        "cancelled": by_status[BOOKING_CANCELLED],
        "participants": int(participants or 0),
        "revenue": int(revenue or 0),
        "refunded": int(refunded or 0),
        "active_tours": db.query(func.count(Tour.id)).filter(Tour.is_active == True).scalar() or 0,  # noqa: E712
        "unread_notifications": unread,
    }


EXPORT_COLUMNS = [
    "booking_reference", "created_at", "tour", "requested_date", "requested_time",
    "customer_name", "customer_email", "customer_phone", "participants",
    "original_amount", "discount_code", "discount_amount", "total_amount",
    "booking_status", "payment_status", "confirmed_date", "confirmed_time",
]


@router.get("/bookings/export")
def export_bookings(range: str = "all", db: Session = Depends(get_db)):
    start, end = _time_range(range)
    q = db.query(Booking)
    if start and end:
        q = q.filter(Booking.created_at >= start, Booking.created_at < end)
    buf = io.StringIO()
    w = csv.writer(buf)
    w.writerow(EXPORT_COLUMNS)
    for b in q.order_by(Booking.created_at.asc(), Booking.id.asc()).all():
        details = booking_service.booking_details(b)
        discount = details.discount if details else None
        w.writerow([
            b.booking_reference,
            b.created_at.isoformat() if b.created_at else "",
            localize(b.tour.name) if b.tour else "",
            details.requested_date if details else "",
            details.requested_time if details else "",
            b.customer_name,
            b.customer_email,
            b.customer_phone,
            b.number_of_participants,
            details.pricing.original_amount if details else b.total_amount,
            discount.code if discount else "",
            discount.amount if discount else 0,
            b.total_amount,
            b.booking_status,
            b.payment_status,
            b.confirmed_date or "",
            b.confirmed_time or "",
        ])
    out = buf.getvalue().encode("utf-8-sig")
    return Response(out, media_type="text/csv", headers={"Content-Disposition": f"attachment; filename=bookings_{range}.csv"})
