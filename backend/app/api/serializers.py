"""Model -> JSON dicts shared by several route modules."""
from app.models.availability import Availability
from app.models.booking import Booking
from app.models.discount_code import DiscountCode
from app.models.testimonial import Testimonial
from app.models.tour import Tour
from app.schemas.i18n import MultilingualText
from app.services.booking_service import booking_details, status_label


def _text(raw) -> dict:
    return MultilingualText.from_db(raw).model_dump()


def tour_out(t: Tour) -> dict:
    return {
        "id": t.id,
        "name": _text(t.name),
        "short_description": _text(t.short_description),
        "description": _text(t.description),
        "duration": _text(t.duration),
        "difficulty": _text(t.difficulty),
        "badge": _text(t.badge),
        "image_url": t.image_url,
        "max_group_size": t.max_group_size,
        "price": t.price,
        "price_type": t.price_type,
        "badge_color": t.badge_color,
        "is_active": t.is_active,
    }


def availability_out(a: Availability) -> dict:
    return {
        "id": a.id,
        "tour_id": a.tour_id,
        "date": a.date,
        "time": a.time,
        "max_spots": a.max_spots,
        "spots_left": a.spots_left,
    }


def booking_out(b: Booking) -> dict:
    details = booking_details(b)
    return {
        "id": b.id,
        "tour_id": b.tour_id,
        "availability_id": b.availability_id,
        "customer_first_name": b.customer_first_name,
        "customer_last_name": b.customer_last_name,
        "customer_email": b.customer_email,
        "customer_phone": b.customer_phone,
        "number_of_participants": b.number_of_participants,
        "special_requests": b.special_requests,
        "booking_reference": b.booking_reference,
        "total_amount": b.total_amount,
        "booking_status": b.booking_status,
        "payment_status": b.payment_status,
        "status_label": status_label(b),
        "details": details.model_dump() if details else None,
        "confirmed_date": b.confirmed_date,
        "confirmed_time": b.confirmed_time,
        "confirmed_meeting_point": b.confirmed_meeting_point,
        "language": b.language,
        "created_at": b.created_at.isoformat() if b.created_at else None,
    }


def booking_admin_out(b: Booking) -> dict:
    data = booking_out(b)
    data.update({
        "admin_notes": b.admin_notes,
        "paid_at": b.paid_at.isoformat() if b.paid_at else None,
        "refunded_at": b.refunded_at.isoformat() if b.refunded_at else None,
        "refund_reason": b.refund_reason,
    })
    return data


def discount_out(d: DiscountCode) -> dict:
    return {
        "id": d.id,
        "code": d.code,
        "name": d.name,
        "category": d.category,
        "value": d.value,
        "valid_until": d.valid_until.isoformat() if d.valid_until else None,
        "usage_limit": d.usage_limit,
        "one_time": d.one_time,
        "used_count": d.used_count,
        "is_active": d.is_active,
    }


def testimonial_out(t: Testimonial, admin: bool = False) -> dict:
    data = {
        "id": t.id,
        "tour_id": t.tour_id,
        "customer_name": t.customer_name,
        "customer_country": t.customer_country,
        "rating": t.rating,
        "text": t.text,
    }
    if admin:
        data["is_approved"] = t.is_approved
        data["booking_reference"] = t.booking_reference
    return data
