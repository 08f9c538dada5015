from datetime import date

from app.core.security import get_password_hash
from app.db.session import SessionLocal
from app.models.admin_setting import SETTINGS_ROW_ID, AdminSetting
from app.models.availability import Availability
from app.models.discount_code import DiscountCode
from app.models.tour import Tour
from app.models.user import User
from app.services.notifier import Notifier

ADMIN_USERNAME = "admin"
ADMIN_PASSWORD = "Admin1234!"


def text(en: str) -> dict:
    return {"en": en, "pt": "", "ru": ""}


def seed_tour(price: int = 2000, price_type: str = "per_person", max_group_size: int = 10, is_active: bool = True) -> int:
    db = SessionLocal()
    t = Tour(
        name=text("Alfama Walk"),
        short_description=text("Old streets"),
        description=text("A walk through Alfama"),
        duration=text("3 hours"),
        difficulty=text("Easy"),
        badge=text(""),
        image_url="",
        max_group_size=max_group_size,
        price=price,
        price_type=price_type,
        is_active=is_active,
    )
    db.add(t)
    db.commit()
    tour_id = t.id
    db.close()
    return tour_id


def seed_slot(tour_id: int, day: str = "2099-03-10", time: str = "10:00", max_spots: int = 10, spots_left: int | None = None) -> int:
    db = SessionLocal()
    a = Availability(
        tour_id=tour_id,
        date=day,
        time=time,
        max_spots=max_spots,
        spots_left=max_spots if spots_left is None else spots_left,
    )
    db.add(a)
    db.commit()
    slot_id = a.id
    db.close()
    return slot_id


def seed_discount(
    code: str = "WELCOME10",
    category: str = "percentage",
    value: int = 10,
    usage_limit: int | None = None,
    one_time: bool = False,
    valid_until: date | None = None,
    is_active: bool = True,
    used_count: int = 0,
) -> int:
    db = SessionLocal()
    d = DiscountCode(
        code=code,
        name=f"{code} promo",
        category=category,
        value=value,
        usage_limit=usage_limit,
        one_time=one_time,
        valid_until=valid_until,
        is_active=is_active,
        used_count=used_count,
    )
    db.add(d)
    db.commit()
    discount_id = d.id
    db.close()
    return discount_id


def set_auto_close(enabled: bool) -> None:
    db = SessionLocal()
    row = db.get(AdminSetting, SETTINGS_ROW_ID)
    if row is None:
        db.add(AdminSetting(id=SETTINGS_ROW_ID, auto_close_day=enabled))
    else:
        row.auto_close_day = enabled
    db.commit()
    db.close()


def ensure_admin(username: str = ADMIN_USERNAME, password: str = ADMIN_PASSWORD, is_admin: bool = True, is_active: bool = True) -> None:
    db = SessionLocal()
    u = db.query(User).filter(User.username == username).first()
    if not u:
        db.add(User(username=username, hashed_password=get_password_hash(password), is_admin=is_admin, is_active=is_active))
        db.commit()
    db.close()


def booking_payload(tour_id: int, availability_id: int, participants: int = 3, code: str | None = None, **extra) -> dict:
    payload = {
        "tour_id": tour_id,
        "availability_id": availability_id,
        "customer_first_name": "Ana",
        "customer_last_name": "Silva",
        "customer_email": "ana@example.com",
        "customer_phone": "+351900000000",
        "number_of_participants": participants,
        "language": "en",
    }
    if code:
        payload["discount_code"] = code
    payload.update(extra)
    return payload


class RecordingNotifier(Notifier):
    """Collects messages instead of sending email."""

    def __init__(self):
        self.sent = []

    def booking_requested(self, msg):
        self.sent.append(("requested", msg))

    def booking_confirmed(self, msg):
        self.sent.append(("confirmed", msg))

    def booking_cancelled(self, msg):
        self.sent.append(("cancelled", msg))

    def booking_refunded(self, msg):
        self.sent.append(("refunded", msg))

    def kinds(self):
        return [kind for kind, _ in self.sent]
