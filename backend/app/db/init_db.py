import logging
from datetime import date, timedelta

from app.db.session import engine, SessionLocal
from app.models import admin_setting, article, availability, booking, closed_day  # noqa: F401
from app.models import discount_code, gallery, notification, testimonial, tour, user  # noqa: F401
from app.models.admin_setting import AdminSetting, SETTINGS_ROW_ID
from app.models.availability import Availability
from app.models.base import Base
from app.models.tour import Tour
from app.models.user import User
from app.core.config import settings
from app.core.security import get_password_hash

logger = logging.getLogger(__name__)

def create_tables():
    Base.metadata.create_all(bind=engine)

def seed_demo_data():
    db = SessionLocal()
    try:
        # Seed default admin (idempotent)
        admin_username = (settings.seed_admin_username or "admin").lower()
        admin_pwd = settings.seed_admin_password or "Admin1234!"
        admin = db.query(User).filter(User.username == admin_username).first()
        if not admin:
            admin = User(
                username=admin_username,
                hashed_password=get_password_hash(admin_pwd),
                is_admin=True,
                is_active=True,
            )
            db.add(admin)
            db.commit()
            logger.info("Seeded admin user '%s'", admin_username)

        if db.get(AdminSetting, SETTINGS_ROW_ID) is None:
            db.add(AdminSetting(id=SETTINGS_ROW_ID, auto_close_day=False))
            db.commit()

        # one demo tour with a week of morning slots
        if db.query(Tour).count() == 0:
            demo = Tour(
                name={"en": "Old Town Walking Tour", "pt": "Passeio pela Cidade Velha", "ru": ""},
                short_description={"en": "Hills, viewpoints and tiled facades.", "pt": "", "ru": ""},
                description={"en": "A relaxed three-hour walk through the historic quarters.", "pt": "", "ru": ""},
                duration={"en": "3 hours", "pt": "3 horas", "ru": ""},
                difficulty={"en": "Easy", "pt": "Fácil", "ru": ""},
                badge={"en": "", "pt": "", "ru": ""},
                image_url="",
                max_group_size=10,
                price=2000,
                price_type="per_person",
                is_active=True,
            )
            db.add(demo)
            db.flush()
            start = date.today() + timedelta(days=1)
            for i in range(7):
                day = (start + timedelta(days=i)).isoformat()
                db.add(Availability(tour_id=demo.id, date=day, time="10:00", max_spots=10, spots_left=10))
            db.commit()
            logger.info("Seeded demo tour %s", demo.id)
    finally:
        db.close()
