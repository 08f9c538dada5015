from sqlalchemy import String, Integer, Boolean, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base

PRICE_PER_PERSON = "per_person"
PRICE_PER_GROUP = "per_group"
PRICE_TYPES = (PRICE_PER_PERSON, PRICE_PER_GROUP)

def _empty_text() -> dict:
    return {"en": "", "pt": "", "ru": ""}

class Tour(Base):
    __tablename__ = "tours"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    # multilingual fields: {"en": ..., "pt": ..., "ru": ...}
    name: Mapped[dict] = mapped_column(JSON)
    short_description: Mapped[dict] = mapped_column(JSON, default=_empty_text)
    description: Mapped[dict] = mapped_column(JSON)
    duration: Mapped[dict] = mapped_column(JSON)
    difficulty: Mapped[dict] = mapped_column(JSON)
    badge: Mapped[dict] = mapped_column(JSON, default=_empty_text)
    image_url: Mapped[str] = mapped_column(Text, default="")
    max_group_size: Mapped[int] = mapped_column(Integer)
    price: Mapped[int] = mapped_column(Integer)  # minor currency units
    price_type: Mapped[str] = mapped_column(String(16), default=PRICE_PER_PERSON)
    badge_color: Mapped[str | None] = mapped_column(String(32), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    availabilities = relationship("Availability", back_populates="tour", cascade="all, delete-orphan", passive_deletes=True)
    testimonials = relationship("Testimonial", back_populates="tour", cascade="all, delete-orphan", passive_deletes=True)
