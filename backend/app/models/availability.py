from sqlalchemy import String, Integer, ForeignKey, CheckConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.models.base import Base

class Availability(Base):
    __tablename__ = "availabilities"
    __table_args__ = (
        CheckConstraint("spots_left >= 0 AND spots_left <= max_spots", name="ck_availabilities_spots_range"),
        Index("ix_availabilities_tour_date", "tour_id", "date"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tour_id: Mapped[int] = mapped_column(Integer, ForeignKey("tours.id", ondelete="CASCADE"))
    date: Mapped[str] = mapped_column(String(10))  # YYYY-MM-DD
    time: Mapped[str] = mapped_column(String(5))  # HH:MM
    max_spots: Mapped[int] = mapped_column(Integer)
    spots_left: Mapped[int] = mapped_column(Integer)

    tour = relationship("Tour", back_populates="availabilities")
