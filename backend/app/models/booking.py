from sqlalchemy import String, Integer, ForeignKey, DateTime, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime

from app.models.base import Base

BOOKING_REQUESTED = "requested"
BOOKING_CONFIRMED = "confirmed"
BOOKING_CANCELLED = "cancelled"
BOOKING_STATUSES = (BOOKING_REQUESTED, BOOKING_CONFIRMED, BOOKING_CANCELLED)

PAYMENT_UNPAID = "unpaid"
PAYMENT_PAID = "paid"
PAYMENT_REFUNDED = "refunded"
PAYMENT_STATUSES = (PAYMENT_UNPAID, PAYMENT_PAID, PAYMENT_REFUNDED)

class Booking(Base):
    __tablename__ = "bookings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    tour_id: Mapped[int] = mapped_column(Integer, ForeignKey("tours.id", ondelete="CASCADE"), index=True)
    availability_id: Mapped[int] = mapped_column(Integer, ForeignKey("availabilities.id", ondelete="CASCADE"), index=True)
    customer_first_name: Mapped[str] = mapped_column(String(120))
    customer_last_name: Mapped[str] = mapped_column(String(120))
    customer_email: Mapped[str] = mapped_column(String(255), index=True)
    customer_phone: Mapped[str] = mapped_column(String(64))
    number_of_participants: Mapped[int] = mapped_column(Integer)
    special_requests: Mapped[str | None] = mapped_column(Text, nullable=True)
    booking_reference: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    total_amount: Mapped[int] = mapped_column(Integer)  # minor units, after discount
    booking_status: Mapped[str] = mapped_column(String(16), default=BOOKING_REQUESTED, index=True)
    payment_status: Mapped[str] = mapped_column(String(16), default=PAYMENT_UNPAID, index=True)
    # BookingDetails snapshot (requested slot, pricing, applied discount)
    additional_info: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    confirmed_date: Mapped[str | None] = mapped_column(String(10), nullable=True)
    confirmed_time: Mapped[str | None] = mapped_column(String(5), nullable=True)
    confirmed_meeting_point: Mapped[str | None] = mapped_column(Text, nullable=True)
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    language: Mapped[str] = mapped_column(String(2), default="en")
    paid_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    refunded_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    refund_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    tour = relationship("Tour")
    availability = relationship("Availability")

    @property
    def customer_name(self) -> str:
        return f"{self.customer_first_name} {self.customer_last_name}".strip()
