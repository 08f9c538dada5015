from sqlalchemy import String, Integer, Boolean, Date, DateTime
from sqlalchemy.orm import Mapped, mapped_column
from datetime import date, datetime

from app.models.base import Base

CATEGORY_PERCENTAGE = "percentage"
CATEGORY_FIXED_VALUE = "fixed_value"
CATEGORY_FREE_TOUR = "free_tour"
CATEGORIES = (CATEGORY_PERCENTAGE, CATEGORY_FIXED_VALUE, CATEGORY_FREE_TOUR)

class DiscountCode(Base):
    __tablename__ = "discount_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    code: Mapped[str] = mapped_column(String(64), unique=True, index=True)  # stored upper-case
    name: Mapped[str] = mapped_column(String(255))
    category: Mapped[str] = mapped_column(String(16))
    # percentage: 1..100 | fixed_value: minor units | free_tour: number of free participants
    value: Mapped[int] = mapped_column(Integer)
    valid_until: Mapped[date | None] = mapped_column(Date, nullable=True)
    usage_limit: Mapped[int | None] = mapped_column(Integer, nullable=True)
    one_time: Mapped[bool] = mapped_column(Boolean, default=False)
    used_count: Mapped[int] = mapped_column(Integer, default=0)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    @property
    def effective_limit(self) -> int | None:
        if self.one_time:
            return 1
        return self.usage_limit
