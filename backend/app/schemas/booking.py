from typing import Literal, Optional
from pydantic import BaseModel, EmailStr, Field

from app.schemas.tour import DATE_PATTERN, TIME_PATTERN


class DiscountSnapshot(BaseModel):
    """Copy of the discount as it was when applied; never re-read from discount_codes."""
    code: str
    name: str
    category: Literal["percentage", "fixed_value", "free_tour"]
    value: int
    amount: int


class PricingSnapshot(BaseModel):
    original_amount: int
    discount_amount: int
    total_amount: int


class BookingDetails(BaseModel):
    """Typed content of Booking.additional_info."""
    requested_date: str
    requested_time: str
    pricing: PricingSnapshot
    discount: Optional[DiscountSnapshot] = None


class BookingCreate(BaseModel):
    tour_id: int
    availability_id: int
    customer_first_name: str = Field(..., min_length=1, max_length=120)
    customer_last_name: str = Field(..., min_length=1, max_length=120)
    customer_email: EmailStr
    customer_phone: str = Field(..., min_length=3, max_length=64)
    number_of_participants: int = Field(..., ge=1)
    special_requests: Optional[str] = Field(None, max_length=2000)
    discount_code: Optional[str] = Field(None, max_length=64)
    language: Literal["en", "pt", "ru"] = "en"


class QuoteRequest(BaseModel):
    tour_id: int
    number_of_participants: int = Field(..., ge=1)
    discount_code: Optional[str] = Field(None, max_length=64)


class BookingAdminUpdate(BaseModel):
    booking_status: Optional[Literal["requested", "confirmed", "cancelled"]] = None
    confirmed_date: Optional[str] = Field(None, pattern=DATE_PATTERN)
    confirmed_time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    confirmed_meeting_point: Optional[str] = None
    admin_notes: Optional[str] = None


class BookingConfirm(BaseModel):
    confirmed_date: str = Field(..., pattern=DATE_PATTERN)
    confirmed_time: str = Field(..., pattern=TIME_PATTERN)
    confirmed_meeting_point: str = Field(..., min_length=1)
    admin_notes: Optional[str] = None


class BookingCancel(BaseModel):
    admin_notes: Optional[str] = None


class RefundRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)
