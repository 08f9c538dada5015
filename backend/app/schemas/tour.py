from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator

from app.schemas.i18n import MultilingualText

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


class TourIn(BaseModel):
    name: MultilingualText
    short_description: MultilingualText = Field(default_factory=MultilingualText)
    description: MultilingualText
    duration: MultilingualText
    difficulty: MultilingualText
    badge: MultilingualText = Field(default_factory=MultilingualText)
    image_url: str = ""
    max_group_size: int = Field(..., ge=1)
    price: int = Field(..., ge=0, description="Minor currency units")
    price_type: Literal["per_person", "per_group"] = "per_person"
    badge_color: Optional[str] = None
    is_active: bool = True


class TourUpdate(BaseModel):
    name: Optional[MultilingualText] = None
    short_description: Optional[MultilingualText] = None
    description: Optional[MultilingualText] = None
    duration: Optional[MultilingualText] = None
    difficulty: Optional[MultilingualText] = None
    badge: Optional[MultilingualText] = None
    image_url: Optional[str] = None
    max_group_size: Optional[int] = Field(None, ge=1)
    price: Optional[int] = Field(None, ge=0)
    price_type: Optional[Literal["per_person", "per_group"]] = None
    badge_color: Optional[str] = None
    is_active: Optional[bool] = None


class AvailabilityIn(BaseModel):
    tour_id: int
    date: str = Field(..., pattern=DATE_PATTERN)
    time: str = Field(..., pattern=TIME_PATTERN)
    max_spots: int = Field(..., ge=1)
    spots_left: Optional[int] = Field(None, ge=0, description="Defaults to max_spots")

    @model_validator(mode="after")
    def _spots_in_range(self):
        if self.spots_left is not None and self.spots_left > self.max_spots:
            raise ValueError("spots_left cannot exceed max_spots")
        return self


class AvailabilityUpdate(BaseModel):
    date: Optional[str] = Field(None, pattern=DATE_PATTERN)
    time: Optional[str] = Field(None, pattern=TIME_PATTERN)
    max_spots: Optional[int] = Field(None, ge=1)
    spots_left: Optional[int] = Field(None, ge=0)
