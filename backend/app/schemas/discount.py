from datetime import date
from typing import Literal, Optional
from pydantic import BaseModel, Field, model_validator


class DiscountIn(BaseModel):
    code: str = Field(..., min_length=2, max_length=64)
    name: str = Field(..., min_length=1, max_length=255)
    category: Literal["percentage", "fixed_value", "free_tour"]
    value: int = Field(..., ge=1)
    valid_until: Optional[date] = None
    usage_limit: Optional[int] = Field(None, ge=1)
    one_time: bool = False
    is_active: bool = True

    @model_validator(mode="after")
    def _value_fits_category(self):
        if self.category == "percentage" and self.value > 100:
            raise ValueError("percentage value must be between 1 and 100")
        return self


class DiscountUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    valid_until: Optional[date] = None
    usage_limit: Optional[int] = Field(None, ge=1)
    one_time: Optional[bool] = None
    is_active: Optional[bool] = None
