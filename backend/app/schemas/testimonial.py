from pydantic import BaseModel, Field


class ReviewIn(BaseModel):
    customer_name: str = Field(..., min_length=1, max_length=255)
    customer_country: str = Field(..., min_length=1, max_length=120)
    rating: int = Field(..., ge=1, le=5)
    text: str = Field(..., min_length=1, max_length=5000)
