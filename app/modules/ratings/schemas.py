from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class RatingSet(BaseModel):
    stars: int = Field(ge=1, le=5)


class RatingResponse(BaseModel):
    food_id: str
    stars: int
    rated_by: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True
