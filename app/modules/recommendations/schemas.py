from enum import Enum
from pydantic import BaseModel
from typing import Optional
from datetime import datetime

from app.modules.foods.schemas import FoodResponse


class PickMode(str, Enum):
    ROLL = "roll"
    RECOMMEND = "recommend"


class PickResponse(BaseModel):
    mode: PickMode
    food: FoodResponse
    candidates: int


class HistoryEntry(BaseModel):
    id: Optional[str] = None
    group_id: str
    food_id: str
    mode: PickMode
    user_id: Optional[str] = None
    recommended_at: Optional[datetime] = None
