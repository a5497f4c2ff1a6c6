from enum import Enum
from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime

from app.modules.foods.hours import parse_business_hours
from app.modules.geo.schemas import Coordinates


def _check_business_hours(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    parsed = parse_business_hours(value)
    if parsed is None:
        raise ValueError("business_hours must look like HH:MM-HH:MM")
    if parsed[1] <= parsed[0]:
        raise ValueError("business_hours must end after it starts")
    return value.strip()


class FoodCreate(BaseModel):
    name: str
    flavor: str = ""
    portion: str = ""
    price: str = ""
    guilt_index: str = ""
    business_hours: str = ""
    address_text: str = ""

    @field_validator("business_hours")
    @classmethod
    def validate_business_hours(cls, value):
        return _check_business_hours(value)


class FoodUpdate(BaseModel):
    name: Optional[str] = None
    flavor: Optional[str] = None
    portion: Optional[str] = None
    price: Optional[str] = None
    guilt_index: Optional[str] = None
    business_hours: Optional[str] = None
    address_text: Optional[str] = None

    @field_validator("business_hours")
    @classmethod
    def validate_business_hours(cls, value):
        return _check_business_hours(value)


class FoodResponse(BaseModel):
    id: str
    group_id: Optional[str] = None
    name: str
    flavor: Optional[str] = None
    portion: Optional[str] = None
    price: Optional[str] = None
    guilt_index: Optional[str] = None
    business_hours: Optional[str] = None
    address_text: Optional[str] = None
    lat: Optional[float] = None
    lng: Optional[float] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    distance_km: Optional[float] = None
    rating: Optional[int] = None

    @field_validator("id", mode="before")
    @classmethod
    def stringify_id(cls, value):
        return str(value) if value is not None else value

    class Config:
        from_attributes = True


class FoodExport(BaseModel):
    foods: list
    ratings: list


class ImportResult(BaseModel):
    imported: int


class SortKey(str, Enum):
    LATEST = "latest"
    NAME = "name"
    DISTANCE_ASC = "distanceAsc"
    DISTANCE_DESC = "distanceDesc"


class FoodQuery(BaseModel):
    """Search, filter and sort options for a food list."""
    q: Optional[str] = None
    flavor: Optional[str] = None
    portion: Optional[str] = None
    price: Optional[str] = None
    guilt_index: Optional[str] = None
    open_now: bool = False
    sort: SortKey = SortKey.LATEST
    lat: Optional[float] = Field(default=None, ge=-90, le=90)
    lng: Optional[float] = Field(default=None, ge=-180, le=180)
    tz: Optional[str] = None

    def attribute_filters(self) -> dict:
        return {
            "flavor": self.flavor,
            "portion": self.portion,
            "price": self.price,
            "guilt_index": self.guilt_index,
        }

    def user_location(self) -> Optional[Coordinates]:
        if self.lat is None or self.lng is None:
            return None
        return Coordinates(lat=self.lat, lng=self.lng)
