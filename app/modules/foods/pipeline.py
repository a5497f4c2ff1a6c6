"""
Filtering and ordering of a group's food list for display and for picks.

filter_foods -> decorate_distance -> sort_foods. Distance is attached before
sorting because the distance sort keys read it.
"""

import math
from datetime import datetime
from functools import lru_cache
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
from typing import Dict, List, Optional, Sequence, Union

from pyuca import Collator

from app.core.exceptions import ValidationError
from app.modules.foods.hours import is_open_at
from app.modules.foods.schemas import FoodQuery, FoodResponse, SortKey
from app.modules.geo.schemas import Coordinates
from app.modules.geo.service import haversine_distance_km

ATTRIBUTE_FIELDS = ("flavor", "portion", "price", "guilt_index")


def matches_query(food: FoodResponse, query: Optional[str]) -> bool:
    query = (query or "").strip().lower()
    if not query:
        return True
    return query in (food.name or "").lower()


def filter_foods(
    foods: Sequence[FoodResponse],
    query: Optional[str] = None,
    attribute_filters: Optional[Dict[str, Optional[str]]] = None,
    open_now: bool = False,
    now: Optional[datetime] = None,
) -> List[FoodResponse]:
    attribute_filters = {
        field: value for field, value in (attribute_filters or {}).items()
        if field in ATTRIBUTE_FIELDS and value
    }
    if open_now and now is None:
        now = datetime.now()

    result = []
    for food in foods:
        if not matches_query(food, query):
            continue
        if any(getattr(food, field) != value for field, value in attribute_filters.items()):
            continue
        if open_now and not is_open_at(food.business_hours, now):
            continue
        result.append(food)
    return result


def decorate_distance(
    foods: Sequence[FoodResponse],
    user_location: Optional[Coordinates],
) -> List[FoodResponse]:
    result = []
    for food in foods:
        distance = None
        if user_location is not None and food.lat is not None and food.lng is not None:
            distance = haversine_distance_km(user_location.lat, user_location.lng, food.lat, food.lng)
            if not math.isfinite(distance):
                distance = None
        result.append(food.model_copy(update={"distance_km": distance}))
    return result


@lru_cache
def _collator() -> Collator:
    # loads the Unicode collation table once
    return Collator()


def _name_key(food: FoodResponse):
    name = food.name or ""
    return _collator().sort_key(name), name


def _latest_key(food: FoodResponse) -> str:
    return food.created_at.isoformat() if food.created_at else ""


def sort_foods(
    foods: Sequence[FoodResponse],
    sort_key: Union[SortKey, str] = SortKey.LATEST,
    user_location: Optional[Coordinates] = None,
) -> List[FoodResponse]:
    sort_key = SortKey(sort_key)
    if sort_key in (SortKey.DISTANCE_ASC, SortKey.DISTANCE_DESC) and user_location is None:
        sort_key = SortKey.LATEST

    if sort_key == SortKey.NAME:
        return sorted(foods, key=_name_key)
    if sort_key == SortKey.LATEST:
        return sorted(foods, key=_latest_key, reverse=True)

    # unknown distances stay at the end in both directions
    known = [f for f in foods if f.distance_km is not None]
    unknown = [f for f in foods if f.distance_km is None]
    known.sort(key=lambda f: f.distance_km, reverse=sort_key == SortKey.DISTANCE_DESC)
    return known + unknown


def run_pipeline(
    foods: Sequence[FoodResponse],
    query: Optional[str] = None,
    attribute_filters: Optional[Dict[str, Optional[str]]] = None,
    open_now: bool = False,
    sort_key: Union[SortKey, str] = SortKey.LATEST,
    user_location: Optional[Coordinates] = None,
    now: Optional[datetime] = None,
) -> List[FoodResponse]:
    filtered = filter_foods(foods, query, attribute_filters, open_now, now)
    decorated = decorate_distance(filtered, user_location)
    return sort_foods(decorated, sort_key, user_location)


def current_time(tz: Optional[str] = None) -> datetime:
    """Now in the given IANA zone, or server local time."""
    if not tz:
        return datetime.now()
    try:
        return datetime.now(ZoneInfo(tz))
    except (ZoneInfoNotFoundError, ValueError):
        raise ValidationError(f"Unknown time zone: {tz}")


def apply_query(
    foods: Sequence[FoodResponse],
    query: FoodQuery,
    now: Optional[datetime] = None,
) -> List[FoodResponse]:
    if query.open_now and now is None:
        now = current_time(query.tz)
    return run_pipeline(
        foods,
        query=query.q,
        attribute_filters=query.attribute_filters(),
        open_now=query.open_now,
        sort_key=query.sort,
        user_location=query.user_location(),
        now=now,
    )
