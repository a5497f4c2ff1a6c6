"""
Field names at the storage boundary.

Postgres folds unquoted identifiers to lower case, so the foods table stores
`businessHours` as `businesshours` and so on. Older exports and the first
hosted schema still carry the camel-case spelling. Services only ever see the
application names on the left, which is also what exports carry.
"""

import math
from typing import Any, Dict, Optional

# application field -> storage column
FOOD_COLUMNS = {
    "id": "id",
    "group_id": "group_id",
    "name": "name",
    "flavor": "flavor",
    "portion": "portion",
    "price": "price",
    "guilt_index": "guiltindex",
    "business_hours": "businesshours",
    "address_text": "addresstext",
    "lat": "lat",
    "lng": "lng",
    "created_by": "created_by",
    "created_at": "created_at",
}

# storage column, application name or legacy key -> application field
FOOD_FIELDS = {column: field for field, column in FOOD_COLUMNS.items()}
FOOD_FIELDS.update({field: field for field in FOOD_COLUMNS})
FOOD_FIELDS.update({
    "guiltIndex": "guilt_index",
    "businessHours": "business_hours",
    "addressText": "address_text",
    "latitude": "lat",
    "longitude": "lng",
})

_STORAGE_COLUMNS = set(FOOD_COLUMNS.values())


def _key_rank(key: str) -> int:
    # storage column beats application name beats legacy alias
    if key in _STORAGE_COLUMNS:
        return 0
    if key in FOOD_COLUMNS:
        return 1
    return 2


def to_storage(attrs: Dict[str, Any]) -> Dict[str, Any]:
    """Rename application fields to storage columns, dropping unknown keys."""
    return {FOOD_COLUMNS[key]: value for key, value in attrs.items() if key in FOOD_COLUMNS}


def from_storage(row: Dict[str, Any]) -> Dict[str, Any]:
    """Rename a stored or exported food row to application fields and coerce coordinates."""
    food = {}
    ranks = {}
    for key, value in row.items():
        field = FOOD_FIELDS.get(key)
        if field is None:
            continue
        rank = _key_rank(key)
        if field in food and ranks[field] <= rank:
            continue
        food[field] = value
        ranks[field] = rank
    food["lat"] = coerce_coordinate(food.get("lat"))
    food["lng"] = coerce_coordinate(food.get("lng"))
    return food


def coerce_coordinate(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None
