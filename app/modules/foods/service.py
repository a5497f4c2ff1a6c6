from datetime import datetime, timezone
from supabase import Client
from app.core.exceptions import NotFoundError, StorageError, ValidationError
from app.database.field_mapping import coerce_coordinate, from_storage, to_storage
from app.database.supabase_client import run_query
from app.modules.foods.schemas import FoodCreate, FoodResponse, FoodUpdate
from app.modules.geo.service import GeoLocator
from app.modules.groups.service import MembershipService
from typing import Any, Dict, List, Optional, Union
import logging

logger = logging.getLogger(__name__)

TEXT_FIELDS = ("flavor", "portion", "price", "guilt_index", "business_hours")


def normalize_name(name: Optional[str]) -> str:
    return (name or "").strip().lower()


def find_duplicate_name(foods: List[FoodResponse], name: str, exclude_id: Optional[str] = None) -> Optional[FoodResponse]:
    """Existing food whose name equals `name` ignoring case and surrounding spaces."""
    wanted = normalize_name(name)
    for food in foods:
        if food.id != exclude_id and normalize_name(food.name) == wanted:
            return food
    return None


class FoodStore:
    def __init__(
        self,
        supabase: Client,
        geolocator: Optional[GeoLocator] = None,
        memberships: Optional[MembershipService] = None,
    ):
        self.supabase = supabase
        self.geolocator = geolocator or GeoLocator()
        self.memberships = memberships or MembershipService(supabase)

    def list(self, group_id: str) -> List[FoodResponse]:
        """All foods of a group. Storage errors degrade to an empty list."""
        try:
            rows = run_query(
                self.supabase.table("foods")
                    .select("*")
                    .eq("group_id", group_id)
                    .order("created_at", desc=True),
                "list foods"
            )
        except StorageError:
            return []
        return [FoodResponse(**from_storage(row)) for row in rows]

    def get(self, food_id: str) -> FoodResponse:
        rows = run_query(
            self.supabase.table("foods").select("*").eq("id", food_id).limit(1),
            "get food"
        )
        if not rows:
            raise NotFoundError("Food not found")
        return FoodResponse(**from_storage(rows[0]))

    def create(self, group_id: str, attrs: Union[FoodCreate, Dict[str, Any]], user_id: str) -> FoodResponse:
        """Create a food in the group.

        A non-empty address is geocoded before the insert; a failed lookup raises
        GeocodingError and nothing is stored.
        """
        self.memberships.require_permission(group_id, user_id, "foods:create")
        data = attrs.model_dump() if isinstance(attrs, FoodCreate) else dict(attrs)

        name = (data.get("name") or "").strip()
        if not name:
            raise ValidationError("Food name is required")

        record = {field: data.get(field) or "" for field in TEXT_FIELDS}
        record.update({
            "group_id": group_id,
            "name": name,
            "created_by": user_id,
            "created_at": datetime.now(timezone.utc).isoformat(),
        })
        record.update(self._locate((data.get("address_text") or "").strip()))

        rows = run_query(
            self.supabase.table("foods").insert(to_storage(record)),
            "create food"
        )
        if not rows:
            raise StorageError("Failed to create food")
        logger.info(f"Food {rows[0].get('id')} created in group {group_id}")
        return FoodResponse(**from_storage(rows[0]))

    def update(self, food_id: str, attrs: Union[FoodUpdate, Dict[str, Any]], user_id: str) -> FoodResponse:
        """Update a food. A non-empty address in the update is always geocoded again."""
        food = self.get(food_id)
        self.memberships.require_permission(food.group_id, user_id, "foods:update")
        changes = attrs.model_dump(exclude_unset=True) if isinstance(attrs, FoodUpdate) else dict(attrs)

        update_data = {}
        if "name" in changes:
            name = (changes["name"] or "").strip()
            if not name:
                raise ValidationError("Food name is required")
            update_data["name"] = name
        for field in TEXT_FIELDS:
            if field in changes:
                update_data[field] = changes[field] or ""
        if "address_text" in changes:
            update_data.update(self._locate((changes["address_text"] or "").strip()))

        if not update_data:
            return food

        rows = run_query(
            self.supabase.table("foods")
                .update(to_storage(update_data))
                .eq("id", food_id),
            "update food"
        )
        if not rows:
            raise NotFoundError("Food not found")
        return FoodResponse(**from_storage(rows[0]))

    def delete(self, food_id: str, user_id: str) -> bool:
        """Delete a food and its rating."""
        food = self.get(food_id)
        self.memberships.require_permission(food.group_id, user_id, "foods:delete")

        rows = run_query(
            self.supabase.table("foods").delete().eq("id", food_id),
            "delete food"
        )
        run_query(
            self.supabase.table("ratings").delete().eq("food_id", food_id),
            "delete rating"
        )
        logger.info(f"Food {food_id} deleted from group {food.group_id}")
        return len(rows) > 0

    def export_data(self, group_id: str, user_id: str) -> Dict[str, List[dict]]:
        """Foods and ratings of a group as plain JSON-able lists."""
        self.memberships.require_permission(group_id, user_id, "foods:read")
        foods = run_query(
            self.supabase.table("foods").select("*").eq("group_id", group_id).order("created_at"),
            "export foods"
        )
        food_ids = [row["id"] for row in foods]
        ratings = []
        if food_ids:
            ratings = run_query(
                self.supabase.table("ratings")
                    .select("food_id, stars, created_at")
                    .in_("food_id", food_ids),
                "export ratings"
            )
        return {
            "foods": [from_storage(row) for row in foods],
            "ratings": [
                {"food_id": r["food_id"], "stars": r["stars"], "created_at": r.get("created_at")}
                for r in ratings
            ],
        }

    def import_data(self, group_id: str, payload: Union[Dict[str, Any], List[Dict[str, Any]]], user_id: str) -> int:
        """Import foods (and their ratings) exported earlier. Returns the number of foods imported.

        Accepts either {"foods": [...], "ratings": [...]} or a bare list of foods.
        Rows without a name are skipped. Addresses are not geocoded here.
        """
        self.memberships.require_permission(group_id, user_id, "foods:import")
        if isinstance(payload, list):
            raw_foods, raw_ratings = payload, []
        elif isinstance(payload, dict):
            raw_foods, raw_ratings = payload.get("foods") or [], payload.get("ratings") or []
        else:
            raise ValidationError("Import payload must be an object or a list of foods")

        old_ids = []
        records = []
        now = datetime.now(timezone.utc).isoformat()
        for raw in raw_foods:
            if not isinstance(raw, dict):
                continue
            food = from_storage(raw)
            name = str(food.get("name") or "").strip()
            if not name:
                logger.warning(f"Skipping imported food without a name: {raw!r}")
                continue
            record = {field: food.get(field) or "" for field in TEXT_FIELDS}
            record.update({
                "group_id": group_id,
                "name": name,
                "address_text": food.get("address_text") or "",
                "lat": coerce_coordinate(food.get("lat")),
                "lng": coerce_coordinate(food.get("lng")),
                "created_by": user_id,
                "created_at": food.get("created_at") or now,
            })
            old_ids.append(food.get("id"))
            records.append(to_storage(record))

        if not records:
            return 0

        rows = run_query(self.supabase.table("foods").insert(records), "import foods")
        id_map = {
            str(old_id): row["id"]
            for old_id, row in zip(old_ids, rows) if old_id is not None
        }

        rating_rows = {}
        for rating in raw_ratings:
            if not isinstance(rating, dict):
                continue
            new_id = id_map.get(str(rating.get("food_id")))
            stars = rating.get("stars")
            if not new_id or not isinstance(stars, int) or not 1 <= stars <= 5:
                continue
            # one rating per food; later entries win
            rating_rows[new_id] = {
                "food_id": new_id,
                "stars": stars,
                "rated_by": user_id,
                "created_at": rating.get("created_at") or now,
            }
        if rating_rows:
            run_query(
                self.supabase.table("ratings").upsert(list(rating_rows.values()), on_conflict="food_id"),
                "import ratings"
            )

        logger.info(f"Imported {len(rows)} food(s) and {len(rating_rows)} rating(s) into group {group_id}")
        return len(rows)

    def _locate(self, address_text: str) -> Dict[str, Any]:
        if not address_text:
            return {"address_text": "", "lat": None, "lng": None}
        coordinates = self.geolocator.geocode(address_text)
        return {"address_text": address_text, "lat": coordinates.lat, "lng": coordinates.lng}
