from datetime import datetime, timezone
from supabase import Client
from app.core.exceptions import NotFoundError, StorageError, ValidationError
from app.database.supabase_client import run_query
from app.modules.groups.service import MembershipService
from app.modules.ratings.schemas import RatingResponse
from typing import Dict, Optional
import logging

logger = logging.getLogger(__name__)


class RatingService:
    """Star ratings. A food has a single rating shared by its whole group."""

    def __init__(self, supabase: Client, memberships: Optional[MembershipService] = None):
        self.supabase = supabase
        self.memberships = memberships or MembershipService(supabase)

    def list_ratings(self, group_id: str) -> Dict[str, int]:
        """Map of food id to stars for the group's foods. Storage errors degrade to {}."""
        try:
            foods = run_query(
                self.supabase.table("foods").select("id").eq("group_id", group_id),
                "list group foods"
            )
            food_ids = [f["id"] for f in foods]
            if not food_ids:
                return {}
            rows = run_query(
                self.supabase.table("ratings").select("food_id, stars").in_("food_id", food_ids),
                "list ratings"
            )
        except StorageError:
            return {}
        return {str(row["food_id"]): row["stars"] for row in rows}

    def set_rating(self, food_id: str, stars: int, user_id: str) -> RatingResponse:
        if not isinstance(stars, int) or isinstance(stars, bool) or not 1 <= stars <= 5:
            raise ValidationError("Rating must be a whole number of stars from 1 to 5")

        foods = run_query(
            self.supabase.table("foods").select("id, group_id").eq("id", food_id).limit(1),
            "get food"
        )
        if not foods:
            raise NotFoundError("Food not found")
        self.memberships.require_permission(foods[0]["group_id"], user_id, "ratings:write")

        rows = run_query(
            self.supabase.table("ratings").upsert({
                "food_id": food_id,
                "stars": stars,
                "rated_by": user_id,
                "created_at": datetime.now(timezone.utc).isoformat()
            }, on_conflict="food_id"),
            "set rating"
        )
        if not rows:
            raise StorageError("Failed to save rating")
        return RatingResponse(**rows[0])
