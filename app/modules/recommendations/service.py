from datetime import datetime, timezone
from supabase import Client
from app.core.exceptions import NotFoundError, StorageError
from app.database.supabase_client import run_query
from app.modules.foods.pipeline import apply_query
from app.modules.foods.schemas import FoodQuery
from app.modules.foods.service import FoodStore
from app.modules.groups.service import MembershipService
from app.modules.ratings.service import RatingService
from app.modules.recommendations.engine import pick_random, pick_weighted_by_rating
from app.modules.recommendations.schemas import HistoryEntry, PickMode, PickResponse
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


class RecommendationService:
    def __init__(
        self,
        supabase: Client,
        foods: FoodStore,
        ratings: Optional[RatingService] = None,
        memberships: Optional[MembershipService] = None,
        rng=None,
    ):
        self.supabase = supabase
        self.foods = foods
        self.memberships = memberships or foods.memberships
        self.ratings = ratings or RatingService(supabase, self.memberships)
        self.rng = rng

    def roll(self, group_id: str, user_id: str, query: Optional[FoodQuery] = None) -> PickResponse:
        """Uniform pick among the foods matching the query."""
        self.memberships.require_permission(group_id, user_id, "foods:read")
        candidates = apply_query(self.foods.list(group_id), query or FoodQuery())
        food = pick_random(candidates, rng=self.rng)
        if food is None:
            raise NotFoundError("No foods match the current filters")
        self._record(group_id, food.id, PickMode.ROLL, user_id)
        return PickResponse(mode=PickMode.ROLL, food=food, candidates=len(candidates))

    def recommend(self, group_id: str, user_id: str, query: Optional[FoodQuery] = None) -> PickResponse:
        """Rating-weighted pick among the rated foods matching the query."""
        self.memberships.require_permission(group_id, user_id, "foods:read")
        candidates = apply_query(self.foods.list(group_id), query or FoodQuery())
        ratings = self.ratings.list_ratings(group_id)
        food = pick_weighted_by_rating(candidates, ratings, rng=self.rng)
        if food is None:
            raise NotFoundError("No rated foods to recommend, rate some foods first")
        food = food.model_copy(update={"rating": ratings.get(food.id)})
        self._record(group_id, food.id, PickMode.RECOMMEND, user_id)
        return PickResponse(mode=PickMode.RECOMMEND, food=food, candidates=len(candidates))

    def list_history(self, group_id: str, user_id: str, limit: int = 20) -> List[HistoryEntry]:
        self.memberships.require_permission(group_id, user_id, "foods:read")
        try:
            rows = run_query(
                self.supabase.table("recommend_history")
                    .select("*")
                    .eq("group_id", group_id)
                    .order("recommended_at", desc=True)
                    .limit(limit),
                "list recommendation history"
            )
        except StorageError:
            return []
        return [HistoryEntry(**row) for row in rows]

    def _record(self, group_id: str, food_id: str, mode: PickMode, user_id: str):
        try:
            run_query(
                self.supabase.table("recommend_history").insert({
                    "group_id": group_id,
                    "food_id": food_id,
                    "mode": mode.value,
                    "user_id": user_id,
                    "recommended_at": datetime.now(timezone.utc).isoformat()
                }),
                "record recommendation"
            )
        except StorageError as e:
            # the pick itself already succeeded
            logger.warning(f"Could not record {mode.value} of food {food_id}: {e.message}")
