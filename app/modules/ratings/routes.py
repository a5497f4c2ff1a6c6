from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_user, get_rating_service
from app.modules.ratings.schemas import RatingResponse, RatingSet
from app.modules.ratings.service import RatingService
from typing import Dict

router = APIRouter(tags=["ratings"])


@router.get("/groups/{group_id}/ratings", response_model=Dict[str, int])
def list_ratings(
    group_id: str,
    user_data: Dict = Depends(get_current_user),
    service: RatingService = Depends(get_rating_service)
):
    """Stars per food id for the group"""
    service.memberships.require_permission(group_id, user_data["id"], "ratings:read")
    return service.list_ratings(group_id)


@router.put("/foods/{food_id}/rating", response_model=RatingResponse)
def set_rating(
    food_id: str,
    rating: RatingSet,
    user_data: Dict = Depends(get_current_user),
    service: RatingService = Depends(get_rating_service)
):
    """Set the food's rating (admin or member)"""
    return service.set_rating(food_id, rating.stars, user_data["id"])
