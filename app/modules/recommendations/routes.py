from fastapi import APIRouter, Depends, Query
from app.core.dependencies import get_current_user, get_recommendation_service
from app.modules.foods.schemas import FoodQuery
from app.modules.recommendations.schemas import HistoryEntry, PickResponse
from app.modules.recommendations.service import RecommendationService
from typing import Annotated, Dict, List

router = APIRouter(prefix="/groups/{group_id}", tags=["recommendations"])


@router.post("/roll", response_model=PickResponse)
def roll(
    group_id: str,
    query: Annotated[FoodQuery, Query()],
    user_data: Dict = Depends(get_current_user),
    service: RecommendationService = Depends(get_recommendation_service)
):
    """Dice roll: uniform pick among foods matching the filters"""
    return service.roll(group_id, user_data["id"], query)


@router.post("/recommend", response_model=PickResponse)
def recommend(
    group_id: str,
    query: Annotated[FoodQuery, Query()],
    user_data: Dict = Depends(get_current_user),
    service: RecommendationService = Depends(get_recommendation_service)
):
    """Pick weighted by rating among rated foods matching the filters"""
    return service.recommend(group_id, user_data["id"], query)


@router.get("/history", response_model=List[HistoryEntry])
def history(
    group_id: str,
    limit: int = Query(default=20, ge=1, le=100),
    user_data: Dict = Depends(get_current_user),
    service: RecommendationService = Depends(get_recommendation_service)
):
    """Most recent picks in the group"""
    return service.list_history(group_id, user_data["id"], limit)
