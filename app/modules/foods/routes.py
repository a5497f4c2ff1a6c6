from fastapi import APIRouter, Body, Depends, Query
from app.core.dependencies import get_current_user, get_food_store, get_rating_service
from app.core.exceptions import ValidationError
from app.modules.foods.pipeline import apply_query
from app.modules.foods.schemas import (
    FoodCreate, FoodExport, FoodQuery, FoodResponse, FoodUpdate, ImportResult
)
from app.modules.foods.service import FoodStore, find_duplicate_name
from app.modules.ratings.service import RatingService
from typing import Annotated, Any, Dict, List, Union

router = APIRouter(tags=["foods"])


def _reject_duplicate(store: FoodStore, group_id: str, name: str, exclude_id: str = None):
    if find_duplicate_name(store.list(group_id), name, exclude_id):
        raise ValidationError("A food with this name already exists in the group")


@router.get("/groups/{group_id}/foods", response_model=List[FoodResponse])
def list_foods(
    group_id: str,
    query: Annotated[FoodQuery, Query()],
    user_data: Dict = Depends(get_current_user),
    store: FoodStore = Depends(get_food_store),
    ratings: RatingService = Depends(get_rating_service)
):
    """List the group's foods filtered, sorted and annotated with distance and rating"""
    store.memberships.require_permission(group_id, user_data["id"], "foods:read")
    foods = apply_query(store.list(group_id), query)
    stars = ratings.list_ratings(group_id)
    return [food.model_copy(update={"rating": stars.get(food.id)}) for food in foods]


@router.post("/groups/{group_id}/foods", response_model=FoodResponse, status_code=201)
def create_food(
    group_id: str,
    food_data: FoodCreate,
    user_data: Dict = Depends(get_current_user),
    store: FoodStore = Depends(get_food_store)
):
    """Add a food to the group (admin or member)"""
    store.memberships.require_permission(group_id, user_data["id"], "foods:create")
    _reject_duplicate(store, group_id, food_data.name)
    return store.create(group_id, food_data, user_data["id"])


@router.get("/foods/{food_id}", response_model=FoodResponse)
def get_food(
    food_id: str,
    user_data: Dict = Depends(get_current_user),
    store: FoodStore = Depends(get_food_store)
):
    food = store.get(food_id)
    store.memberships.require_permission(food.group_id, user_data["id"], "foods:read")
    return food


@router.patch("/foods/{food_id}", response_model=FoodResponse)
def update_food(
    food_id: str,
    food_data: FoodUpdate,
    user_data: Dict = Depends(get_current_user),
    store: FoodStore = Depends(get_food_store)
):
    """Edit a food (admin or member)"""
    if food_data.name is not None:
        food = store.get(food_id)
        store.memberships.require_permission(food.group_id, user_data["id"], "foods:update")
        _reject_duplicate(store, food.group_id, food_data.name, exclude_id=food.id)
    return store.update(food_id, food_data, user_data["id"])


@router.delete("/foods/{food_id}", status_code=204)
def delete_food(
    food_id: str,
    user_data: Dict = Depends(get_current_user),
    store: FoodStore = Depends(get_food_store)
):
    """Delete a food and its rating (admin or member)"""
    store.delete(food_id, user_data["id"])
    return None


@router.get("/groups/{group_id}/export", response_model=FoodExport)
def export_foods(
    group_id: str,
    user_data: Dict = Depends(get_current_user),
    store: FoodStore = Depends(get_food_store)
):
    """Export the group's foods and ratings"""
    return store.export_data(group_id, user_data["id"])


@router.post("/groups/{group_id}/import", response_model=ImportResult)
def import_foods(
    group_id: str,
    payload: Union[Dict[str, Any], List[Dict[str, Any]]] = Body(...),
    user_data: Dict = Depends(get_current_user),
    store: FoodStore = Depends(get_food_store)
):
    """Import foods and ratings from an export"""
    return ImportResult(imported=store.import_data(group_id, payload, user_data["id"]))
