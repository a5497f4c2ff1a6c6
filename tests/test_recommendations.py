"""Tests for random and rating-weighted picks."""

import random
from collections import Counter

import pytest

from app.core.exceptions import NotFoundError, PermissionDeniedError
from app.modules.foods.schemas import FoodQuery
from app.modules.recommendations.engine import pick_random, pick_weighted_by_rating
from app.modules.recommendations.schemas import PickMode
from app.modules.recommendations.service import RecommendationService
from tests.conftest import MEMBER_ID, OUTSIDER_ID, READER_ID


class FixedRandom:
    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


CANDIDATES = [{"id": "a"}, {"id": "b"}, {"id": "c"}]


@pytest.fixture
def recommendations(fake_db, food_store, ratings):
    return RecommendationService(fake_db, food_store, ratings, rng=random.Random(7))


def test_pick_random_empty():
    """Test there is nothing to pick from an empty list."""
    assert pick_random([]) is None


def test_pick_random_returns_a_candidate():
    """Test the pick is always one of the candidates."""
    rng = random.Random(1)
    for _ in range(100):
        assert pick_random(CANDIDATES, rng=rng) in CANDIDATES


def test_pick_random_maps_draw_to_index():
    """Test the draw selects floor(r * n), clamped to the last element."""
    assert pick_random(CANDIDATES, rng=FixedRandom(0.0))["id"] == "a"
    assert pick_random(CANDIDATES, rng=FixedRandom(0.5))["id"] == "b"
    assert pick_random(CANDIDATES, rng=FixedRandom(0.9999))["id"] == "c"
    assert pick_random(CANDIDATES, rng=FixedRandom(1.0))["id"] == "c"


def test_weighted_pick_without_ratings():
    """Test no pick is made when nothing is rated."""
    assert pick_weighted_by_rating(CANDIDATES, {}) is None
    assert pick_weighted_by_rating(CANDIDATES, {"a": 0}) is None
    assert pick_weighted_by_rating([], {"a": 5}) is None


def test_weighted_pick_only_returns_rated():
    """Test unrated candidates are never picked."""
    rng = random.Random(3)
    picks = {pick_weighted_by_rating(CANDIDATES, {"b": 2}, rng=rng)["id"] for _ in range(200)}
    assert picks == {"b"}


def test_weighted_pick_walks_the_wheel():
    """Test the draw lands on the slice it falls into."""
    ratings = {"a": 1, "b": 3}
    assert pick_weighted_by_rating(CANDIDATES, ratings, rng=FixedRandom(0.0))["id"] == "a"
    assert pick_weighted_by_rating(CANDIDATES, ratings, rng=FixedRandom(0.25))["id"] == "a"
    assert pick_weighted_by_rating(CANDIDATES, ratings, rng=FixedRandom(0.26))["id"] == "b"


def test_weighted_pick_overshoot_falls_back_to_last():
    """Test a draw past the end of the wheel picks the last rated candidate."""
    assert pick_weighted_by_rating(CANDIDATES, {"a": 1, "b": 1}, rng=FixedRandom(1.5))["id"] == "b"


def test_weighted_pick_frequencies_follow_ratings():
    """Test pick frequency is proportional to rating."""
    rng = random.Random(42)
    ratings = {"a": 1, "b": 4}
    trials = 20000

    counts = Counter(pick_weighted_by_rating(CANDIDATES, ratings, rng=rng)["id"] for _ in range(trials))

    assert counts["c"] == 0
    assert counts["b"] / trials == pytest.approx(0.8, abs=0.02)


def test_weighted_pick_accepts_objects(food_store, group):
    """Test candidates may be models with an id attribute."""
    food = food_store.create(group.id, {"name": "Pho"}, MEMBER_ID)
    assert pick_weighted_by_rating([food], {food.id: 3}).id == food.id


def test_roll_records_history(recommendations, food_store, group, fake_db):
    """Test a roll picks a food and records it."""
    food = food_store.create(group.id, {"name": "Pho"}, MEMBER_ID)

    result = recommendations.roll(group.id, READER_ID)

    assert result.mode == PickMode.ROLL
    assert result.food.id == food.id
    assert result.candidates == 1
    history = recommendations.list_history(group.id, READER_ID)
    assert [(h.food_id, h.mode) for h in history] == [(food.id, PickMode.ROLL)]


def test_roll_respects_filters(recommendations, food_store, group):
    """Test only foods matching the query are rolled."""
    food_store.create(group.id, {"name": "Pho", "flavor": "savory"}, MEMBER_ID)
    cake = food_store.create(group.id, {"name": "Cake", "flavor": "sweet"}, MEMBER_ID)

    for _ in range(10):
        assert recommendations.roll(group.id, MEMBER_ID, FoodQuery(flavor="sweet")).food.id == cake.id


def test_roll_with_no_foods(recommendations, group):
    """Test rolling an empty list is reported as not found."""
    with pytest.raises(NotFoundError):
        recommendations.roll(group.id, MEMBER_ID)


def test_roll_requires_membership(recommendations, food_store, group):
    """Test strangers cannot roll in a group."""
    food_store.create(group.id, {"name": "Pho"}, MEMBER_ID)
    with pytest.raises(PermissionDeniedError):
        recommendations.roll(group.id, OUTSIDER_ID)


def test_recommend_needs_ratings(recommendations, food_store, group):
    """Test recommending without any ratings is reported as not found."""
    food_store.create(group.id, {"name": "Pho"}, MEMBER_ID)
    with pytest.raises(NotFoundError):
        recommendations.recommend(group.id, MEMBER_ID)


def test_recommend_picks_rated_food(recommendations, food_store, ratings, group):
    """Test the recommendation is a rated food and carries its rating."""
    food_store.create(group.id, {"name": "Pho"}, MEMBER_ID)
    sushi = food_store.create(group.id, {"name": "Sushi"}, MEMBER_ID)
    ratings.set_rating(sushi.id, 4, MEMBER_ID)

    result = recommendations.recommend(group.id, READER_ID)

    assert result.mode == PickMode.RECOMMEND
    assert result.food.id == sushi.id
    assert result.food.rating == 4
    assert result.candidates == 2


def test_pick_survives_history_failure(recommendations, food_store, group, fake_db):
    """Test a failed history insert does not fail the pick."""
    food = food_store.create(group.id, {"name": "Pho"}, MEMBER_ID)
    fake_db.fail("recommend_history", "insert")

    assert recommendations.roll(group.id, MEMBER_ID).food.id == food.id
    assert recommendations.list_history(group.id, MEMBER_ID) == []
