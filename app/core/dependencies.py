"""
Core dependencies for route protection and service construction
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.database.supabase_client import get_supabase
from app.modules.auth.service import AuthService
from app.modules.foods.service import FoodStore
from app.modules.geo.service import GeoLocator
from app.modules.groups.service import MembershipService
from app.modules.invitations.service import InvitationService
from app.modules.ratings.service import RatingService
from app.modules.recommendations.service import RecommendationService
from supabase import Client
from functools import lru_cache
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token"""
    return auth_service.get_current_user(token)


@lru_cache
def get_geolocator() -> GeoLocator:
    # one pooled HTTP client for the process
    return GeoLocator()


def get_membership_service(supabase: Client = Depends(get_supabase)) -> MembershipService:
    return MembershipService(supabase)


def get_invitation_service(
    supabase: Client = Depends(get_supabase),
    memberships: MembershipService = Depends(get_membership_service)
) -> InvitationService:
    return InvitationService(supabase, memberships)


def get_food_store(
    supabase: Client = Depends(get_supabase),
    geolocator: GeoLocator = Depends(get_geolocator),
    memberships: MembershipService = Depends(get_membership_service)
) -> FoodStore:
    return FoodStore(supabase, geolocator, memberships)


def get_rating_service(
    supabase: Client = Depends(get_supabase),
    memberships: MembershipService = Depends(get_membership_service)
) -> RatingService:
    return RatingService(supabase, memberships)


def get_recommendation_service(
    supabase: Client = Depends(get_supabase),
    foods: FoodStore = Depends(get_food_store),
    ratings: RatingService = Depends(get_rating_service)
) -> RecommendationService:
    return RecommendationService(supabase, foods, ratings)
