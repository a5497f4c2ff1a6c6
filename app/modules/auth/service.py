import hashlib
import time
from datetime import datetime, timezone
from supabase import Client
from app.modules.auth.schemas import LinkedIdentity, SessionResponse, SignInResponse, UserProfile
from app.config.settings import settings
from app.core.exceptions import AuthenticationError, StorageError
from app.database.supabase_client import run_query
from typing import Any, Callable, Dict, List, Optional
import logging

logger = logging.getLogger(__name__)

# In-memory cache for get_current_user to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500


def clear_auth_cache():
    _AUTH_USER_CACHE.clear()


def _identities(user: Any) -> List[Dict[str, Any]]:
    identities = []
    for identity in getattr(user, "identities", None) or []:
        provider = getattr(identity, "provider", None)
        if provider:
            identities.append({
                "provider": provider,
                "identity_id": getattr(identity, "identity_id", None) or getattr(identity, "id", None)
            })
    return identities


class AuthService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Get current user details from Supabase Auth token. Uses short TTL cache to reduce auth API calls.

        Each cache miss is a fresh authentication and refreshes the user's profile row.
        """
        cache_key = hashlib.sha256(token.encode()).hexdigest()
        now = time.monotonic()
        if cache_key in _AUTH_USER_CACHE:
            user_data, expiry = _AUTH_USER_CACHE[cache_key]
            if now < expiry:
                return user_data
            del _AUTH_USER_CACHE[cache_key]

        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise AuthenticationError("Invalid or expired token")
            raise AuthenticationError("Authentication failed")
        if not user_response or not user_response.user:
            raise AuthenticationError("Invalid or expired token")

        user = user_response.user
        user_data = {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "app_metadata": user.app_metadata or {},
            "identities": _identities(user),
            "created_at": user.created_at,
            "updated_at": user.updated_at
        }
        try:
            self.upsert_profile(user_data)
        except StorageError as e:
            logger.warning(f"Profile upsert failed for user {user.id}: {e.message}")

        if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
            _AUTH_USER_CACHE[cache_key] = (user_data, now + _AUTH_CACHE_TTL_SEC)
        return user_data

    def upsert_profile(self, user_data: Dict[str, Any]) -> UserProfile:
        metadata = user_data.get("user_metadata") or {}
        rows = run_query(
            self.supabase.table("profiles").upsert({
                "id": user_data["id"],
                "email": user_data.get("email"),
                "display_name": metadata.get("full_name") or metadata.get("name"),
                "avatar_url": metadata.get("avatar_url") or metadata.get("picture"),
                "identities": user_data.get("identities") or [],
                "updated_at": datetime.now(timezone.utc).isoformat()
            }, on_conflict="id"),
            "upsert profile"
        )
        if not rows:
            raise StorageError("Failed to save profile")
        profile = dict(rows[0])
        profile["identities"] = [LinkedIdentity(**i) for i in profile.get("identities") or []]
        return UserProfile(**profile)

    def get_current_session(self, user_id: str) -> Optional[SessionResponse]:
        """The client's session if it belongs to user_id, otherwise None."""
        try:
            session = self.supabase.auth.get_session()
        except Exception as e:
            logger.warning(f"Could not read auth session: {str(e)}")
            return None
        if not session or not session.user:
            return None
        if session.user.id != user_id:
            logger.warning(f"Session requested by {user_id} belongs to another user; withholding it")
            return None
        return SessionResponse(
            access_token=session.access_token,
            expires_at=session.expires_at,
            user_id=session.user.id,
            email=session.user.email
        )

    def sign_in(self, redirect_to: Optional[str] = None) -> SignInResponse:
        """Start an OAuth sign-in and return the provider URL to send the user to."""
        options = {}
        redirect_to = redirect_to or settings.oauth_redirect_url
        if redirect_to:
            options["redirect_to"] = redirect_to
        try:
            response = self.supabase.auth.sign_in_with_oauth({
                "provider": settings.oauth_provider,
                "options": options
            })
        except Exception as e:
            raise AuthenticationError(f"Sign-in failed: {str(e)}")
        return SignInResponse(provider=settings.oauth_provider, url=response.url)

    def sign_out(self, token: Optional[str] = None) -> bool:
        """Logout user using Supabase Auth"""
        if token:
            _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)
        try:
            # Supabase Auth tokens are stateless JWTs, so logout is mainly client-side
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign-out failed: {str(e)}")
            return False

    def subscribe(self, callback: Callable[[str, Any], None]):
        """Register callback(event, session) for auth state changes. Returns the subscription."""
        return self.supabase.auth.on_auth_state_change(callback)
