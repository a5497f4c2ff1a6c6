"""Tests for Supabase Auth integration and profile upkeep."""

from types import SimpleNamespace

import pytest

from app.core.exceptions import AuthenticationError
from app.modules.auth.service import AuthService


def make_user(user_id="user-1", email="ann@example.com"):
    return SimpleNamespace(
        id=user_id,
        email=email,
        user_metadata={"full_name": "Ann", "avatar_url": "https://img.example.com/ann.png"},
        app_metadata={"provider": "google"},
        identities=[SimpleNamespace(provider="google", identity_id="g-123")],
        created_at="2024-01-01T00:00:00+00:00",
        updated_at=None,
    )


@pytest.fixture
def auth_service(fake_db):
    fake_db.auth.get_user.return_value = SimpleNamespace(user=make_user())
    return AuthService(fake_db)


def test_get_current_user_upserts_profile(auth_service, fake_db):
    """Test a fresh sign-in creates the user's profile with linked identities."""
    user = auth_service.get_current_user("token-1")

    assert user["id"] == "user-1"
    assert user["identities"] == [{"provider": "google", "identity_id": "g-123"}]
    profile = fake_db.rows("profiles")[0]
    assert profile["display_name"] == "Ann"
    assert profile["identities"] == [{"provider": "google", "identity_id": "g-123"}]


def test_get_current_user_is_cached(auth_service, fake_db):
    """Test repeated calls with one token hit Supabase Auth once."""
    auth_service.get_current_user("token-1")
    auth_service.get_current_user("token-1")

    assert fake_db.auth.get_user.call_count == 1
    assert len(fake_db.rows("profiles")) == 1


def test_sign_out_drops_cached_identity(auth_service, fake_db):
    """Test signing out forces the next call to authenticate again."""
    auth_service.get_current_user("token-1")

    assert auth_service.sign_out("token-1") is True
    auth_service.get_current_user("token-1")

    assert fake_db.auth.get_user.call_count == 2


def test_invalid_token(fake_db):
    """Test Supabase Auth errors become AuthenticationError."""
    fake_db.auth.get_user.side_effect = Exception("invalid JWT")
    with pytest.raises(AuthenticationError):
        AuthService(fake_db).get_current_user("bad")


def test_missing_user(fake_db):
    """Test an empty auth response is treated as an invalid token."""
    fake_db.auth.get_user.return_value = SimpleNamespace(user=None)
    with pytest.raises(AuthenticationError):
        AuthService(fake_db).get_current_user("stale")


def test_profile_failure_does_not_block_sign_in(auth_service, fake_db):
    """Test a failing profile upsert still authenticates the user."""
    fake_db.fail("profiles", "upsert")
    assert auth_service.get_current_user("token-1")["email"] == "ann@example.com"


def test_sign_in_returns_provider_url(fake_db):
    """Test sign-in hands back the OAuth URL from Supabase."""
    fake_db.auth.sign_in_with_oauth.return_value = SimpleNamespace(url="https://accounts.example.com/o/auth")

    response = AuthService(fake_db).sign_in("https://food.example.com/callback")

    assert response.url == "https://accounts.example.com/o/auth"
    request = fake_db.auth.sign_in_with_oauth.call_args.args[0]
    assert request["options"] == {"redirect_to": "https://food.example.com/callback"}


def test_current_session(fake_db):
    """Test the session is exposed only to the user it belongs to."""
    fake_db.auth.get_session.return_value = SimpleNamespace(
        access_token="jwt", expires_at=1700000000, user=SimpleNamespace(id="user-1", email="ann@example.com")
    )
    service = AuthService(fake_db)

    session = service.get_current_session("user-1")

    assert session.user_id == "user-1"
    assert session.access_token == "jwt"
    assert service.get_current_session("user-2") is None

    fake_db.auth.get_session.return_value = None
    assert service.get_current_session("user-1") is None


def test_subscribe_registers_callback(fake_db):
    """Test auth state listeners are passed through to Supabase."""
    def callback(event, session):
        return None

    AuthService(fake_db).subscribe(callback)

    fake_db.auth.on_auth_state_change.assert_called_once_with(callback)
