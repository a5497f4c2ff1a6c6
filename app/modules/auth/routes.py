from fastapi import APIRouter, Depends
from app.core.dependencies import get_auth_service, get_current_token, get_current_user
from app.modules.auth.schemas import SessionResponse, SignInRequest, SignInResponse
from app.modules.auth.service import AuthService
from typing import Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])


@router.get("/me")
def get_me(current_user: Dict = Depends(get_current_user)):
    """Get current authenticated user"""
    return current_user


@router.get("/session", response_model=Optional[SessionResponse])
def get_session(
    current_user: Dict = Depends(get_current_user),
    service: AuthService = Depends(get_auth_service)
):
    """Session held by the backend client, only when it belongs to the caller"""
    return service.get_current_session(current_user["id"])


@router.post("/sign-in", response_model=SignInResponse)
def sign_in(
    request: SignInRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Get the OAuth provider URL to start sign-in"""
    return service.sign_in(request.redirect_to)


@router.post("/sign-out", status_code=200)
def sign_out(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and drop the cached identity for this token"""
    service.sign_out(token)
    return {"message": "Logged out successfully"}
