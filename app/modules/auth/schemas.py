from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime


class LinkedIdentity(BaseModel):
    provider: str
    identity_id: Optional[str] = None


class UserProfile(BaseModel):
    id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    identities: List[LinkedIdentity] = []
    updated_at: Optional[datetime] = None


class SessionResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_at: Optional[int] = None
    user_id: str
    email: Optional[str] = None


class SignInRequest(BaseModel):
    redirect_to: Optional[str] = None


class SignInResponse(BaseModel):
    provider: str
    url: str
