from enum import Enum
from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from datetime import datetime

from app.modules.groups.schemas import Role


class InvitationStatus(str, Enum):
    ACTIVE = "active"
    USED = "used"
    REVOKED = "revoked"


class InvitationCreate(BaseModel):
    role: Role = Role.MEMBER
    email: Optional[EmailStr] = None
    max_uses: Optional[int] = Field(default=None, ge=1)


class InvitationResponse(BaseModel):
    id: str
    group_id: str
    token: str
    role: Role
    email: Optional[str] = None
    max_uses: Optional[int] = None
    used_count: int = 0
    status: InvitationStatus
    created_by: str
    created_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    link: Optional[str] = None

    class Config:
        from_attributes = True


class InvitationAcceptResponse(BaseModel):
    group_id: str
    user_id: str
    role: Role
    invitation_status: InvitationStatus
