from enum import Enum
from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class Role(str, Enum):
    ADMIN = "admin"
    MEMBER = "member"
    READONLY = "readonly"
    NONE = "none"


class GroupCreate(BaseModel):
    name: str
    description: Optional[str] = None


class GroupResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    owner_id: str
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class GroupWithRoleResponse(GroupResponse):
    role: Role
    joined_at: Optional[datetime] = None


class GroupMemberResponse(BaseModel):
    id: Optional[str] = None
    group_id: str
    user_id: str
    role: Role
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class RoleResponse(BaseModel):
    group_id: str
    user_id: str
    role: Role
