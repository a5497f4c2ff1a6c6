from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_user, get_membership_service
from app.modules.groups.schemas import (
    GroupCreate, GroupResponse, GroupWithRoleResponse, GroupMemberResponse, RoleResponse
)
from app.modules.groups.service import MembershipService
from typing import List, Dict

router = APIRouter(prefix="/groups", tags=["groups"])


@router.post("", response_model=GroupResponse, status_code=201)
def create_group(
    group_data: GroupCreate,
    user_data: Dict = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service)
):
    """Create a new group; the creator becomes its admin"""
    return service.create_group(group_data.name, group_data.description, user_data["id"])


@router.get("", response_model=List[GroupWithRoleResponse])
def list_groups(
    user_data: Dict = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service)
):
    """List groups the user is a member of, most recently joined first"""
    return service.list_groups_for_user(user_data["id"])


@router.get("/{group_id}", response_model=GroupWithRoleResponse)
def get_group(
    group_id: str,
    user_data: Dict = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service)
):
    """Get group by ID (only if user is a member)"""
    return service.get_group(group_id, user_data["id"])


@router.delete("/{group_id}", status_code=204)
def delete_group(
    group_id: str,
    user_data: Dict = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service)
):
    """Delete group (group admin only)"""
    service.delete_group(group_id, user_data["id"])
    return None


@router.get("/{group_id}/role", response_model=RoleResponse)
def get_my_role(
    group_id: str,
    user_data: Dict = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service)
):
    """Caller's role in the group ("none" when not a member)"""
    return RoleResponse(
        group_id=group_id,
        user_id=user_data["id"],
        role=service.get_role(group_id, user_data["id"])
    )


@router.get("/{group_id}/members", response_model=List[GroupMemberResponse])
def list_members(
    group_id: str,
    user_data: Dict = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service)
):
    """List all members of a group (only if user is a member)"""
    return service.list_members(group_id, user_data["id"])


@router.delete("/{group_id}/members/me", status_code=204)
def leave_group(
    group_id: str,
    user_data: Dict = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service)
):
    """Leave the group"""
    service.leave_group(group_id, user_data["id"])
    return None


@router.delete("/{group_id}/members/{user_id}", status_code=204)
def remove_member(
    group_id: str,
    user_id: str,
    current_user: Dict = Depends(get_current_user),
    service: MembershipService = Depends(get_membership_service)
):
    """Remove a member from the group (group admin, or yourself)"""
    service.remove_member(group_id, current_user["id"], user_id)
    return None
