from fastapi import APIRouter, Depends
from app.core.dependencies import get_current_user, get_invitation_service
from app.modules.invitations.schemas import (
    InvitationAcceptResponse, InvitationCreate, InvitationResponse
)
from app.modules.invitations.service import InvitationService
from typing import List, Dict

router = APIRouter(tags=["invitations"])


@router.post("/groups/{group_id}/invitations", response_model=InvitationResponse, status_code=201)
def create_invitation(
    group_id: str,
    invitation_data: InvitationCreate,
    user_data: Dict = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service)
):
    """Create an invitation link granting a role in the group"""
    return service.create_invitation(
        group_id,
        invitation_data.role,
        user_data["id"],
        email=invitation_data.email,
        max_uses=invitation_data.max_uses
    )


@router.get("/groups/{group_id}/invitations", response_model=List[InvitationResponse])
def list_invitations(
    group_id: str,
    user_data: Dict = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service)
):
    """List the group's invitations (members only)"""
    return service.list_invitations(group_id, user_data["id"])


@router.post("/invitations/{token}/accept", response_model=InvitationAcceptResponse)
def accept_invitation(
    token: str,
    user_data: Dict = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service)
):
    """Redeem an invitation token for the current user"""
    return service.accept_invitation(token, user_data["id"], user_data.get("email"))


@router.post("/invitations/{invitation_id}/revoke", response_model=InvitationResponse)
def revoke_invitation(
    invitation_id: str,
    user_data: Dict = Depends(get_current_user),
    service: InvitationService = Depends(get_invitation_service)
):
    """Revoke an invitation (group admin or its creator)"""
    return service.revoke_invitation(invitation_id, user_data["id"])
