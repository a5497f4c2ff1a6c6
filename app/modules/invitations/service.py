import re
import secrets
from datetime import datetime, timezone
from supabase import Client
from app.config import settings
from app.config.permissions_config import ROLE_ORDER, role_at_least
from app.core.exceptions import (
    AlreadyMemberError, EmailMismatchError, ExhaustedError, InvalidStateError,
    NotFoundError, PermissionDeniedError, StorageError, ValidationError
)
from app.database.supabase_client import is_unique_violation, run_query
from app.modules.groups.schemas import Role
from app.modules.groups.service import MembershipService
from app.modules.invitations.schemas import (
    InvitationAcceptResponse, InvitationResponse, InvitationStatus
)
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)

TOKEN_BYTES = 16  # 128 bits
MAX_CLAIM_ATTEMPTS = 3
INVITE_LINK_PATTERN = re.compile(r"#/invite/([A-Za-z0-9_-]+)")


def generate_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def build_invite_link(token: str, base_url: Optional[str] = None) -> str:
    base_url = (base_url if base_url is not None else settings.app_base_url).rstrip("/")
    return f"{base_url}/#/invite/{token}"


def parse_invite_link(link: str) -> Optional[str]:
    """Extract the token from an invitation link (or a bare `#/invite/<token>` fragment)."""
    if not link:
        return None
    match = INVITE_LINK_PATTERN.search(link)
    return match.group(1) if match else None


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class InvitationService:
    def __init__(
        self,
        supabase: Client,
        memberships: Optional[MembershipService] = None,
        min_role: Optional[str] = None,
    ):
        self.supabase = supabase
        self.memberships = memberships or MembershipService(supabase)
        self.min_role = min_role if min_role is not None else settings.invitation_min_role

    def create_invitation(
        self,
        group_id: str,
        role: str,
        creator_id: str,
        email: Optional[str] = None,
        max_uses: Optional[int] = None,
    ) -> InvitationResponse:
        """Issue an invitation granting `role` in the group.

        Any authenticated caller may invite unless `invitation_min_role` is configured.
        """
        role = role.value if isinstance(role, Role) else role
        if role not in ROLE_ORDER:
            raise ValidationError(f"Invalid role: {role}")
        if max_uses is not None and max_uses < 1:
            raise ValidationError("max_uses must be at least 1")
        email = (email or "").strip() or None

        if self.min_role:
            caller_role = self.memberships.get_role(group_id, creator_id)
            if not role_at_least(caller_role.value, self.min_role):
                raise PermissionDeniedError(
                    f"Creating invitations requires at least the {self.min_role} role"
                )

        rows = run_query(
            self.supabase.table("invitations").insert({
                "group_id": group_id,
                "token": generate_token(),
                "role": role,
                "email": email,
                "max_uses": max_uses,
                "used_count": 0,
                "status": InvitationStatus.ACTIVE.value,
                "created_by": creator_id
            }),
            "create invitation"
        )
        if not rows:
            raise StorageError("Failed to create invitation")

        logger.info(f"Invitation {rows[0]['id']} created for group {group_id} by {creator_id}")
        return self._to_response(rows[0])

    def get_invitation(self, token: str) -> InvitationResponse:
        return self._to_response(self._get_by_token(token))

    def list_invitations(self, group_id: str, user_id: str) -> List[InvitationResponse]:
        self.memberships.require_permission(group_id, user_id, "invitations:read")
        try:
            rows = run_query(
                self.supabase.table("invitations")
                    .select("*")
                    .eq("group_id", group_id)
                    .order("created_at", desc=True),
                "list invitations"
            )
        except StorageError:
            return []
        return [self._to_response(row) for row in rows]

    def accept_invitation(self, token: str, user_id: str, user_email: Optional[str]) -> InvitationAcceptResponse:
        """Redeem an invitation and add the user to its group with the granted role.

        A use slot is claimed first with a compare-and-swap on used_count, then the
        membership is inserted. If the insert fails the slot is handed back.
        """
        for _ in range(MAX_CLAIM_ATTEMPTS):
            invitation = self._get_by_token(token)
            self._check_redeemable(invitation, user_email)
            claimed = self._claim_use(invitation)
            if claimed:
                break
            logger.info(f"Invitation {invitation['id']} changed during redemption, re-reading")
        else:
            raise InvalidStateError("Invitation is being redeemed concurrently, please retry")

        try:
            run_query(
                self.supabase.table("group_members").insert({
                    "group_id": invitation["group_id"],
                    "user_id": user_id,
                    "role": invitation["role"]
                }),
                "add member from invitation"
            )
        except StorageError as e:
            self._release_use(invitation, claimed)
            if is_unique_violation(e):
                raise AlreadyMemberError()
            raise

        status = InvitationStatus(claimed["status"])
        if status == InvitationStatus.USED:
            logger.info(f"Invitation {invitation['id']} exhausted after {claimed['used_count']} use(s)")
        logger.info(f"User {user_id} joined group {invitation['group_id']} via invitation {invitation['id']}")
        return InvitationAcceptResponse(
            group_id=invitation["group_id"],
            user_id=user_id,
            role=invitation["role"],
            invitation_status=status
        )

    def revoke_invitation(self, invitation_id: str, user_id: str) -> InvitationResponse:
        """Revoke an invitation. Allowed for group admins and the invitation's creator."""
        rows = run_query(
            self.supabase.table("invitations").select("*").eq("id", invitation_id).limit(1),
            "get invitation"
        )
        if not rows:
            raise NotFoundError("Invitation not found")
        invitation = rows[0]

        if invitation["created_by"] != user_id:
            self.memberships.require_permission(invitation["group_id"], user_id, "invitations:revoke")
        if invitation["status"] == InvitationStatus.REVOKED.value:
            raise InvalidStateError("Invitation is already revoked")

        updated = run_query(
            self.supabase.table("invitations")
                .update({"status": InvitationStatus.REVOKED.value})
                .eq("id", invitation_id)
                .in_("status", [InvitationStatus.ACTIVE.value, InvitationStatus.USED.value]),
            "revoke invitation"
        )
        if not updated:
            raise InvalidStateError("Invitation is already revoked")
        logger.info(f"Invitation {invitation_id} revoked by {user_id}")
        return self._to_response(updated[0])

    def _get_by_token(self, token: str) -> dict:
        if not token:
            raise NotFoundError("Invitation not found")
        rows = run_query(
            self.supabase.table("invitations").select("*").eq("token", token).limit(1),
            "get invitation"
        )
        if not rows:
            raise NotFoundError("Invitation not found")
        return rows[0]

    def _check_redeemable(self, invitation: dict, user_email: Optional[str]):
        status = invitation.get("status")
        if status not in (InvitationStatus.ACTIVE.value, InvitationStatus.USED.value):
            raise InvalidStateError(f"Invitation is {status}")

        restricted_to = invitation.get("email")
        if restricted_to and restricted_to.strip().lower() != (user_email or "").strip().lower():
            raise EmailMismatchError()

        max_uses = invitation.get("max_uses")
        used_count = invitation.get("used_count") or 0
        if status == InvitationStatus.USED.value or (max_uses is not None and used_count >= max_uses):
            raise ExhaustedError()

    def _claim_use(self, invitation: dict) -> Optional[dict]:
        used_count = invitation.get("used_count") or 0
        new_count = used_count + 1
        max_uses = invitation.get("max_uses")
        status = InvitationStatus.USED if max_uses is not None and new_count >= max_uses else InvitationStatus.ACTIVE

        rows = run_query(
            self.supabase.table("invitations")
                .update({
                    "used_count": new_count,
                    "status": status.value,
                    "last_used_at": _now()
                })
                .eq("id", invitation["id"])
                .eq("status", InvitationStatus.ACTIVE.value)
                .eq("used_count", used_count),
            "claim invitation use"
        )
        return rows[0] if rows else None

    def _release_use(self, invitation: dict, claimed: dict):
        try:
            rows = run_query(
                self.supabase.table("invitations")
                    .update({
                        "used_count": invitation.get("used_count") or 0,
                        "status": InvitationStatus.ACTIVE.value,
                        "last_used_at": invitation.get("last_used_at")
                    })
                    .eq("id", invitation["id"])
                    .eq("status", claimed["status"])
                    .eq("used_count", claimed["used_count"]),
                "release invitation use"
            )
            if not rows:
                logger.warning(
                    f"Invitation {invitation['id']} changed before its claimed use was released; it stays over-counted"
                )
        except StorageError as e:
            # Leaves the invitation over-counted, which only ever denies a use
            logger.error(f"Could not release claimed use of invitation {invitation['id']}: {e.message}")

    def _to_response(self, row: dict) -> InvitationResponse:
        return InvitationResponse(**row, link=build_invite_link(row["token"]))
