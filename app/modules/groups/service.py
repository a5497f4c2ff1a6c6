from supabase import Client
from app.config import settings
from app.config.permissions_config import role_has_permission
from app.core.exceptions import (
    InvalidStateError, NotFoundError, PermissionDeniedError, StorageError, ValidationError
)
from app.database.supabase_client import run_query
from app.modules.groups.schemas import (
    GroupResponse, GroupWithRoleResponse, GroupMemberResponse, Role
)
from typing import List, Optional
import logging

logger = logging.getLogger(__name__)


class MembershipService:
    def __init__(self, supabase: Client, protect_last_admin: Optional[bool] = None):
        self.supabase = supabase
        self.protect_last_admin = (
            settings.protect_last_admin if protect_last_admin is None else protect_last_admin
        )

    def create_group(self, name: str, description: Optional[str], owner_id: str) -> GroupResponse:
        """Create a group and make the owner its admin.

        The two inserts are not wrapped in a transaction. If the membership insert
        fails the group row stays behind and StorageError is raised so the caller
        can report the partial failure.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Group name is required")

        rows = run_query(
            self.supabase.table("groups").insert({
                "name": name,
                "description": description,
                "owner_id": owner_id
            }),
            "create group"
        )
        if not rows:
            raise StorageError("Failed to create group")
        group = rows[0]

        try:
            run_query(
                self.supabase.table("group_members").insert({
                    "group_id": group["id"],
                    "user_id": owner_id,
                    "role": Role.ADMIN.value
                }),
                "add group owner"
            )
        except StorageError as e:
            logger.error(f"Group {group['id']} created but owner membership failed: {e.message}")
            raise StorageError(
                f"Group {group['id']} was created but the owner could not be added as admin: {e.message}",
                code=e.code
            )

        logger.info(f"Group {group['id']} created by {owner_id}")
        return GroupResponse(**group)

    def delete_group(self, group_id: str, caller_id: str) -> bool:
        """Delete a group (admin only). Memberships, invitations and foods go with it via FK cascade."""
        if self.get_role(group_id, caller_id) != Role.ADMIN:
            raise PermissionDeniedError("Only a group admin can delete the group")

        rows = run_query(
            self.supabase.table("groups").delete().eq("id", group_id),
            "delete group"
        )
        logger.info(f"Group {group_id} deleted by {caller_id}")
        return len(rows) > 0

    def get_role(self, group_id: str, user_id: str) -> Role:
        """Role of the user in the group, or Role.NONE. Storage errors degrade to Role.NONE."""
        try:
            rows = run_query(
                self.supabase.table("group_members")
                    .select("role")
                    .eq("group_id", group_id)
                    .eq("user_id", user_id)
                    .limit(1),
                "get role"
            )
        except StorageError:
            return Role.NONE
        if not rows:
            return Role.NONE
        try:
            return Role(rows[0]["role"])
        except ValueError:
            logger.warning(f"Unknown role {rows[0]['role']!r} for user {user_id} in group {group_id}")
            return Role.NONE

    def require_permission(self, group_id: str, user_id: str, permission: str) -> Role:
        role = self.get_role(group_id, user_id)
        if not role_has_permission(role.value, permission):
            raise PermissionDeniedError(
                f"Insufficient role in group. Required: {permission}"
            )
        return role

    def list_groups_for_user(self, user_id: str) -> List[GroupWithRoleResponse]:
        """Groups the user belongs to with the user's role, most recently joined first."""
        try:
            memberships = run_query(
                self.supabase.table("group_members")
                    .select("group_id, role, created_at")
                    .eq("user_id", user_id)
                    .order("created_at", desc=True),
                "list memberships"
            )
            if not memberships:
                return []
            group_ids = [m["group_id"] for m in memberships]
            groups = run_query(
                self.supabase.table("groups").select("*").in_("id", group_ids),
                "list groups"
            )
        except StorageError:
            return []

        groups_by_id = {g["id"]: g for g in groups}
        result = []
        for membership in memberships:
            group = groups_by_id.get(membership["group_id"])
            if not group:
                continue
            result.append(GroupWithRoleResponse(
                **group,
                role=membership["role"],
                joined_at=membership.get("created_at")
            ))
        return result

    def get_group(self, group_id: str, user_id: str) -> GroupWithRoleResponse:
        role = self.require_permission(group_id, user_id, "groups:read")
        rows = run_query(
            self.supabase.table("groups").select("*").eq("id", group_id).limit(1),
            "get group"
        )
        if not rows:
            raise NotFoundError("Group not found")
        return GroupWithRoleResponse(**rows[0], role=role)

    def list_members(self, group_id: str, user_id: str) -> List[GroupMemberResponse]:
        self.require_permission(group_id, user_id, "members:read")
        try:
            rows = self._members(group_id)
        except StorageError:
            return []
        return [GroupMemberResponse(**member) for member in rows]

    def remove_member(self, group_id: str, admin_id: str, target_user_id: str) -> bool:
        """Remove a member (admin only). Removing yourself is leaving and is always allowed."""
        if admin_id == target_user_id:
            return self.leave_group(group_id, admin_id)

        if self.get_role(group_id, admin_id) != Role.ADMIN:
            raise PermissionDeniedError("Only a group admin can remove other members")

        if self.protect_last_admin:
            self._ensure_admin_remains(group_id, target_user_id)

        rows = run_query(
            self.supabase.table("group_members")
                .delete()
                .eq("group_id", group_id)
                .eq("user_id", target_user_id),
            "remove member"
        )
        if not rows:
            raise NotFoundError("Member not found")
        logger.info(f"User {target_user_id} removed from group {group_id} by {admin_id}")
        return True

    def leave_group(self, group_id: str, user_id: str) -> bool:
        if self.protect_last_admin:
            self._ensure_admin_remains(group_id, user_id)

        rows = run_query(
            self.supabase.table("group_members")
                .delete()
                .eq("group_id", group_id)
                .eq("user_id", user_id),
            "leave group"
        )
        logger.info(f"User {user_id} left group {group_id}")
        return len(rows) > 0

    def _members(self, group_id: str) -> List[dict]:
        return run_query(
            self.supabase.table("group_members")
                .select("*")
                .eq("group_id", group_id)
                .order("created_at"),
            "list members"
        )

    def _ensure_admin_remains(self, group_id: str, leaving_user_id: str):
        members = self._members(group_id)
        remaining = [m for m in members if m["user_id"] != leaving_user_id]
        if len(remaining) == len(members) or not remaining:
            return
        if not any(m["role"] == Role.ADMIN.value for m in remaining):
            raise InvalidStateError("The group would be left without an admin")
