"""
Group roles and permissions configuration
Defines the role ordering inside a group and the permissions each role holds.
Every group membership carries exactly one of these roles.
"""

from typing import Dict, List, Optional

ADMIN = "admin"
MEMBER = "member"
READONLY = "readonly"
NONE = "none"

# Highest first
ROLE_ORDER = [ADMIN, MEMBER, READONLY]

# Define resources and their actions
MODULES = {
    "groups": {
        "resource": "groups",
        "actions": ["read", "delete"],
        "description": "Group management"
    },
    "members": {
        "resource": "members",
        "actions": ["read", "remove"],
        "description": "Group membership management"
    },
    "invitations": {
        "resource": "invitations",
        "actions": ["read", "create", "revoke"],
        "description": "Invitation links into a group"
    },
    "foods": {
        "resource": "foods",
        "actions": ["read", "create", "update", "delete", "import"],
        "description": "Food options owned by a group"
    },
    "ratings": {
        "resource": "ratings",
        "actions": ["read", "write"],
        "description": "Shared star rating per food"
    },
}

# Actions granted per role; "*" means every action of the resource
ROLE_GRANTS = {
    ADMIN: {
        "groups": ["*"],
        "members": ["*"],
        "invitations": ["*"],
        "foods": ["*"],
        "ratings": ["*"],
    },
    MEMBER: {
        "groups": ["read"],
        "members": ["read"],
        "invitations": ["read", "create"],
        "foods": ["*"],
        "ratings": ["*"],
    },
    READONLY: {
        "groups": ["read"],
        "members": ["read"],
        "invitations": ["read"],
        "foods": ["read"],
        "ratings": ["read"],
    },
}


def get_role_permissions(role: str) -> List[str]:
    """Permission names ("resource:action") held by a role. Unknown roles hold nothing."""
    grants = ROLE_GRANTS.get(role)
    if not grants:
        return []
    permissions = []
    for module_name, actions in grants.items():
        module_actions = MODULES[module_name]["actions"]
        if "*" in actions:
            actions = module_actions
        for action in actions:
            if action in module_actions:
                permissions.append(f"{MODULES[module_name]['resource']}:{action}")
    return sorted(permissions)


def role_has_permission(role: Optional[str], permission: str) -> bool:
    if not role:
        return False
    return permission in ROLE_PERMISSIONS.get(role, [])


def role_at_least(role: Optional[str], minimum: str) -> bool:
    """True if `role` ranks at or above `minimum` (admin > member > readonly)."""
    if role not in ROLE_ORDER or minimum not in ROLE_ORDER:
        return False
    return ROLE_ORDER.index(role) <= ROLE_ORDER.index(minimum)


ROLE_PERMISSIONS: Dict[str, List[str]] = {role: get_role_permissions(role) for role in ROLE_ORDER}
