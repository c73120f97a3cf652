# Role-Based Access Control for the crowdfunding platform
# This module defines permissions per user role

from enum import Enum
from typing import List, Set

from database.models import UserRole


class Permission(str, Enum):
    """Fine-grained permissions for the platform."""

    # Operator / supporter permissions
    MANAGE_OWN_CAMPAIGNS = "manage_own_campaigns"
    PLEDGE = "pledge"
    VIEW_PUBLIC_CAMPAIGNS = "view_public_campaigns"

    # Staff permissions
    VIEW_ALL_CAMPAIGNS = "view_all_campaigns"
    REVIEW_CAMPAIGNS = "review_campaigns"
    SEND_FEEDBACK = "send_feedback"
    COMPLETE_CAMPAIGNS = "complete_campaigns"
    MANAGE_PAYOUTS = "manage_payouts"


# Role to permissions mapping
ROLE_PERMISSIONS: dict[UserRole, Set[Permission]] = {
    UserRole.USER: {
        Permission.MANAGE_OWN_CAMPAIGNS,
        Permission.PLEDGE,
        Permission.VIEW_PUBLIC_CAMPAIGNS,
    },

    UserRole.STAFF: {
        # Staff has ALL permissions
        *Permission.__members__.values()
    },
}


def get_permissions_for_role(role: UserRole) -> Set[Permission]:
    """Get all permissions for a given role."""
    return ROLE_PERMISSIONS.get(role, set())


def has_permission(role: UserRole, permission: Permission) -> bool:
    """Check if a role has a specific permission."""
    return permission in get_permissions_for_role(role)


def has_any_permission(role: UserRole, permissions: List[Permission]) -> bool:
    """Check if a role has any of the given permissions."""
    role_permissions = get_permissions_for_role(role)
    return any(p in role_permissions for p in permissions)
