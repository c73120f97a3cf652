# Auth module for the crowdfunding platform
# Provides role-based access control and authentication dependencies

from auth.roles import (
    Permission,
    ROLE_PERMISSIONS,
    get_permissions_for_role,
    has_permission,
    has_any_permission,
)

from auth.decorators import (
    AuthError,
    require_permission,
    require_staff,
)

from auth.dependencies import (
    get_current_user,
    get_optional_current_user,
)

__all__ = [
    # Roles
    "Permission",
    "ROLE_PERMISSIONS",
    "get_permissions_for_role",
    "has_permission",
    "has_any_permission",

    # Dependencies
    "AuthError",
    "require_permission",
    "require_staff",
    "get_current_user",
    "get_optional_current_user",
]
