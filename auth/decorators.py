# Authorization dependencies for the crowdfunding platform
# Staff routes depend on require_staff(); the returned user id becomes processed_by.

from fastapi import HTTPException, status, Depends

from database.models import User, UserRole
from auth.roles import Permission, has_any_permission
from auth.dependencies import get_current_user


class AuthError(HTTPException):
    """Custom exception for authentication/authorization errors."""

    def __init__(self, detail: str, status_code: int = status.HTTP_403_FORBIDDEN):
        super().__init__(status_code=status_code, detail=detail)


def require_permission(*permissions: Permission):
    """
    Dependency that requires the user to have one of the given permissions.

    Usage:
        @router.post("/admin/payouts/project/{payout_id}")
        async def advance(user: User = Depends(require_permission(Permission.MANAGE_PAYOUTS))):
            ...
    """
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if not has_any_permission(_get_role(current_user), list(permissions)):
            raise AuthError(detail="You don't have permission to perform this action")
        return current_user

    return dependency


def require_staff():
    """
    Dependency that requires a staff account.

    Usage:
        @router.get("/admin/crowdfunding/pending")
        async def pending(user: User = Depends(require_staff())):
            ...
    """
    async def dependency(current_user: User = Depends(get_current_user)) -> User:
        if _get_role(current_user) != UserRole.STAFF:
            raise AuthError(detail="Staff access required")
        return current_user

    return dependency


def _get_role(user: User) -> UserRole:
    role = user.role.value if hasattr(user.role, 'value') else user.role
    try:
        return UserRole(str(role).lower()) if role else UserRole.USER
    except ValueError:
        return UserRole.USER
