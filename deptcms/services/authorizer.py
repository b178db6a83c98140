"""
Administrator checks
"""
from typing import Optional, Protocol, runtime_checkable

from deptcms.core.errors import ForbiddenError
from deptcms.models.user import User

ADMIN_ROLE = "admin"
USER_ROLE = "user"
ROLES = (ADMIN_ROLE, USER_ROLE)


@runtime_checkable
class Authorizer(Protocol):
    """Decides whether a user holds administrator rights"""

    def is_admin(self, user: Optional[User]) -> bool:
        ...

    def require_admin(self, user: Optional[User], action: str = "this action") -> User:
        ...


class RoleAuthorizer:
    """Administrator rights come from the stored role column"""

    def is_admin(self, user: Optional[User]) -> bool:
        return user is not None and (user.role or "").lower() == ADMIN_ROLE

    def require_admin(self, user: Optional[User], action: str = "this action") -> User:
        """
        Return the user if they are an administrator

        Raises:
            ForbiddenError: the user is missing or not an administrator
        """
        if not self.is_admin(user):
            raise ForbiddenError(f"Admin only: {action}")
        return user
