"""
Authentication helpers
"""
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional, Dict, Any
from jose import JWTError, jwt
from fastapi import Depends, Header, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from deptcms.core.config import settings
from deptcms.core.departments import Department
from deptcms.core.errors import AuthenticationError
from deptcms.db.database import get_db
from deptcms.models.user import User
from deptcms.services.auth_service import AuthService
from deptcms.services.authorizer import Authorizer, RoleAuthorizer
from deptcms.utils.timeutil import utcnow

authorizer: Authorizer = RoleAuthorizer()


@dataclass(frozen=True)
class Requester:
    """The resolved caller of a request"""
    user: User
    is_admin: bool
    department: Department

    @property
    def identity(self) -> str:
        return self.user.email


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """
    Create a JWT access token

    Args:
        data: claims to encode
        expires_delta: lifetime, defaults to ACCESS_TOKEN_EXPIRE_MINUTES

    Returns:
        str: encoded token
    """
    to_encode = data.copy()

    if expires_delta:
        expire = utcnow() + expires_delta
    else:
        expire = utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def verify_token(token: str) -> Dict[str, Any]:
    """
    Decode and verify a JWT token

    Raises:
        AuthenticationError: the token is invalid or expired
    """
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise AuthenticationError("Invalid or expired token", code="invalid_token")


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization or not authorization.strip():
        return None
    parts = authorization.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise AuthenticationError("Authorization header must be: Bearer {token}", code="invalid_token")
    return parts[1]


def _department_of(user: User) -> Department:
    try:
        return Department(str(user.department or "").upper())
    except ValueError:
        return Department(settings.DEFAULT_DEPARTMENT)


def build_requester(user: User) -> Requester:
    return Requester(user=user, is_admin=authorizer.is_admin(user), department=_department_of(user))


async def resolve_requester(
    db: AsyncSession,
    authorization: Optional[str] = None,
    email: Optional[str] = None,
) -> Requester:
    """
    Resolve the caller from a bearer token, or from an email the client sent

    The email fallback is what the browser client sends and can be switched
    off with ALLOW_IDENTITY_QUERY=false.

    Raises:
        AuthenticationError: no usable credentials, or an unknown user
        ForbiddenError: the user is blocked
    """
    token = _bearer_token(authorization)

    if token is not None:
        payload = verify_token(token)
        user_id = payload.get("sub")
        if not user_id:
            raise AuthenticationError("Token has no subject", code="invalid_token")
        stmt = select(User).where(User.id == str(user_id))
    else:
        email = (email or "").strip() if settings.ALLOW_IDENTITY_QUERY else ""
        if not email:
            raise AuthenticationError("Authentication required", code="missing_token")
        stmt = select(User).where(User.email == email)

    result = await db.execute(stmt)
    user = result.scalar_one_or_none()
    if user is None:
        raise AuthenticationError("Unknown user", code="unknown_user")

    AuthService.ensure_not_blocked(user)

    return build_requester(user)


async def get_requester(
    authorization: Optional[str] = Header(None),
    identity: Optional[str] = Query(None, description="Caller email (when identity query is allowed)"),
    admin: Optional[str] = Query(None, description="Administrator email (when identity query is allowed)"),
    db: AsyncSession = Depends(get_db),
) -> Requester:
    """Caller from a bearer token, or from ?identity= / ?admin="""
    return await resolve_requester(db, authorization, identity or admin)
