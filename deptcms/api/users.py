"""
User administration API
"""
import logging
from fastapi import APIRouter, Depends, Header, Query
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_, func, asc
from typing import Optional

from deptcms.core.config import settings
from deptcms.core.departments import Department
from deptcms.core.errors import ConflictError, InvalidInputError, NotFoundError
from deptcms.db.database import get_db
from deptcms.models.user import User
from deptcms.schemas.common import ResponseModel
from deptcms.schemas.user import UserCreate, UserUpdate, UserBlock, UserResponse
from deptcms.services.auth_service import AuthService
from deptcms.services.authorizer import ROLES
from deptcms.utils.auth import Requester, authorizer, get_requester, resolve_requester

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


def user_to_response(user: User) -> UserResponse:
    until = AuthService.blocked_until(user)
    return UserResponse(
        id=user.id,
        email=user.email,
        username=user.username,
        role=user.role,
        department=user.department,
        blockedUntil=user.blocked_until,
        isBlocked=until is not None,
    )


async def _get_user(db: AsyncSession, user_id: str) -> User:
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if not user:
        raise NotFoundError(f"User {user_id} not found")
    return user


@router.get("", response_model=ResponseModel)
async def list_users(
    search: Optional[str] = Query(None, description="Match id, email or username"),
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db),
):
    """
    All users ordered by department then id (admin only)
    """
    authorizer.require_admin(requester.user, "list users")

    stmt = select(User)
    if search and search.strip():
        pattern = f"%{search.strip().lower()}%"
        stmt = stmt.where(
            or_(
                func.lower(User.id).like(pattern),
                func.lower(User.email).like(pattern),
                func.lower(User.username).like(pattern),
            )
        )
    result = await db.execute(stmt.order_by(asc(User.department), asc(User.id)))
    users = result.scalars().all()

    return ResponseModel(code=200, data=[user_to_response(user) for user in users])


@router.post("", response_model=ResponseModel)
async def create_user(
    user_data: UserCreate,
    authorization: Optional[str] = Header(None),
    identity: Optional[str] = Query(None),
    admin: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a user account (admin only)

    The browser client names the administrator in the JSON body, so `admin`
    is read from there as well as from the query string.
    """
    requester = await resolve_requester(db, authorization, identity or admin or user_data.admin)
    authorizer.require_admin(requester.user, "create users")

    user_id = (user_data.id or "").strip()
    email = (user_data.email or "").strip()
    role = (user_data.role or "").strip().lower()
    if not user_id or not email or not user_data.password or not role:
        raise InvalidInputError("Missing required fields: id, email, password, role")
    if role not in ROLES:
        raise InvalidInputError(f"role must be one of: {', '.join(ROLES)}")

    department = Department.parse(user_data.department or settings.DEFAULT_DEPARTMENT)

    existing = await db.execute(
        select(User.id).where(or_(User.id == user_id, User.email == email))
    )
    if existing.first() is not None:
        raise ConflictError("A user with this id or email already exists")

    user = User(
        id=user_id,
        email=email,
        password=user_data.password,
        role=role,
        username=(user_data.username or "").strip() or user_id,
        department=department.value,
        blocked_until=None,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise ConflictError("A user with this id or email already exists")
    await db.refresh(user)

    logger.info("User %s created by %s", user.id, requester.identity)
    return ResponseModel(code=200, message="User created", data=user_to_response(user))


@router.put("/{user_id}", response_model=ResponseModel)
async def update_user(
    user_id: str,
    user_data: UserUpdate,
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db),
):
    """
    Change a user's username, password or department (admin only)
    """
    authorizer.require_admin(requester.user, "update users")
    user = await _get_user(db, user_id)

    if user_data.newUsername and user_data.newUsername.strip():
        user.username = user_data.newUsername.strip()
    if user_data.newPassword:
        user.password = user_data.newPassword
    if user_data.department and user_data.department.strip():
        user.department = Department.parse(user_data.department).value

    await db.commit()
    await db.refresh(user)

    return ResponseModel(code=200, message="User updated", data=user_to_response(user))


@router.post("/{user_id}/block", response_model=ResponseModel)
async def block_user(
    user_id: str,
    block_data: UserBlock,
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db),
):
    """
    Block a user for some minutes (admin only)
    """
    authorizer.require_admin(requester.user, "block users")
    user = await _get_user(db, user_id)
    user = await AuthService.block(db, user, block_data.minutes)

    return ResponseModel(code=200, message="User blocked", data=user_to_response(user))


@router.post("/{user_id}/unblock", response_model=ResponseModel)
async def unblock_user(
    user_id: str,
    requester: Requester = Depends(get_requester),
    db: AsyncSession = Depends(get_db),
):
    """
    Lift a user's block (admin only)
    """
    authorizer.require_admin(requester.user, "unblock users")
    user = await _get_user(db, user_id)
    user = await AuthService.unblock(db, user)

    return ResponseModel(code=200, message="User unblocked", data=user_to_response(user))
