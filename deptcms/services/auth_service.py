"""
Login and account blocking
"""
import hmac
import logging
from datetime import datetime, timedelta
from typing import Optional
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from deptcms.core.errors import AuthenticationError, ForbiddenError, InvalidInputError
from deptcms.models.user import User
from deptcms.utils.timeutil import as_utc, utcnow

logger = logging.getLogger(__name__)


class AuthService:
    """Credential checks and block windows"""

    @staticmethod
    def blocked_until(user: User, now: Optional[datetime] = None) -> Optional[datetime]:
        """
        The end of the user's active block, or None when they are not blocked

        Args:
            user: the user to check
            now: reference time, defaults to the current UTC time
        """
        until = as_utc(user.blocked_until)
        if until is None:
            return None
        if until <= (now or utcnow()):
            return None
        return until

    @classmethod
    def ensure_not_blocked(cls, user: User) -> None:
        """
        Raises:
            ForbiddenError: the user is blocked right now
        """
        until = cls.blocked_until(user)
        if until is not None:
            raise ForbiddenError(
                f"Account blocked until {until.isoformat(timespec='seconds')}",
                code="blocked",
            )

    @classmethod
    async def authenticate(cls, db: AsyncSession, email: str, password: str) -> User:
        """
        Check an email/password pair

        Args:
            db: database session
            email: login key
            password: credential as submitted

        Returns:
            User: the authenticated user

        Raises:
            InvalidInputError: email or password missing
            AuthenticationError: no such user or wrong password
            ForbiddenError: the account is blocked
        """
        email = (email or "").strip()
        if not email or not password:
            raise InvalidInputError("Enter email and password")

        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user is None or not hmac.compare_digest(user.password.encode(), password.encode()):
            logger.info("Failed login for %s", email)
            raise AuthenticationError("Invalid email or password", code="invalid_credentials")

        cls.ensure_not_blocked(user)
        return user

    @staticmethod
    async def block(db: AsyncSession, user: User, minutes: int) -> User:
        """
        Block a user for a number of minutes from now

        Raises:
            InvalidInputError: minutes is not positive
        """
        if minutes is None or minutes < 1:
            raise InvalidInputError("minutes must be at least 1")

        user.blocked_until = utcnow() + timedelta(minutes=minutes)
        await db.commit()
        await db.refresh(user)
        logger.info("Blocked user %s until %s", user.id, user.blocked_until)
        return user

    @staticmethod
    async def unblock(db: AsyncSession, user: User) -> User:
        """Lift any block on a user"""
        user.blocked_until = None
        await db.commit()
        await db.refresh(user)
        logger.info("Unblocked user %s", user.id)
        return user
