"""
User model
"""
from sqlalchemy import Column, String, TIMESTAMP
from deptcms.db.database import Base
from deptcms.utils.timeutil import utcnow


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)  # assigned by the administrator who creates the account
    email = Column(String(255), unique=True, nullable=False)
    password = Column(String(255), nullable=False)
    role = Column(String(16), nullable=False, default="user")  # admin | user
    username = Column(String(64), nullable=False)
    department = Column(String(16), nullable=False)
    blocked_until = Column(TIMESTAMP(timezone=True), nullable=True)
    created_at = Column(TIMESTAMP(timezone=True), nullable=False, default=utcnow)
