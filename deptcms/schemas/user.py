"""
User administration schemas
"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional
from datetime import datetime


class UserCreate(BaseModel):
    """Create user request; id/email/password/role are checked by the handler"""
    id: Optional[str] = Field(None, max_length=64, description="User ID")
    email: Optional[str] = Field(None, max_length=255, description="Login email")
    password: Optional[str] = Field(None, description="Password")
    role: Optional[str] = Field(None, description="admin | user")
    username: Optional[str] = Field(None, max_length=64, description="Display name, defaults to the ID")
    department: Optional[str] = Field(None, description="Department, defaults to the configured baseline")
    admin: Optional[str] = Field(None, description="Calling administrator's email, as the browser client sends it")


class UserUpdate(BaseModel):
    """Update user request; blank values leave the field unchanged"""
    newUsername: Optional[str] = Field(None, max_length=64)
    newPassword: Optional[str] = None
    department: Optional[str] = None


class UserBlock(BaseModel):
    """Block user request"""
    minutes: int = Field(..., ge=1, description="Block length in minutes")


class UserResponse(BaseModel):
    """User as shown to administrators"""
    id: str
    email: str
    username: str
    role: str
    department: str
    blockedUntil: Optional[datetime] = None
    isBlocked: bool = False

    model_config = ConfigDict(from_attributes=True)
