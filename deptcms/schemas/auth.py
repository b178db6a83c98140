"""
Login schemas
"""
from pydantic import BaseModel
from typing import Optional


class LoginRequest(BaseModel):
    """Login request"""
    email: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    """Login response"""
    token: str
    user: dict
