"""
Login API
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from deptcms.db.database import get_db
from deptcms.schemas.auth import LoginRequest, LoginResponse
from deptcms.schemas.common import ResponseModel
from deptcms.services.auth_service import AuthService
from deptcms.utils.auth import authorizer, create_access_token

router = APIRouter(tags=["auth"])


@router.post("/login", response_model=ResponseModel)
async def login(
    login_data: LoginRequest,
    db: AsyncSession = Depends(get_db),
):
    """
    Log in with email and password
    """
    user = await AuthService.authenticate(db, login_data.email, login_data.password)

    token = create_access_token(data={"sub": user.id})

    return ResponseModel(
        code=200,
        message="Login successful",
        data=LoginResponse(
            token=token,
            user={
                "id": user.id,
                "email": user.email,
                "username": user.username,
                "role": user.role,
                "department": user.department,
                "isAdmin": authorizer.is_admin(user),
            }
        )
    )
