"""
Email/password login issuing access tokens.
"""
from datetime import datetime
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from pydantic import BaseModel
from loguru import logger

from copymode.core.database import get_db
from copymode.core.security import create_access_token, verify_password
from copymode.models.user import User
from copymode.api.routes.users import UserResponse, user_to_response

router = APIRouter(prefix="/auth", tags=["auth"])


class LoginRequest(BaseModel):
    """Login schema."""
    email: str
    password: str


class LoginResponse(BaseModel):
    """Login response schema."""
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


@router.post("/login", response_model=LoginResponse)
async def login(
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Authenticate with email and password."""
    result = await db.execute(
        select(User).where(User.email == credentials.email.strip().lower())
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        logger.info(f"Failed login for {credentials.email}")
        raise HTTPException(status_code=401, detail="Invalid email or password")

    if not user.is_active:
        raise HTTPException(status_code=401, detail="User is inactive")

    user.last_login = datetime.utcnow()
    await db.commit()
    await db.refresh(user)

    token = create_access_token(user.id, extra_claims={"email": user.email, "role": user.role})
    return LoginResponse(access_token=token, user=user_to_response(user))
