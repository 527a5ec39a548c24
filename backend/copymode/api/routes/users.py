"""
User profile, settings and admin user management endpoints.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from pydantic import BaseModel, Field
from loguru import logger

from copymode.core.database import get_db
from copymode.core.security import get_password_hash, verify_password
from copymode.middleware.auth import get_current_user, require_admin
from copymode.models.user import User
from copymode.services.storage_service import storage_service, AVATARS_BUCKET

router = APIRouter(prefix="/users", tags=["users"])

ROLES = ("admin", "user")


class UserResponse(BaseModel):
    """User response schema."""
    id: str
    email: str
    name: str
    role: str
    avatar_url: Optional[str]
    has_api_key: bool
    is_active: bool
    created_at: str
    last_login: Optional[str]

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    """Admin user creation schema."""
    email: str
    password: str = Field(..., min_length=6)
    name: str
    role: str = "user"


class UserAdminUpdate(BaseModel):
    """Admin user update schema."""
    name: Optional[str] = None
    role: Optional[str] = None
    is_active: Optional[bool] = None


class ProfileUpdate(BaseModel):
    """Profile update schema."""
    name: str = Field(..., min_length=1)


class ApiKeyUpdate(BaseModel):
    """Groq API key update; null removes the key."""
    api_key: Optional[str] = None


class PasswordUpdate(BaseModel):
    """Password change schema."""
    current_password: str
    new_password: str = Field(..., min_length=6)


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        email=user.email,
        name=user.name,
        role=user.role,
        avatar_url=user.avatar_url,
        has_api_key=bool(user.api_key),
        is_active=user.is_active,
        created_at=user.created_at.isoformat(),
        last_login=user.last_login.isoformat() if user.last_login else None
    )


def validate_role(role: str) -> None:
    if role not in ROLES:
        raise HTTPException(status_code=400, detail=f"Invalid role. Allowed: {', '.join(ROLES)}")


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    user: User = Depends(get_current_user)
):
    """Get current user information."""
    return user_to_response(user)


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    data: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update the current user's display name."""
    user.name = data.name.strip()
    await db.commit()
    await db.refresh(user)
    return user_to_response(user)


@router.put("/me/api-key", response_model=UserResponse)
async def update_api_key(
    data: ApiKeyUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Set or clear the Groq API key used for copy generation."""
    api_key = data.api_key.strip() if data.api_key else None
    user.api_key = api_key or None
    await db.commit()
    await db.refresh(user)

    logger.info(f"Groq API key {'updated' if user.api_key else 'removed'} for user {user.id}")
    return user_to_response(user)


@router.put("/me/password")
async def change_password(
    data: PasswordUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Change the current user's password."""
    if not verify_password(data.current_password, user.hashed_password):
        raise HTTPException(status_code=400, detail="Current password is incorrect")

    user.hashed_password = get_password_hash(data.new_password)
    await db.commit()

    return {"status": "success"}


@router.post("/me/avatar", response_model=UserResponse)
async def upload_avatar(
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Upload a profile picture."""
    content = await file.read()
    user.avatar_url = storage_service.upload_image(AVATARS_BUCKET, user.id, file.filename, content)
    await db.commit()
    await db.refresh(user)
    return user_to_response(user)


@router.get("", response_model=List[UserResponse])
async def list_users(
    role: Optional[str] = None,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """List users (admin only)."""
    query = select(User)
    if role:
        query = query.where(User.role == role)

    result = await db.execute(query.order_by(User.created_at.desc()))
    return [user_to_response(user) for user in result.scalars().all()]


@router.post("", response_model=UserResponse)
async def create_user(
    data: UserCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a user (admin only)."""
    validate_role(data.role)
    email = data.email.strip().lower()

    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Email already registered")

    user = User(
        email=email,
        name=data.name.strip(),
        role=data.role,
        hashed_password=get_password_hash(data.password)
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)

    logger.info(f"User {user.email} created by {admin.email}")
    return user_to_response(user)


@router.patch("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    data: UserAdminUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Update role, status or name of a user (admin only)."""
    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    if data.role is not None:
        validate_role(data.role)

    for field, value in data.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(user, field, value)

    await db.commit()
    await db.refresh(user)
    return user_to_response(user)


@router.delete("/{user_id}")
async def delete_user(
    user_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete a user with their experts, content types and chats (admin only)."""
    if user_id == admin.id:
        raise HTTPException(status_code=400, detail="You cannot delete your own account")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    await db.delete(user)
    await db.commit()

    logger.info(f"User {user_id} deleted by {admin.email}")
    return {"status": "success", "id": user_id}
