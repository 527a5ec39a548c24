"""
Content type endpoints. Everyone can use every content type;
only the creator or an admin can change one.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from pydantic import BaseModel, Field

from copymode.core.database import get_db
from copymode.middleware.auth import get_current_user
from copymode.models.content_type import ContentType
from copymode.models.user import User
from copymode.services.storage_service import storage_service, CONTENT_TYPE_AVATARS_BUCKET

router = APIRouter(prefix="/content-types", tags=["content-types"])


class ContentTypeCreate(BaseModel):
    """Content type creation schema."""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    avatar: Optional[str] = None


class ContentTypeUpdate(BaseModel):
    """Content type update schema."""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    avatar: Optional[str] = None


class ContentTypeResponse(BaseModel):
    """Content type response schema."""
    id: str
    name: str
    description: Optional[str]
    avatar: Optional[str]
    user_id: str
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True


def content_type_to_response(content_type: ContentType) -> ContentTypeResponse:
    return ContentTypeResponse(
        id=content_type.id,
        name=content_type.name,
        description=content_type.description,
        avatar=content_type.avatar,
        user_id=content_type.user_id,
        created_at=content_type.created_at.isoformat(),
        updated_at=content_type.updated_at.isoformat()
    )


async def get_content_type_or_404(db: AsyncSession, content_type_id: str) -> ContentType:
    result = await db.execute(select(ContentType).where(ContentType.id == content_type_id))
    content_type = result.scalar_one_or_none()

    if not content_type:
        raise HTTPException(status_code=404, detail="Content type not found")
    return content_type


def check_can_edit(content_type: ContentType, user: User) -> None:
    if content_type.user_id != user.id and user.role != "admin":
        raise HTTPException(status_code=403, detail="Access denied")


@router.get("", response_model=List[ContentTypeResponse])
async def list_content_types(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List all content types."""
    result = await db.execute(select(ContentType).order_by(ContentType.name.asc()))
    return [content_type_to_response(ct) for ct in result.scalars().all()]


@router.get("/{content_type_id}", response_model=ContentTypeResponse)
async def get_content_type(
    content_type_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get content type details."""
    return content_type_to_response(await get_content_type_or_404(db, content_type_id))


@router.post("", response_model=ContentTypeResponse)
async def create_content_type(
    data: ContentTypeCreate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Create a new content type."""
    content_type = ContentType(**data.model_dump(), user_id=user.id)
    db.add(content_type)
    await db.commit()
    await db.refresh(content_type)
    return content_type_to_response(content_type)


@router.patch("/{content_type_id}", response_model=ContentTypeResponse)
async def update_content_type(
    content_type_id: str,
    data: ContentTypeUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update a content type (creator or admin)."""
    content_type = await get_content_type_or_404(db, content_type_id)
    check_can_edit(content_type, user)

    for field, value in data.model_dump(exclude_unset=True).items():
        if field == "name" and value is None:
            continue
        setattr(content_type, field, value)

    await db.commit()
    await db.refresh(content_type)
    return content_type_to_response(content_type)


@router.delete("/{content_type_id}")
async def delete_content_type(
    content_type_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Delete a content type (creator or admin)."""
    content_type = await get_content_type_or_404(db, content_type_id)
    check_can_edit(content_type, user)

    await db.delete(content_type)
    await db.commit()
    return {"status": "success", "id": content_type_id}


@router.post("/{content_type_id}/avatar", response_model=ContentTypeResponse)
async def upload_content_type_avatar(
    content_type_id: str,
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Upload a content type's avatar image (creator or admin)."""
    content_type = await get_content_type_or_404(db, content_type_id)
    check_can_edit(content_type, user)

    content = await file.read()
    content_type.avatar = storage_service.upload_image(
        CONTENT_TYPE_AVATARS_BUCKET, content_type.id, file.filename, content
    )
    await db.commit()
    await db.refresh(content_type)
    return content_type_to_response(content_type)
