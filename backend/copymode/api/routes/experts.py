"""
Expert endpoints. Experts are private to the user who created them.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from pydantic import BaseModel, Field

from copymode.core.database import get_db
from copymode.middleware.auth import get_current_user_id
from copymode.models.expert import Expert
from copymode.services.storage_service import storage_service, EXPERT_AVATARS_BUCKET

router = APIRouter(prefix="/experts", tags=["experts"])


class ExpertCreate(BaseModel):
    """Expert creation schema."""
    name: str = Field(..., min_length=1)
    niche: Optional[str] = None
    target_audience: Optional[str] = None
    deliverables: Optional[str] = None
    benefits: Optional[str] = None
    objections: Optional[str] = None
    avatar: Optional[str] = None


class ExpertUpdate(BaseModel):
    """Expert update schema."""
    name: Optional[str] = Field(None, min_length=1)
    niche: Optional[str] = None
    target_audience: Optional[str] = None
    deliverables: Optional[str] = None
    benefits: Optional[str] = None
    objections: Optional[str] = None
    avatar: Optional[str] = None


class ExpertResponse(BaseModel):
    """Expert response schema."""
    id: str
    name: str
    niche: Optional[str]
    target_audience: Optional[str]
    deliverables: Optional[str]
    benefits: Optional[str]
    objections: Optional[str]
    avatar: Optional[str]
    user_id: str
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True


def expert_to_response(expert: Expert) -> ExpertResponse:
    return ExpertResponse(
        id=expert.id,
        name=expert.name,
        niche=expert.niche,
        target_audience=expert.target_audience,
        deliverables=expert.deliverables,
        benefits=expert.benefits,
        objections=expert.objections,
        avatar=expert.avatar,
        user_id=expert.user_id,
        created_at=expert.created_at.isoformat(),
        updated_at=expert.updated_at.isoformat()
    )


async def get_owned_expert(db: AsyncSession, expert_id: str, user_id: str) -> Expert:
    """Fetch an expert of the current user; other users' experts look missing."""
    result = await db.execute(
        select(Expert).where(Expert.id == expert_id, Expert.user_id == user_id)
    )
    expert = result.scalar_one_or_none()

    if not expert:
        raise HTTPException(status_code=404, detail="Expert not found")
    return expert


@router.get("", response_model=List[ExpertResponse])
async def list_experts(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """List the current user's experts."""
    result = await db.execute(
        select(Expert).where(Expert.user_id == user_id).order_by(Expert.created_at.desc())
    )
    return [expert_to_response(expert) for expert in result.scalars().all()]


@router.post("", response_model=ExpertResponse)
async def create_expert(
    expert_data: ExpertCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Create a new expert."""
    expert = Expert(**expert_data.model_dump(), user_id=user_id)
    db.add(expert)
    await db.commit()
    await db.refresh(expert)
    return expert_to_response(expert)


@router.get("/{expert_id}", response_model=ExpertResponse)
async def get_expert(
    expert_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Get expert details."""
    return expert_to_response(await get_owned_expert(db, expert_id, user_id))


@router.patch("/{expert_id}", response_model=ExpertResponse)
async def update_expert(
    expert_id: str,
    expert_data: ExpertUpdate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Update an expert."""
    expert = await get_owned_expert(db, expert_id, user_id)

    for field, value in expert_data.model_dump(exclude_unset=True).items():
        if field == "name" and value is None:
            continue
        setattr(expert, field, value)

    await db.commit()
    await db.refresh(expert)
    return expert_to_response(expert)


@router.delete("/{expert_id}")
async def delete_expert(
    expert_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Delete an expert."""
    expert = await get_owned_expert(db, expert_id, user_id)

    await db.delete(expert)
    await db.commit()
    return {"status": "success", "id": expert_id}


@router.post("/{expert_id}/avatar", response_model=ExpertResponse)
async def upload_expert_avatar(
    expert_id: str,
    file: UploadFile = File(...),
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Upload an expert's avatar image."""
    expert = await get_owned_expert(db, expert_id, user_id)

    content = await file.read()
    expert.avatar = storage_service.upload_image(EXPERT_AVATARS_BUCKET, user_id, file.filename, content)
    await db.commit()
    await db.refresh(expert)
    return expert_to_response(expert)
