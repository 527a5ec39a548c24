"""
Tutorial video endpoints. Everyone reads; only admins write.
"""
import re
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from pydantic import BaseModel, Field
from loguru import logger

from copymode.core.database import get_db
from copymode.middleware.auth import get_current_user, require_admin
from copymode.models.tutorial import Tutorial
from copymode.models.user import User

router = APIRouter(prefix="/tutorials", tags=["tutorials"])

YOUTUBE_URL_PATTERN = re.compile(
    r"(?:youtube\.com/(?:[^/]+/.+/|(?:v|e(?:mbed)?)/|.*[?&]v=)|youtu\.be/)([^\"&?/\s]{11})"
)


class TutorialCreate(BaseModel):
    """Tutorial creation schema."""
    title: str = Field(..., min_length=1)
    description: str = ""
    youtube_url: str
    thumbnail_url: Optional[str] = None


class TutorialUpdate(BaseModel):
    """Tutorial update schema."""
    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    youtube_url: Optional[str] = None
    thumbnail_url: Optional[str] = None


class TutorialMove(BaseModel):
    direction: str


class TutorialResponse(BaseModel):
    """Tutorial response schema."""
    id: str
    title: str
    description: str
    youtube_url: str
    thumbnail_url: Optional[str]
    order_index: int
    is_active: bool
    created_by: Optional[str]
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True


def youtube_video_id(url: str) -> Optional[str]:
    match = YOUTUBE_URL_PATTERN.search(url)
    return match.group(1) if match else None


def youtube_thumbnail(url: str) -> Optional[str]:
    video_id = youtube_video_id(url)
    if video_id is None:
        return None
    return f"https://img.youtube.com/vi/{video_id}/maxresdefault.jpg"


def tutorial_to_response(tutorial: Tutorial) -> TutorialResponse:
    return TutorialResponse(
        id=tutorial.id,
        title=tutorial.title,
        description=tutorial.description or "",
        youtube_url=tutorial.youtube_url,
        thumbnail_url=tutorial.thumbnail_url or youtube_thumbnail(tutorial.youtube_url),
        order_index=tutorial.order_index,
        is_active=tutorial.is_active,
        created_by=tutorial.created_by,
        created_at=tutorial.created_at.isoformat(),
        updated_at=tutorial.updated_at.isoformat()
    )


def check_youtube_url(url: str) -> None:
    if youtube_video_id(url) is None:
        raise HTTPException(status_code=400, detail="youtube_url must be a valid YouTube video URL")


async def list_active(db: AsyncSession) -> List[Tutorial]:
    result = await db.execute(
        select(Tutorial)
        .where(Tutorial.is_active.is_(True))
        .order_by(Tutorial.order_index.asc(), Tutorial.created_at.asc())
    )
    return list(result.scalars().all())


async def get_active_or_404(db: AsyncSession, tutorial_id: str) -> Tutorial:
    result = await db.execute(
        select(Tutorial).where(Tutorial.id == tutorial_id, Tutorial.is_active.is_(True))
    )
    tutorial = result.scalar_one_or_none()

    if not tutorial:
        raise HTTPException(status_code=404, detail="Tutorial not found")
    return tutorial


@router.get("", response_model=List[TutorialResponse])
async def list_tutorials(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """List active tutorials in display order."""
    return [tutorial_to_response(t) for t in await list_active(db)]


@router.get("/{tutorial_id}", response_model=TutorialResponse)
async def get_tutorial(
    tutorial_id: str,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    return tutorial_to_response(await get_active_or_404(db, tutorial_id))


@router.post("", response_model=TutorialResponse)
async def create_tutorial(
    data: TutorialCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Create a tutorial (admin only).

    It goes to the end of the list: order_index is one past the highest
    existing index, deactivated tutorials included.
    """
    check_youtube_url(data.youtube_url)

    max_order = await db.scalar(select(func.max(Tutorial.order_index)))
    tutorial = Tutorial(
        **data.model_dump(),
        order_index=(max_order or 0) + 1,
        created_by=admin.id
    )
    db.add(tutorial)
    await db.commit()
    await db.refresh(tutorial)

    logger.info(f"Tutorial {tutorial.id} created at position {tutorial.order_index}")
    return tutorial_to_response(tutorial)


@router.patch("/{tutorial_id}", response_model=TutorialResponse)
async def update_tutorial(
    tutorial_id: str,
    data: TutorialUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Update a tutorial (admin only)."""
    tutorial = await get_active_or_404(db, tutorial_id)

    update_data = data.model_dump(exclude_unset=True)
    if update_data.get("youtube_url") is not None:
        check_youtube_url(update_data["youtube_url"])

    for field, value in update_data.items():
        if field in ("title", "youtube_url") and value is None:
            continue
        if field == "description" and value is None:
            value = ""
        setattr(tutorial, field, value)

    await db.commit()
    await db.refresh(tutorial)
    return tutorial_to_response(tutorial)


@router.delete("/{tutorial_id}")
async def delete_tutorial(
    tutorial_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Deactivate a tutorial (admin only). The row is kept."""
    tutorial = await get_active_or_404(db, tutorial_id)
    tutorial.is_active = False
    await db.commit()
    return {"status": "success", "id": tutorial_id}


@router.post("/{tutorial_id}/move", response_model=List[TutorialResponse])
async def move_tutorial(
    tutorial_id: str,
    data: TutorialMove,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Swap a tutorial's position with its neighbour (admin only).

    Moving the first tutorial up or the last one down changes nothing.
    Returns the active tutorials in their new order.
    """
    if data.direction not in ("up", "down"):
        raise HTTPException(status_code=400, detail="direction must be 'up' or 'down'")

    tutorials = await list_active(db)
    index = next((i for i, t in enumerate(tutorials) if t.id == tutorial_id), None)
    if index is None:
        raise HTTPException(status_code=404, detail="Tutorial not found")

    neighbour_index = index - 1 if data.direction == "up" else index + 1
    if 0 <= neighbour_index < len(tutorials):
        current, neighbour = tutorials[index], tutorials[neighbour_index]
        current.order_index, neighbour.order_index = neighbour.order_index, current.order_index
        await db.commit()
        tutorials = await list_active(db)

    return [tutorial_to_response(t) for t in tutorials]
