"""
Agent endpoints: persona management and knowledge file uploads.
"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from pydantic import BaseModel, Field
from loguru import logger

from copymode.core.config import settings
from copymode.core.database import get_db
from copymode.core.exceptions import CopyModeError
from copymode.middleware.auth import get_current_user_id, require_admin
from copymode.models.agent import Agent
from copymode.models.user import User
from copymode.services.storage_service import storage_service, AGENT_AVATARS_BUCKET, KNOWLEDGE_BUCKET
from copymode.services.text_extraction import extract_text, is_supported, SUPPORTED_TYPES
from copymode.services.vector_service import vector_service

router = APIRouter(prefix="/agents", tags=["agents"])


class KnowledgeFile(BaseModel):
    """Stored knowledge file reference."""
    name: str
    path: str


class AgentResponse(BaseModel):
    """Agent response schema."""
    id: str
    name: str
    description: Optional[str]
    prompt: str
    avatar: Optional[str]
    temperature: float
    knowledge_files: List[KnowledgeFile]
    created_by: Optional[str]
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True


class AgentCreate(BaseModel):
    """Agent creation schema (admin only)."""
    name: str = Field(..., min_length=1)
    prompt: str = Field(..., min_length=1)
    description: Optional[str] = None
    avatar: Optional[str] = None
    temperature: float = Field(0.7, ge=0, le=2)


class AgentUpdate(BaseModel):
    """Agent update schema (admin only)."""
    name: Optional[str] = Field(None, min_length=1)
    prompt: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    avatar: Optional[str] = None
    temperature: Optional[float] = Field(None, ge=0, le=2)


def agent_to_response(agent: Agent) -> AgentResponse:
    return AgentResponse(
        id=agent.id,
        name=agent.name,
        description=agent.description,
        prompt=agent.prompt,
        avatar=agent.avatar,
        temperature=agent.temperature,
        knowledge_files=agent.knowledge_files or [],
        created_by=agent.created_by,
        created_at=agent.created_at.isoformat(),
        updated_at=agent.updated_at.isoformat()
    )


async def get_agent_or_404(db: AsyncSession, agent_id: str) -> Agent:
    result = await db.execute(select(Agent).where(Agent.id == agent_id))
    agent = result.scalar_one_or_none()

    if not agent:
        raise HTTPException(status_code=404, detail="Agent not found")
    return agent


@router.get("", response_model=List[AgentResponse])
async def list_agents(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """List all agents."""
    result = await db.execute(select(Agent).order_by(Agent.name.asc()))
    return [agent_to_response(agent) for agent in result.scalars().all()]


@router.get("/{agent_id}", response_model=AgentResponse)
async def get_agent(
    agent_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Get agent details."""
    return agent_to_response(await get_agent_or_404(db, agent_id))


@router.post("", response_model=AgentResponse)
async def create_agent(
    agent_data: AgentCreate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Create a new agent (admin only)."""
    agent = Agent(
        **agent_data.model_dump(),
        knowledge_files=[],
        created_by=admin.id
    )
    db.add(agent)
    await db.commit()
    await db.refresh(agent)

    logger.info(f"Agent {agent.id} ({agent.name}) created by {admin.email}")
    return agent_to_response(agent)


@router.patch("/{agent_id}", response_model=AgentResponse)
async def update_agent(
    agent_id: str,
    agent_data: AgentUpdate,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Update an agent (admin only)."""
    agent = await get_agent_or_404(db, agent_id)

    for field, value in agent_data.model_dump(exclude_unset=True).items():
        if value is None and field in ("name", "prompt", "temperature"):
            continue
        setattr(agent, field, value)

    await db.commit()
    await db.refresh(agent)
    return agent_to_response(agent)


@router.delete("/{agent_id}")
async def delete_agent(
    agent_id: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete an agent together with its knowledge chunks and files (admin only)."""
    agent = await get_agent_or_404(db, agent_id)

    chunks_deleted = await vector_service.delete_agent_chunks(db, agent.id)
    storage_service.remove_folder(KNOWLEDGE_BUCKET, agent.id)

    await db.delete(agent)
    await db.commit()

    logger.info(f"Agent {agent_id} deleted ({chunks_deleted} knowledge chunks removed)")
    return {"status": "success", "id": agent_id, "chunks_deleted": chunks_deleted}


@router.post("/{agent_id}/avatar", response_model=AgentResponse)
async def upload_agent_avatar(
    agent_id: str,
    file: UploadFile = File(...),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Upload the agent's avatar image (admin only)."""
    agent = await get_agent_or_404(db, agent_id)

    content = await file.read()
    agent.avatar = storage_service.upload_image(AGENT_AVATARS_BUCKET, agent.id, file.filename, content)
    await db.commit()
    await db.refresh(agent)
    return agent_to_response(agent)


async def _ingest_file(db: AsyncSession, agent: Agent, file: UploadFile) -> Dict[str, Any]:
    """Store, extract and index one knowledge file. Raises on failure."""
    filename = file.filename or "file"
    if not is_supported(filename):
        raise HTTPException(
            status_code=400,
            detail=f"Unsupported file type. Allowed: {', '.join(sorted(SUPPORTED_TYPES))}"
        )

    content = await file.read()
    if len(content) > settings.MAX_KNOWLEDGE_FILE_SIZE:
        raise HTTPException(
            status_code=400,
            detail=f"File too large. Max size: {settings.MAX_KNOWLEDGE_FILE_SIZE // (1024 * 1024)}MB"
        )

    text_content = extract_text(filename, content)

    path = storage_service.upload(KNOWLEDGE_BUCKET, storage_service.build_path(agent.id, filename), content)
    try:
        result = await vector_service.process_text(
            db,
            agent_id=agent.id,
            text_content=text_content,
            file_name=filename,
            file_path=path
        )
    except Exception:
        storage_service.remove(KNOWLEDGE_BUCKET, path)
        raise

    return {"name": filename, "path": path, **result}


@router.post("/{agent_id}/files")
async def upload_knowledge_files(
    agent_id: str,
    files: List[UploadFile] = File(...),
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Upload knowledge files for an agent (admin only).

    Each file is stored, its text extracted, chunked and embedded.
    A failing file is reported in the response and does not stop the others.
    """
    agent = await get_agent_or_404(db, agent_id)

    processed = []
    failed = []
    for file in files:
        try:
            processed.append(await _ingest_file(db, agent, file))
        except HTTPException as e:
            failed.append({"name": file.filename, "error": e.detail})
        except CopyModeError as e:
            logger.error(f"Knowledge file {file.filename} failed for agent {agent_id}: {e.message}")
            failed.append({"name": file.filename, "error": e.message})
        except Exception as e:
            logger.exception(f"Knowledge file {file.filename} failed for agent {agent_id}")
            await db.rollback()
            await db.refresh(agent)
            failed.append({"name": file.filename, "error": str(e)})

    if processed:
        agent.knowledge_files = [
            *(agent.knowledge_files or []),
            *({"name": item["name"], "path": item["path"]} for item in processed)
        ]
        await db.commit()
        await db.refresh(agent)

    logger.info(f"Agent {agent_id}: {len(processed)} knowledge files processed, {len(failed)} failed")
    return {
        "status": "success" if not failed else ("partial" if processed else "failed"),
        "agent": agent_to_response(agent),
        "processed": processed,
        "failed": failed
    }


@router.delete("/{agent_id}/files")
async def delete_knowledge_file(
    agent_id: str,
    path: str,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Remove a knowledge file, its stored object and its chunks (admin only)."""
    agent = await get_agent_or_404(db, agent_id)

    files = agent.knowledge_files or []
    if not any(item.get("path") == path for item in files):
        raise HTTPException(status_code=404, detail="Knowledge file not found")

    chunks_deleted = await vector_service.delete_file_chunks(db, agent.id, path)
    storage_service.remove(KNOWLEDGE_BUCKET, path)

    agent.knowledge_files = [item for item in files if item.get("path") != path]
    await db.commit()
    await db.refresh(agent)

    return {"status": "success", "path": path, "chunks_deleted": chunks_deleted}
