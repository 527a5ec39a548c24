"""
Knowledge base endpoints for RAG.

Responses keep the {success, ...} / {success: false, error} shape.
"""
from typing import Any, Optional
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel
from loguru import logger

from copymode.core.database import get_db
from copymode.core.exceptions import CopyModeError
from copymode.middleware.auth import get_current_user_id, require_admin
from copymode.models.user import User
from copymode.services.vector_service import vector_service

router = APIRouter(prefix="/knowledge", tags=["knowledge"])


class ProcessTextRequest(BaseModel):
    """Extracted text of a knowledge file."""
    agentId: Optional[Any] = None
    textContent: Optional[Any] = None
    fileName: Optional[str] = None
    filePath: Optional[str] = None


class KnowledgeSearchRequest(BaseModel):
    """Similarity search request."""
    agent_id: Optional[Any] = None
    query: Optional[Any] = None
    match_threshold: Optional[Any] = None
    match_count: Optional[Any] = None


def error_response(message: str, status_code: int) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def number_or_none(value: Any) -> Optional[float]:
    """Numeric request values only; anything else falls back to the default."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return value


@router.post("/process-text")
async def process_text(
    request: ProcessTextRequest,
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """
    Chunk, embed and store text extracted from a knowledge file.

    Empty text is accepted and stores nothing.
    """
    if not isinstance(request.agentId, str) or not request.agentId:
        return error_response("Parameter agentId (string) is required.", 400)
    if not isinstance(request.textContent, str):
        return error_response("Parameter textContent (string) is required.", 400)

    try:
        result = await vector_service.process_text(
            db,
            agent_id=request.agentId,
            text_content=request.textContent,
            file_name=request.fileName,
            file_path=request.filePath
        )
    except CopyModeError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.exception(f"Error processing text for agent {request.agentId}")
        return error_response(f"Error saving chunks: {str(e)}", 500)

    return {"success": True, **result}


@router.post("/search")
async def search_knowledge(
    request: KnowledgeSearchRequest,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """
    Search an agent's knowledge base using semantic similarity.

    Returns the most relevant chunks above the similarity threshold.
    """
    if not isinstance(request.agent_id, str) or not request.agent_id:
        return error_response("Parameter agent_id (string) is required.", 400)
    if not isinstance(request.query, str) or not request.query.strip():
        return error_response("Parameter query (non-empty string) is required.", 400)

    match_count = number_or_none(request.match_count)
    if match_count is not None:
        match_count = int(match_count)

    try:
        results = await vector_service.search_similar(
            db,
            agent_id=request.agent_id,
            query=request.query,
            match_threshold=number_or_none(request.match_threshold),
            match_count=match_count
        )
    except CopyModeError as e:
        return error_response(e.message, e.status_code)
    except Exception as e:
        logger.exception(f"Knowledge search failed for agent {request.agent_id}")
        return error_response(f"Error searching knowledge: {str(e)}", 500)

    return {"success": True, "results": results}


@router.delete("/chunks")
async def purge_chunks(
    admin: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db)
):
    """Delete every knowledge chunk of every agent (admin only)."""
    try:
        count = await vector_service.purge_all_chunks(db)
    except Exception as e:
        logger.exception("Failed to purge knowledge chunks")
        return error_response(str(e), 500)

    return {"success": True, "message": "Knowledge chunks table cleared.", "chunks_deleted": count}
