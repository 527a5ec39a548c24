"""
Chat completion proxy for clients that assemble the prompt parts themselves.
"""
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from pydantic import BaseModel
from loguru import logger

from copymode.core.config import settings
from copymode.core.database import get_db
from copymode.middleware.auth import get_current_user
from copymode.models.agent import Agent
from copymode.models.user import User
from copymode.services.llm_service import llm_service

router = APIRouter(prefix="/completions", tags=["completions"])


class GroqProxyRequest(BaseModel):
    """Pre-built prompt parts plus the user's prompt."""
    agentBasePrompt: Optional[str] = None
    expertContext: Optional[str] = None
    retrievedKnowledge: Optional[str] = None
    finalInstructions: Optional[str] = None
    contentType: Optional[str] = None
    prompt: Optional[str] = None
    conversationHistory: List[Dict[str, Any]] = []
    temperature: Optional[float] = None
    agentId: Optional[str] = None


@router.post("/groq-proxy")
async def groq_proxy(
    request: GroqProxyRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Call Groq with system prompt = agentBasePrompt + expertContext
    + retrievedKnowledge + finalInstructions.

    Temperature comes from the request, else the agent (agentId), else the default.
    """
    api_key = llm_service.resolve_api_key(user.api_key)

    if not (request.agentBasePrompt and request.contentType and request.prompt and request.finalInstructions):
        raise HTTPException(
            status_code=400,
            detail="Missing required fields from: agentBasePrompt, contentType, prompt, finalInstructions"
        )

    temperature = request.temperature
    if temperature is None:
        temperature = settings.GROQ_DEFAULT_TEMPERATURE
        if request.agentId:
            agent = await db.get(Agent, request.agentId)
            if agent is not None and agent.temperature is not None:
                temperature = agent.temperature
            else:
                logger.warning(f"Agent {request.agentId} not found, using default temperature")

    system_prompt = (
        request.agentBasePrompt
        + (request.expertContext or "")
        + (request.retrievedKnowledge or "")
        + request.finalInstructions
    )

    messages = [
        {"role": "system", "content": system_prompt},
        *(
            {"role": item.get("role"), "content": item.get("content")}
            for item in request.conversationHistory
        ),
        {"role": "user", "content": request.prompt},
    ]

    generated = await llm_service.complete(messages, api_key=api_key, temperature=temperature)
    return {"generatedCopy": generated}
