"""
Chat endpoints: conversations, messages and copy generation.
"""
from datetime import datetime
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from pydantic import BaseModel, Field

from copymode.core.database import get_db
from copymode.middleware.auth import get_current_user, get_current_user_id
from copymode.models import Agent, Chat, ContentType, Expert, Message, User
from copymode.services.copy_service import copy_service

router = APIRouter(prefix="/chats", tags=["chats"])

MESSAGE_ROLES = ("user", "assistant")


class MessageResponse(BaseModel):
    """Message response schema."""
    id: str
    chat_id: str
    agent_id: Optional[str]
    role: str
    content: str
    created_at: str

    class Config:
        from_attributes = True


class ChatResponse(BaseModel):
    """Chat response schema."""
    id: str
    title: str
    agent_id: Optional[str]
    expert_id: Optional[str]
    content_type_id: Optional[str]
    content_type: Optional[str]
    user_id: str
    messages: List[MessageResponse]
    created_at: str
    updated_at: str

    class Config:
        from_attributes = True


class ChatCreate(BaseModel):
    """Chat creation schema."""
    agent_id: str
    expert_id: Optional[str] = None
    content_type_id: Optional[str] = None
    content_type: Optional[str] = None
    title: Optional[str] = None


class MessageCreate(BaseModel):
    """Message creation schema."""
    content: str = Field(..., min_length=1)
    role: str = "user"


class GenerateRequest(BaseModel):
    """Copy generation request schema."""
    message: str = Field(..., min_length=1)
    temperature: Optional[float] = Field(None, ge=0, le=2)


class GenerateResponse(BaseModel):
    """Copy generation response: the stored user message and the reply."""
    message: MessageResponse
    reply: MessageResponse


def message_to_response(message: Message) -> MessageResponse:
    return MessageResponse(
        id=message.id,
        chat_id=message.chat_id,
        agent_id=message.agent_id,
        role=message.role,
        content=message.content,
        created_at=message.created_at.isoformat()
    )


def chat_to_response(chat: Chat) -> ChatResponse:
    return ChatResponse(
        id=chat.id,
        title=chat.title,
        agent_id=chat.agent_id,
        expert_id=chat.expert_id,
        content_type_id=chat.content_type_id,
        content_type=chat.content_type,
        user_id=chat.user_id,
        messages=[message_to_response(m) for m in chat.messages],
        created_at=chat.created_at.isoformat(),
        updated_at=chat.updated_at.isoformat()
    )


async def get_owned_chat(db: AsyncSession, chat_id: str, user_id: str) -> Chat:
    """Fetch a chat of the current user with its messages loaded."""
    result = await db.execute(
        select(Chat)
        .options(selectinload(Chat.messages))
        .where(Chat.id == chat_id, Chat.user_id == user_id)
        .execution_options(populate_existing=True)
    )
    chat = result.scalar_one_or_none()

    if not chat:
        raise HTTPException(status_code=404, detail="Chat not found")
    return chat


@router.get("", response_model=List[ChatResponse])
async def list_chats(
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """List the current user's chats, most recently active first."""
    result = await db.execute(
        select(Chat)
        .options(selectinload(Chat.messages))
        .where(Chat.user_id == user_id)
        .order_by(Chat.updated_at.desc())
    )
    return [chat_to_response(chat) for chat in result.scalars().all()]


@router.post("", response_model=ChatResponse)
async def create_chat(
    chat_data: ChatCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Start a chat with an agent, an optional expert and a content type."""
    agent = await db.get(Agent, chat_data.agent_id)
    if not agent:
        raise HTTPException(status_code=404, detail="Agent not found")

    if chat_data.expert_id:
        result = await db.execute(
            select(Expert).where(Expert.id == chat_data.expert_id, Expert.user_id == user_id)
        )
        if not result.scalar_one_or_none():
            raise HTTPException(status_code=404, detail="Expert not found")

    content_type_name = chat_data.content_type
    if chat_data.content_type_id:
        content_type = await db.get(ContentType, chat_data.content_type_id)
        if not content_type:
            raise HTTPException(status_code=404, detail="Content type not found")
        content_type_name = content_type.name

    title = (chat_data.title or "").strip()
    if not title:
        title = f"{agent.name} - {content_type_name}" if content_type_name else agent.name

    chat = Chat(
        title=title,
        agent_id=agent.id,
        expert_id=chat_data.expert_id,
        content_type_id=chat_data.content_type_id,
        content_type=content_type_name,
        user_id=user_id
    )
    db.add(chat)
    await db.commit()

    return chat_to_response(await get_owned_chat(db, chat.id, user_id))


@router.get("/{chat_id}", response_model=ChatResponse)
async def get_chat(
    chat_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Get a chat with its messages."""
    return chat_to_response(await get_owned_chat(db, chat_id, user_id))


@router.delete("/{chat_id}")
async def delete_chat(
    chat_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Delete a chat and its messages."""
    chat = await get_owned_chat(db, chat_id, user_id)

    await db.delete(chat)
    await db.commit()
    return {"status": "success", "id": chat_id}


@router.post("/{chat_id}/messages", response_model=MessageResponse)
async def add_message(
    chat_id: str,
    message_data: MessageCreate,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Append a message to a chat."""
    if message_data.role not in MESSAGE_ROLES:
        raise HTTPException(status_code=400, detail=f"Invalid role. Allowed: {', '.join(MESSAGE_ROLES)}")

    chat = await get_owned_chat(db, chat_id, user_id)

    message = Message(
        chat_id=chat.id,
        agent_id=chat.agent_id,
        role=message_data.role,
        content=message_data.content
    )
    db.add(message)
    chat.updated_at = datetime.utcnow()
    await db.commit()
    await db.refresh(message)

    return message_to_response(message)


@router.delete("/{chat_id}/messages/{message_id}")
async def delete_message(
    chat_id: str,
    message_id: str,
    user_id: str = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db)
):
    """Delete one message of a chat."""
    chat = await get_owned_chat(db, chat_id, user_id)

    result = await db.execute(
        select(Message).where(Message.id == message_id, Message.chat_id == chat.id)
    )
    message = result.scalar_one_or_none()

    if not message:
        raise HTTPException(status_code=404, detail="Message not found")

    await db.delete(message)
    await db.commit()
    return {"status": "success", "id": message_id}


@router.post("/{chat_id}/generate", response_model=GenerateResponse)
async def generate(
    chat_id: str,
    request: GenerateRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Generate copy for a chat message.

    The user's message and the generated reply are both stored in the chat.
    """
    message = request.message.strip()
    if not message:
        raise HTTPException(status_code=400, detail="Message cannot be empty")

    chat = await get_owned_chat(db, chat_id, user.id)

    user_message, assistant_message = await copy_service.generate_copy(
        db, chat, user, message, temperature=request.temperature
    )

    return GenerateResponse(
        message=message_to_response(user_message),
        reply=message_to_response(assistant_message)
    )
