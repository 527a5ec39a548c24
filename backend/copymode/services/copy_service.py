"""
Copy generation: retrieval, prompt assembly and Groq completion for a chat.
"""
from datetime import datetime
from typing import Optional, Tuple
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from copymode.core.config import settings
from copymode.core.exceptions import NotFoundError
from copymode.models import Agent, Chat, ContentType, Expert, Message, User
from copymode.services.llm_service import llm_service
from copymode.services.prompt_builder import prompt_builder
from copymode.services.vector_service import vector_service


class CopyService:
    """Generates an assistant reply for a chat message."""

    def __init__(self):
        self.vectors = vector_service
        self.llm = llm_service
        self.prompts = prompt_builder

    @staticmethod
    def resolve_temperature(requested: Optional[float], agent: Agent) -> float:
        if requested is not None:
            return requested
        if agent.temperature is not None:
            return agent.temperature
        return settings.GROQ_DEFAULT_TEMPERATURE

    async def _load_expert(self, db: AsyncSession, expert_id: str, user_id: str) -> Optional[Expert]:
        result = await db.execute(
            select(Expert).where(Expert.id == expert_id, Expert.user_id == user_id)
        )
        return result.scalar_one_or_none()

    async def generate_copy(
        self,
        db: AsyncSession,
        chat: Chat,
        user: User,
        message: str,
        temperature: Optional[float] = None
    ) -> Tuple[Message, Message]:
        """
        Generate a reply to `message` in `chat` and persist both messages.

        The user message is saved before calling the LLM, so it stays in the
        chat when generation fails. Knowledge retrieval errors do not stop
        generation; they become a note in the system prompt.

        Args:
            db: Database session
            chat: Chat with its messages loaded
            user: Requesting user (owner of the chat)
            message: User's message
            temperature: Optional override of the agent's temperature

        Returns:
            (user message, assistant message)

        Raises:
            NotFoundError: Chat has no agent
            ConfigurationError: No Groq key available
            UpstreamAPIError: Groq call failed
        """
        agent = await db.get(Agent, chat.agent_id) if chat.agent_id else None
        if agent is None:
            raise NotFoundError("Agent not found for this chat")

        api_key = self.llm.resolve_api_key(user.api_key)

        expert = None
        if chat.expert_id:
            expert = await self._load_expert(db, chat.expert_id, user.id)
            if expert is None:
                logger.warning(f"Expert {chat.expert_id} not found for user {user.id}")

        content_type_name = chat.content_type
        content_type_description = None
        if chat.content_type_id:
            content_type = await db.get(ContentType, chat.content_type_id)
            if content_type is not None:
                content_type_name = content_type.name
                content_type_description = content_type.description

        knowledge_chunks = None
        knowledge_error = None
        try:
            # Savepoint: a failed search must not abort the chat's transaction
            async with db.begin_nested():
                knowledge_chunks = await self.vectors.search_similar(db, agent.id, message)
            logger.info(f"Retrieved {len(knowledge_chunks)} knowledge chunks for agent {agent.id}")
        except Exception as e:
            logger.error(f"Knowledge retrieval failed for agent {agent.id}: {e}")
            knowledge_error = str(e)

        system_prompt = self.prompts.build_system_prompt(
            agent_prompt=agent.prompt,
            user_message=message,
            expert=expert,
            expert_requested=bool(chat.expert_id),
            knowledge_chunks=knowledge_chunks,
            knowledge_error=knowledge_error,
            content_type_name=content_type_name,
            content_type_description=content_type_description,
        )
        history = self.prompts.history(chat.messages)
        messages = self.prompts.build_messages(system_prompt, history, message)

        user_message = Message(chat_id=chat.id, agent_id=agent.id, role="user", content=message)
        db.add(user_message)
        chat.updated_at = datetime.utcnow()
        await db.commit()

        reply = await self.llm.complete(
            messages,
            api_key=api_key,
            temperature=self.resolve_temperature(temperature, agent),
        )

        assistant_message = Message(chat_id=chat.id, agent_id=agent.id, role="assistant", content=reply)
        db.add(assistant_message)
        chat.updated_at = datetime.utcnow()
        await db.commit()
        await db.refresh(user_message)
        await db.refresh(assistant_message)

        logger.info(f"Generated {len(reply)} chars for chat {chat.id}")
        return user_message, assistant_message


# Singleton instance
copy_service = CopyService()
