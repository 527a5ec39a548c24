"""
SQLAlchemy ORM models for the application.
"""
from copymode.models.user import User
from copymode.models.agent import Agent
from copymode.models.expert import Expert
from copymode.models.content_type import ContentType
from copymode.models.chat import Chat
from copymode.models.message import Message
from copymode.models.knowledge import KnowledgeChunk
from copymode.models.tutorial import Tutorial

__all__ = [
    "User",
    "Agent",
    "Expert",
    "ContentType",
    "Chat",
    "Message",
    "KnowledgeChunk",
    "Tutorial",
]
