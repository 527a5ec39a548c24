"""
Chat model grouping a conversation with one agent.
"""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from copymode.core.database import Base
import uuid


class Chat(Base):
    """Conversation bound to an agent, an optional expert and a content type."""

    __tablename__ = "chats"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)

    title = Column(String(255), nullable=False)

    # Generation context
    agent_id = Column(String(36), ForeignKey("agents.id", ondelete="SET NULL"), nullable=True, index=True)
    expert_id = Column(String(36), ForeignKey("experts.id", ondelete="SET NULL"), nullable=True)
    content_type_id = Column(String(36), ForeignKey("content_types.id", ondelete="SET NULL"), nullable=True)
    content_type = Column(String(255), nullable=True)  # Name used in prompts

    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False, index=True)

    # Relationships
    user = relationship("User", back_populates="chats")
    messages = relationship(
        "Message",
        back_populates="chat",
        cascade="all, delete-orphan",
        order_by="Message.created_at"
    )

    def __repr__(self):
        return f"<Chat {self.title} (user={self.user_id})>"
