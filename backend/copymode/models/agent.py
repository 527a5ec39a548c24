"""
Agent model: an LLM persona used to generate copy.
"""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, JSON, Text, Float
from copymode.core.database import Base
import uuid


class Agent(Base):
    """Copywriting agent with system prompt, temperature and knowledge files."""

    __tablename__ = "agents"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)

    # Agent information
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    prompt = Column(Text, nullable=False)  # System instructions
    avatar = Column(String(500), nullable=True)

    # Model configuration
    temperature = Column(Float, default=0.7, nullable=False)

    # Uploaded knowledge: [{"name": "guide.pdf", "path": "<agent_id>/<uuid>.pdf"}]
    knowledge_files = Column(JSON, default=list, nullable=False)

    created_by = Column(String(36), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Agent {self.name} (temperature={self.temperature})>"
