"""
Content type model: the output format requested from the agent.
"""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from copymode.core.database import Base
import uuid


class ContentType(Base):
    """Target format or channel for generated copy (e.g. "Instagram post")."""

    __tablename__ = "content_types"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    avatar = Column(String(500), nullable=True)

    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="content_types")

    def __repr__(self):
        return f"<ContentType {self.name}>"
