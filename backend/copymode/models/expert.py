"""
Expert model: business context injected into prompts.
"""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from copymode.core.database import Base
import uuid


class Expert(Base):
    """Reusable business profile owned by a user."""

    __tablename__ = "experts"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)

    name = Column(String(255), nullable=False)
    niche = Column(Text, nullable=True)
    target_audience = Column(Text, nullable=True)
    deliverables = Column(Text, nullable=True)
    benefits = Column(Text, nullable=True)
    objections = Column(Text, nullable=True)
    avatar = Column(String(500), nullable=True)

    user_id = Column(String(36), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    user = relationship("User", back_populates="experts")

    def __repr__(self):
        return f"<Expert {self.name} (user={self.user_id})>"
