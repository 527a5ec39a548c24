"""
Tutorial model: ordered YouTube videos shown to every user.
"""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, Integer, Boolean
from copymode.core.database import Base
import uuid


class Tutorial(Base):
    """Tutorial video, listed by order_index. Deleting only deactivates it."""

    __tablename__ = "tutorials"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    youtube_url = Column(String(500), nullable=False)
    thumbnail_url = Column(String(500), nullable=True)

    order_index = Column(Integer, nullable=False, default=1, index=True)
    is_active = Column(Boolean, default=True, nullable=False)

    created_by = Column(String(36), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<Tutorial {self.order_index}: {self.title}>"
