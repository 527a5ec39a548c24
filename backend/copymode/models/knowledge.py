"""
Agent knowledge chunks with pgvector embeddings for RAG.
"""
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text, Index
from pgvector.sqlalchemy import Vector
from copymode.core.database import Base
from copymode.core.config import settings
import uuid


class KnowledgeChunk(Base):
    """Chunk of an agent's knowledge file with its embedding."""

    __tablename__ = "agent_knowledge_chunks"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()), index=True)

    agent_id = Column(String(36), nullable=False, index=True)

    # Content
    chunk_text = Column(Text, nullable=False)
    embedding = Column(Vector(settings.EMBEDDING_DIMENSIONS), nullable=False)

    # Source metadata
    file_path = Column(String(500), nullable=False)  # Storage path or "N/A"
    original_file_name = Column(String(255), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    def __repr__(self):
        return f"<KnowledgeChunk {self.id} (agent={self.agent_id})>"


# Create index for vector similarity search using cosine distance
Index(
    "idx_agent_knowledge_embedding",
    KnowledgeChunk.embedding,
    postgresql_using="ivfflat",
    postgresql_with={"lists": 100},
    postgresql_ops={"embedding": "vector_cosine_ops"}
)
