"""
Vector search service using pgvector for RAG.
"""
from typing import List, Dict, Any, Optional
from sqlalchemy import delete, text
from sqlalchemy.ext.asyncio import AsyncSession
from loguru import logger

from copymode.models.knowledge import KnowledgeChunk
from copymode.services.embedding_service import embedding_service
from copymode.services.text_chunker import TextChunker
from copymode.core.config import settings


class VectorService:
    """Service for knowledge ingestion and similarity search."""

    def __init__(self):
        self.embeddings = embedding_service
        self.chunker = TextChunker()

    async def process_text(
        self,
        db: AsyncSession,
        agent_id: str,
        text_content: str,
        file_name: Optional[str] = None,
        file_path: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Chunk, embed and store the text of one knowledge file.

        Chunks whose embedding fails are skipped.

        Args:
            db: Database session
            agent_id: Owning agent
            text_content: Extracted file text
            file_name: Original file name
            file_path: Storage path (defaults to the file name)

        Returns:
            Dict with 'chunks_stored' and a status 'message'
        """
        if not text_content.strip():
            return {"chunks_stored": 0, "message": "Empty file processed."}

        chunks = self.chunker.split(text_content)
        if not chunks:
            return {"chunks_stored": 0, "message": "File processed, no valid chunks."}

        logger.info(f"Generating embeddings for {len(chunks)} chunks (agent={agent_id}, file={file_name or 'N/A'})")
        embeddings = await self.embeddings.embed_chunks(chunks)

        rows = [
            KnowledgeChunk(
                agent_id=agent_id,
                file_path=file_path or file_name or "N/A",
                original_file_name=file_name,
                chunk_text=chunk,
                embedding=embedding
            )
            for chunk, embedding in zip(chunks, embeddings)
            if embedding is not None
        ]
        logger.info(f"Generated {len(rows)} valid embeddings out of {len(chunks)} chunks")

        if not rows:
            return {"chunks_stored": 0, "message": "File processed, but no valid embeddings."}

        batch_size = settings.CHUNK_INSERT_BATCH_SIZE
        for i in range(0, len(rows), batch_size):
            db.add_all(rows[i:i + batch_size])
            await db.flush()

        await db.commit()
        logger.info(f"Saved {len(rows)} chunks for agent {agent_id}")
        return {"chunks_stored": len(rows), "message": "File saved successfully."}

    async def search_similar(
        self,
        db: AsyncSession,
        agent_id: str,
        query: str,
        match_threshold: Optional[float] = None,
        match_count: Optional[int] = None
    ) -> List[Dict[str, Any]]:
        """
        Search an agent's knowledge chunks by vector similarity.

        Args:
            db: Database session
            agent_id: Agent whose chunks are searched
            query: Query text
            match_threshold: Minimum cosine similarity
            match_count: Number of results to return

        Returns:
            List of matching chunks with similarity scores
        """
        match_threshold = match_threshold if match_threshold is not None else settings.MATCH_THRESHOLD
        match_count = match_count if match_count is not None else settings.MATCH_COUNT

        query_embedding = await self.embeddings.embed_text(query)

        # match_knowledge_chunks is created by init_db; <=> is cosine distance
        result = await db.execute(
            text("""
                SELECT id, agent_id, original_file_name, chunk_text, similarity
                FROM match_knowledge_chunks(
                    :agent_id,
                    CAST(:query_embedding AS vector),
                    :threshold,
                    :limit
                )
            """),
            {
                "agent_id": agent_id,
                "query_embedding": str(query_embedding),
                "threshold": match_threshold,
                "limit": match_count
            }
        )

        rows = result.fetchall()
        logger.debug(f"match_knowledge_chunks returned {len(rows)} rows for agent {agent_id}")

        return [
            {
                "id": row[0],
                "agent_id": row[1],
                "original_file_name": row[2],
                "chunk_text": row[3],
                "similarity": float(row[4])
            }
            for row in rows
        ]

    async def delete_agent_chunks(self, db: AsyncSession, agent_id: str) -> int:
        """Delete all chunks of an agent. Returns the number deleted."""
        result = await db.execute(
            delete(KnowledgeChunk).where(KnowledgeChunk.agent_id == agent_id)
        )
        await db.commit()
        return result.rowcount

    async def delete_file_chunks(self, db: AsyncSession, agent_id: str, file_path: str) -> int:
        """Delete the chunks that came from one knowledge file."""
        result = await db.execute(
            delete(KnowledgeChunk)
            .where(KnowledgeChunk.agent_id == agent_id)
            .where(KnowledgeChunk.file_path == file_path)
        )
        await db.commit()
        return result.rowcount

    async def purge_all_chunks(self, db: AsyncSession) -> int:
        """Clear the whole chunk table."""
        result = await db.execute(delete(KnowledgeChunk))
        await db.commit()
        logger.warning(f"Purged {result.rowcount} knowledge chunks")
        return result.rowcount


# Singleton instance
vector_service = VectorService()
