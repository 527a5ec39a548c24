"""
OpenAI embeddings for knowledge chunks and search queries.
"""
import asyncio
from typing import List, Optional
from openai import AsyncOpenAI
from loguru import logger

from copymode.core.config import settings
from copymode.core.exceptions import ConfigurationError


class EmbeddingService:
    """
    Embedding client using OpenAI text-embedding-3-small.

    - Vector dimension: 1536
    - Chunks are embedded in parallel batches; a failed chunk yields None
    """

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self.model = settings.OPENAI_EMBEDDING_MODEL
        self.dimensions = settings.EMBEDDING_DIMENSIONS
        self.batch_size = settings.EMBEDDING_BATCH_SIZE
        self._client = client

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            if not settings.OPENAI_API_KEY:
                raise ConfigurationError("OPENAI_API_KEY is not configured")
            self._client = AsyncOpenAI(api_key=settings.OPENAI_API_KEY)
        return self._client

    async def embed_text(self, text: str) -> List[float]:
        """
        Embed a single text.

        Raises:
            ConfigurationError: If no OpenAI key is set
            ValueError: If the API returns a vector of the wrong size
        """
        client = self._get_client()
        response = await client.embeddings.create(
            model=self.model,
            input=text,
            dimensions=self.dimensions,
        )
        embedding = response.data[0].embedding

        if len(embedding) != self.dimensions:
            raise ValueError(
                f"Embedding has {len(embedding)} dimensions, expected {self.dimensions}"
            )
        return embedding

    async def _embed_or_none(self, text: str) -> Optional[List[float]]:
        try:
            return await self.embed_text(text)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Error generating embedding: {e}")
            return None

    async def embed_chunks(self, chunks: List[str]) -> List[Optional[List[float]]]:
        """
        Embed chunks in bounded parallel batches.

        Returns:
            One entry per chunk, in order; None where embedding failed
        """
        embeddings: List[Optional[List[float]]] = []
        total_batches = (len(chunks) + self.batch_size - 1) // self.batch_size

        for i in range(0, len(chunks), self.batch_size):
            batch = chunks[i:i + self.batch_size]
            results = await asyncio.gather(*(self._embed_or_none(chunk) for chunk in batch))
            embeddings.extend(results)
            logger.debug(f"Processed embedding batch {i // self.batch_size + 1}/{total_batches}")

        return embeddings


# Singleton instance
embedding_service = EmbeddingService()
