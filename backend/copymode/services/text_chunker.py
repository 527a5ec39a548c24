"""
Heuristic text splitter for knowledge files.

Windows are bounded by a character count and cut at the most natural break
near the end of the window: paragraph, then sentence, then space.
"""
from typing import List, Optional
from loguru import logger

from copymode.core.config import settings


class TextChunker:
    """Splits extracted text into overlapping chunks."""

    # A paragraph/sentence break is only taken past this fraction of the window
    NATURAL_BREAK_RATIO = 0.7

    def __init__(
        self,
        max_chars: Optional[int] = None,
        min_chars: Optional[int] = None,
        overlap_chars: Optional[int] = None
    ):
        self.max_chars = max_chars or settings.MAX_CHUNK_CHARS
        self.min_chars = min_chars if min_chars is not None else settings.MIN_CHUNK_CHARS
        self.overlap_chars = overlap_chars if overlap_chars is not None else settings.OVERLAP_CHARS

        if self.overlap_chars >= self.max_chars:
            raise ValueError("overlap_chars must be smaller than max_chars")

    def _find_end(self, text: str, start: int) -> int:
        end = min(start + self.max_chars, len(text))
        if end >= len(text):
            return end

        paragraph_break = text.rfind("\n\n", 0, end)
        sentence_break = text.rfind(". ", 0, end)
        space_break = text.rfind(" ", 0, end)
        threshold = start + self.max_chars * self.NATURAL_BREAK_RATIO

        if paragraph_break > threshold:
            return paragraph_break + 2
        if sentence_break > threshold:
            return sentence_break + 2
        if space_break > start:
            return space_break + 1
        return end

    def split(self, text: str) -> List[str]:
        """
        Split text into chunks.

        Args:
            text: Raw extracted document text

        Returns:
            Trimmed chunks, each at least min_chars long
        """
        if not text:
            return []

        chunks: List[str] = []
        text_length = len(text)
        start = 0

        while start < text_length:
            end = self._find_end(text, start)

            chunk = text[start:end].strip()
            if len(chunk) >= self.min_chars:
                chunks.append(chunk)

            if end >= text_length:
                break

            next_start = end - self.overlap_chars
            if next_start <= start:
                next_start = start + self.max_chars // 4
                logger.debug(f"Chunker forced advance to {next_start}")
            start = next_start

            if text_length - start < self.min_chars:
                break

        logger.debug(f"Text chunked into {len(chunks)} chunk(s)")
        return chunks


def chunk_text(text: str) -> List[str]:
    """Split text with the configured chunk sizes."""
    return TextChunker().split(text)
