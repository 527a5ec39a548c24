"""
Unit tests for the knowledge text chunker.
"""
import pytest

from copymode.services.text_chunker import TextChunker, chunk_text


def words(count: int, word: str = "word") -> str:
    return " ".join([word] * count)


class TestTextChunker:
    """Size bounds, break preference, overlap and termination."""

    def test_empty_text_gives_no_chunks(self):
        assert TextChunker().split("") == []

    def test_text_below_minimum_is_dropped(self):
        assert TextChunker().split("short text " * 10) == []

    def test_text_within_one_window_is_single_trimmed_chunk(self):
        text = "  " + words(100) + "\n"
        chunks = TextChunker().split(text)

        assert chunks == [text.strip()]

    def test_chunks_respect_size_bounds(self):
        text = ". ".join(words(12, "sentence") for _ in range(200))
        chunker = TextChunker()
        chunks = chunker.split(text)

        assert len(chunks) > 1
        for chunk in chunks:
            assert chunker.min_chars <= len(chunk) <= chunker.max_chars

    def test_consecutive_chunks_overlap(self):
        text = words(2000)
        chunks = TextChunker().split(text)

        assert len(chunks) > 1
        for previous, current in zip(chunks, chunks[1:]):
            assert current[:50] in previous

    def test_prefers_paragraph_break_late_in_window(self):
        first = words(400)  # 1999 chars, past 70% of the window
        text = first + "\n\n" + words(400, "more")
        chunks = TextChunker().split(text)

        assert chunks[0] == first

    def test_ignores_paragraph_break_early_in_window(self):
        text = words(200) + "\n\n" + words(600, "more")
        chunks = TextChunker().split(text)

        # Break at ~1000 chars is before 70% of 2500, so a later space is used
        assert len(chunks[0]) > 2000

    def test_prefers_sentence_break_over_space(self):
        first = words(380) + "."
        text = first + " " + words(400, "next")
        chunks = TextChunker().split(text)

        assert chunks[0] == first

    def test_text_without_spaces_is_cut_at_window(self):
        text = "a" * 6000
        chunker = TextChunker()
        chunks = chunker.split(text)

        assert len(chunks[0]) == chunker.max_chars
        assert all(len(chunk) <= chunker.max_chars for chunk in chunks)

    def test_always_terminates_with_small_windows(self):
        chunker = TextChunker(max_chars=50, min_chars=5, overlap_chars=45)
        chunks = chunker.split("x" * 1000)

        assert chunks
        assert all(len(chunk) <= 50 for chunk in chunks)

    def test_stops_when_remaining_text_is_below_minimum(self):
        chunker = TextChunker(max_chars=100, min_chars=30, overlap_chars=10)
        chunks = chunker.split("b" * 215)

        # Windows at 0, 90 and 180; the last 35 chars form the final chunk
        assert [len(chunk) for chunk in chunks] == [100, 100, 35]

    def test_no_overlap_only_tail_after_reaching_the_end(self):
        chunker = TextChunker(max_chars=100, min_chars=30, overlap_chars=40)
        chunks = chunker.split("c" * 150)

        # The second window ends the text; its last 40 chars are not repeated
        assert [len(chunk) for chunk in chunks] == [100, 90]

    def test_overlap_must_be_smaller_than_window(self):
        with pytest.raises(ValueError):
            TextChunker(max_chars=100, overlap_chars=100)

    def test_module_helper_uses_configured_sizes(self):
        text = words(2000)
        assert chunk_text(text) == TextChunker().split(text)
