# docchat/chunking/sentences.py
"""Sentence chunker (word-count bounded, optional one-sentence overlap)."""

from __future__ import annotations

import re
from typing import List, Optional

from .base import Chunk, Chunker

_TERMINATORS = re.compile(r"[.!?]")


def split_sentences(text: str) -> List[str]:
    """
    Split text on `.`, `!` and `?`, dropping empty fragments.

    Args:
        text: Raw document text.

    Returns:
        Trimmed, non-empty sentences in document order.
    """
    return [s.strip() for s in _TERMINATORS.split(text) if s.strip()]


def count_tokens(sentence: str) -> int:
    """Number of whitespace-delimited tokens in a sentence."""
    return len(sentence.split())


class SentenceChunker(Chunker):
    """
    Chunker that greedily packs whole sentences up to a token budget.

    Attributes:
        chunk_size: Default token budget per chunk.
        overlap: When > 0, the last sentence of a closed multi-sentence
            chunk is repeated at the start of the next chunk.
    """

    def __init__(self, chunk_size: int = 1000, overlap: int = 200) -> None:
        if int(chunk_size) <= 0:
            raise ValueError("chunk_size must be positive")
        if int(overlap) < 0:
            raise ValueError("overlap must be non-negative")
        self.chunk_size = int(chunk_size)
        self.overlap = int(overlap)

    def chunk_by_sentences(self, text: str, max_chunk_size: Optional[int] = None) -> List[Chunk]:
        """
        Split text into sentence-aligned chunks.

        A sentence longer than the budget is never split; it becomes a chunk
        of its own.

        Args:
            text: Full document text.
            max_chunk_size: Token budget override for this call.

        Returns:
            Chunks with ids 0..n-1.

        Raises:
            ValueError: If the effective budget is not positive.
        """
        limit = self.chunk_size if max_chunk_size is None else int(max_chunk_size)
        if limit <= 0:
            raise ValueError("max_chunk_size must be positive")

        chunks: List[Chunk] = []
        current: List[str] = []
        size = 0

        def emit() -> None:
            chunks.append(
                Chunk(
                    id=len(chunks),
                    text=". ".join(current) + ".",
                    sentence_count=len(current),
                    token_count=size,
                )
            )

        for sentence in split_sentences(text):
            sent_size = count_tokens(sentence)
            if size + sent_size > limit and current:
                emit()
                if self.overlap > 0 and len(current) > 1:
                    current = current[-1:]
                    size = count_tokens(current[0])
                    # carried sentence would push this chunk over budget
                    if size + sent_size > limit:
                        current = []
                        size = 0
                else:
                    current = []
                    size = 0
            current.append(sentence)
            size += sent_size

        if current:
            emit()
        return chunks
