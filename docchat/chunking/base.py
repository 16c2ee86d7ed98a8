"""Chunking interfaces."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional


@dataclass(frozen=True)
class Chunk:
    """A sentence-aligned fragment of a document.

    Attributes:
        id: Sequential id. The chunker numbers from 0; the vector store
            reassigns ids on insertion.
        text: Chunk content (never empty).
        sentence_count: Number of sentences joined into `text`.
        token_count: Number of whitespace-delimited tokens in those sentences.
    """

    id: int
    text: str
    sentence_count: int
    token_count: int


class Chunker:
    """Chunker interface."""

    def chunk_by_sentences(self, text: str, max_chunk_size: Optional[int] = None) -> List[Chunk]:
        """Split document text into chunks."""
        raise NotImplementedError
