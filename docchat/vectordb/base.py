"""Vector store data types and the durable mirror interface.

The in-memory `VectorStore` is authoritative while the process runs. A
`DurableStore` only mirrors it so a restarted process can rehydrate.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import List

from ..chunking.base import Chunk


@dataclass
class SearchHit:
    """A retrieved chunk with its cosine similarity to the query."""

    chunk: Chunk
    score: float


@dataclass
class ChunkRecord:
    """A chunk as it is persisted in the mirror.

    Attributes:
        id: Chunk id assigned by the vector store.
        text: Chunk content.
        embedding: Unit vector as plain floats.
        created_at: UTC insertion time.
    """

    id: int
    text: str
    embedding: List[float]
    created_at: datetime


class DurableStore:
    """Durable mirror interface.

    Implementations may raise from any method; the vector store catches and
    logs every failure.
    """

    async def connect(self) -> None:
        """Open the backing store and prepare its schema."""
        raise NotImplementedError

    async def insert_many(self, records: List[ChunkRecord]) -> None:
        """Insert records keyed by id."""
        raise NotImplementedError

    async def delete_all(self) -> int:
        """Delete every record and return how many were removed."""
        raise NotImplementedError

    async def find_all_ordered_by_id(self) -> List[ChunkRecord]:
        """Return all records, ascending by id."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release the connection."""
        raise NotImplementedError
