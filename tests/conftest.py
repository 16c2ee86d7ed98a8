"""
Shared test fixtures for pytest.
"""

from __future__ import annotations

import asyncio
from typing import Dict, List, Optional, Sequence

import numpy as np
import pytest

from docchat.chunking.base import Chunk
from docchat.embeddings.base import Embedder
from docchat.embeddings.hashing import HashingEmbedder
from docchat.vectordb.base import ChunkRecord, DurableStore


class TableEmbedder(Embedder):
    """Looks vectors up by text; unknown text gets `default`."""

    def __init__(self, table: Dict[str, Sequence[float]], default: Sequence[float] = (0.0, 0.0, 1.0)) -> None:
        self.table = {k: self._unit(v) for k, v in table.items()}
        self.default = self._unit(default)
        self.model_name = "table"
        self.calls: List[List[str]] = []

    @staticmethod
    def _unit(v: Sequence[float]) -> List[float]:
        arr = np.asarray(v, dtype=np.float32)
        n = np.linalg.norm(arr)
        return (arr / n).tolist() if n else arr.tolist()

    def embed(self, texts: List[str]) -> List[Sequence[float]]:
        self.calls.append(list(texts))
        return [self.table.get(t, self.default) for t in texts]


class FailingEmbedder(Embedder):
    model_name = "broken"

    def embed(self, texts: List[str]) -> List[Sequence[float]]:
        raise ConnectionError("embedding backend unavailable")


class ShortEmbedder(Embedder):
    """Returns one vector fewer than requested."""

    model_name = "short"

    def embed(self, texts: List[str]) -> List[Sequence[float]]:
        return [[1.0, 0.0]] * (len(texts) - 1)


class FakeMirror(DurableStore):
    """In-memory DurableStore with switchable failures."""

    def __init__(
        self,
        records: Optional[List[ChunkRecord]] = None,
        fail_connect: bool = False,
        fail_insert: bool = False,
        fail_delete: bool = False,
        fail_load: bool = False,
        delay: float = 0.0,
    ) -> None:
        self.records: Dict[int, ChunkRecord] = {r.id: r for r in records or []}
        self.fail_connect = fail_connect
        self.fail_insert = fail_insert
        self.fail_delete = fail_delete
        self.fail_load = fail_load
        self.delay = delay
        self.is_connected = False
        self.closed = False
        self.ops: List[str] = []

    async def connect(self) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail_connect:
            raise ConnectionError("mirror unreachable")
        self.is_connected = True

    async def insert_many(self, records: List[ChunkRecord]) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.ops.append("insert")
        if self.fail_insert:
            raise IOError("disk full")
        for r in records:
            self.records[r.id] = r

    async def delete_all(self) -> int:
        if self.delay:
            await asyncio.sleep(self.delay)
        self.ops.append("delete")
        if self.fail_delete:
            raise IOError("locked")
        n = len(self.records)
        self.records.clear()
        return n

    async def find_all_ordered_by_id(self) -> List[ChunkRecord]:
        if self.fail_load:
            raise IOError("corrupt")
        return [self.records[k] for k in sorted(self.records)]

    async def close(self) -> None:
        self.closed = True


def make_chunks(*texts: str) -> List[Chunk]:
    return [Chunk(id=i, text=t, sentence_count=1, token_count=len(t.split())) for i, t in enumerate(texts)]


@pytest.fixture
def hashing_factory():
    calls = []

    def factory():
        calls.append(1)
        return HashingEmbedder(dim=8)

    factory.calls = calls
    return factory
