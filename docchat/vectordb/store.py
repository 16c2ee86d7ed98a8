"""In-memory vector store with an optional durable mirror.

Storage:
  - Chunks and float32 embeddings in two parallel in-process lists
  - Optionally mirrored to a `DurableStore` (e.g. `SQLiteMirror`)

Retrieval:
  - Exact cosine similarity over all stored vectors in NumPy.

Persistence policy:
  - Memory is always written first and is the source of truth.
  - Mirror writes/deletes run as background tasks, chained so they reach the
    mirror in call order. Their failures are logged and never raised.
  - On startup the mirror is loaded into memory, but only if the store has
    not been written to (added to or cleared) in the meantime. Otherwise the
    load is skipped and the mirror is rewritten from memory.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Set

import numpy as np

from ..chunking.base import Chunk
from ..chunking.sentences import split_sentences
from ..embeddings.base import Embedder
from .base import ChunkRecord, DurableStore, SearchHit

logger = logging.getLogger(__name__)


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """
    Cosine similarity over the overlapping prefix of two vectors.

    Args:
        a: First vector.
        b: Second vector.

    Returns:
        `dot(a, b) / (|a| * |b|)`, or 0.0 when either norm is zero.
    """
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    n = min(va.shape[0], vb.shape[0])
    va, vb = va[:n], vb[:n]
    na = float(np.linalg.norm(va))
    nb = float(np.linalg.norm(vb))
    if na == 0.0 or nb == 0.0:
        return 0.0
    return float(np.dot(va, vb) / (na * nb))


class VectorStore:
    """
    Chunk + embedding store for a single corpus.

    Callers are expected to serialize `add_documents` and `clear`; the
    "read max id, then append" step is not locked.

    Attributes:
        model_name: Embedding model name reported by `get_stats`.
        max_chunks: Soft cap. Exceeding it logs a warning; nothing is evicted.
    """

    def __init__(
        self,
        embedder_factory: Callable[[], Embedder],
        model_name: str = "",
        durable: Optional[DurableStore] = None,
        max_chunks: int = 0,
    ) -> None:
        self.model_name = model_name
        self.max_chunks = max(0, int(max_chunks))
        self._embedder_factory = embedder_factory
        self._embedder_task: Optional["asyncio.Future[Embedder]"] = None
        self._chunks: List[Chunk] = []
        self._embeddings: List[np.ndarray] = []
        self._durable = durable
        self._connected = False
        self._connect_task: Optional["asyncio.Task[None]"] = None
        self._mirror_tail: Optional["asyncio.Task[None]"] = None
        self._pending: Set["asyncio.Task[None]"] = set()
        # bumped by every add/clear; rehydration only applies to an untouched store
        self._writes = 0

    @classmethod
    async def open(
        cls,
        embedder_factory: Callable[[], Embedder],
        model_name: str = "",
        durable: Optional[DurableStore] = None,
        max_chunks: int = 0,
    ) -> "VectorStore":
        """
        Create a store and start connecting its mirror in the background.

        The connection is not awaited; use `ready()` for that.
        """
        store = cls(embedder_factory, model_name=model_name, durable=durable, max_chunks=max_chunks)
        store.start()
        return store

    @property
    def connected(self) -> bool:
        """True once the durable mirror has connected."""
        return self._connected

    def start(self) -> None:
        """Schedule the mirror connection. Must be called from a running event loop."""
        if self._durable is None or self._connect_task is not None:
            return
        self._connect_task = asyncio.ensure_future(self._connect_durable())

    async def ready(self) -> None:
        """Wait for the mirror connection (and rehydration) to finish."""
        self.start()
        if self._connect_task is not None:
            await asyncio.shield(self._connect_task)

    async def _connect_durable(self) -> None:
        assert self._durable is not None
        try:
            await self._durable.connect()
        except Exception:
            logger.exception("Durable store connection failed; continuing with in-memory storage only")
            return
        self._connected = True
        logger.info("Connected durable store %s", type(self._durable).__name__)
        if self._writes:
            logger.info(
                "Skipping durable store load: store was modified before connecting (%d chunks in memory)",
                len(self._chunks),
            )
            self._resync_mirror()
            return
        await self._rehydrate()

    async def _rehydrate(self) -> None:
        assert self._durable is not None
        writes = self._writes
        try:
            records = await self._durable.find_all_ordered_by_id()
        except Exception:
            logger.exception("Failed to load chunks from durable store")
            return

        if self._writes != writes:
            logger.info(
                "Skipping durable store load: store was modified while loading (%d chunks in memory)",
                len(self._chunks),
            )
            self._resync_mirror()
            return
        if not records:
            logger.info("No chunks in durable store to load")
            return

        self._chunks = [
            Chunk(
                id=r.id,
                text=r.text,
                sentence_count=len(split_sentences(r.text)),
                token_count=len(r.text.split()),
            )
            for r in records
        ]
        self._embeddings = [np.asarray(r.embedding, dtype=np.float32) for r in records]
        logger.info("Loaded %d chunks from durable store", len(self._chunks))

    async def _get_embedder(self) -> Embedder:
        """Build the embedder once; concurrent first callers share one task."""
        if self._embedder_task is None:
            self._embedder_task = asyncio.ensure_future(asyncio.to_thread(self._embedder_factory))
        task = self._embedder_task
        try:
            return await asyncio.shield(task)
        except Exception:
            # forget the failure so a later call can retry
            if self._embedder_task is task:
                self._embedder_task = None
            raise

    def _mirror(self, op: str, action: Callable[[], Awaitable[Any]]) -> None:
        """Run a best-effort mirror operation after any earlier ones."""
        previous = self._mirror_tail

        async def run() -> None:
            if previous is not None:
                await asyncio.wait([previous])
            try:
                await action()
            except Exception:
                logger.exception("Durable store %s failed; in-memory state is unaffected", op)

        task = asyncio.ensure_future(run())
        self._mirror_tail = task
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    @staticmethod
    def _to_records(chunks: Sequence[Chunk], arrays: Sequence[np.ndarray]) -> List[ChunkRecord]:
        now = datetime.now(timezone.utc)
        return [ChunkRecord(id=c.id, text=c.text, embedding=a.tolist(), created_at=now) for c, a in zip(chunks, arrays)]

    def _resync_mirror(self) -> None:
        """Replace the mirror's contents with a snapshot of memory."""
        durable = self._durable
        assert durable is not None
        records = self._to_records(self._chunks, self._embeddings)

        async def resync() -> None:
            deleted = await durable.delete_all()
            await durable.insert_many(records)
            logger.info("Rewrote durable store from memory: %d stale chunks dropped, %d written", deleted, len(records))

        self._mirror("resync", resync)

    def _next_id(self) -> int:
        return max(c.id for c in self._chunks) + 1 if self._chunks else 0

    async def add_documents(self, chunks: Sequence[Chunk]) -> None:
        """
        Embed chunks and append them to the store.

        Ids are reassigned from `max(existing id) + 1`. Memory is updated
        before the mirror write is scheduled.

        Args:
            chunks: Chunks to add, in order.

        Raises:
            ValueError: If the embedder returns a different number of vectors.
            Exception: Any embedding backend failure propagates unchanged.
        """
        if not chunks:
            logger.warning("add_documents called with no chunks")
            return

        logger.debug("Adding %d chunks; current total %d", len(chunks), len(self._chunks))
        embedder = await self._get_embedder()
        vectors = await asyncio.to_thread(embedder.embed, [c.text for c in chunks])
        if len(vectors) != len(chunks):
            raise ValueError(f"Embedder returned {len(vectors)} vectors for {len(chunks)} chunks")

        start_id = self._next_id()
        stored = [replace(c, id=start_id + i) for i, c in enumerate(chunks)]
        arrays = [np.asarray(v, dtype=np.float32) for v in vectors]
        self._chunks.extend(stored)
        self._embeddings.extend(arrays)
        self._writes += 1
        logger.info("Added %d chunks; total now %d", len(stored), len(self._chunks))

        if self.max_chunks and len(self._chunks) > self.max_chunks:
            logger.warning("Vector store holds %d chunks, above the soft cap of %d", len(self._chunks), self.max_chunks)

        if not self._connected:
            logger.debug("Durable store not connected; chunks kept in memory only")
            return

        records = self._to_records(stored, arrays)
        durable = self._durable
        assert durable is not None
        self._mirror("insert", lambda: durable.insert_many(records))

    def _scores(self, query_vec: np.ndarray) -> np.ndarray:
        dims = {v.shape[0] for v in self._embeddings}
        if dims != {query_vec.shape[0]}:
            return np.array([cosine_similarity(query_vec, v) for v in self._embeddings], dtype=np.float64)

        matrix = np.vstack(self._embeddings).astype(np.float64)
        q = query_vec.astype(np.float64)
        dots = matrix @ q
        norms = np.linalg.norm(matrix, axis=1) * np.linalg.norm(q)
        return np.divide(dots, norms, out=np.zeros_like(dots), where=norms > 0)

    async def search(self, query: str, top_k: int = 5) -> List[SearchHit]:
        """
        Return the chunks most similar to `query`, best first.

        Equal scores keep insertion order.

        Args:
            query: Query text.
            top_k: Maximum number of hits.

        Returns:
            At most `min(top_k, total_chunks)` hits.
        """
        if not self._chunks or top_k <= 0:
            return []

        embedder = await self._get_embedder()
        query_vec = np.asarray(await asyncio.to_thread(embedder.embed_one, query), dtype=np.float32)

        if not self._chunks:
            return []
        scores = self._scores(query_vec)
        order = np.argsort(-scores, kind="stable")[: min(int(top_k), len(scores))]
        return [SearchHit(chunk=self._chunks[i], score=float(scores[i])) for i in order]

    async def clear(self) -> None:
        """Drop all chunks and embeddings, then clear the mirror in the background."""
        self._chunks = []
        self._embeddings = []
        self._writes += 1
        logger.info("Cleared in-memory vector store")

        if not self._connected:
            return
        durable = self._durable
        assert durable is not None

        async def delete_all() -> None:
            deleted = await durable.delete_all()
            logger.info("Cleared %d chunks from durable store", deleted)

        self._mirror("clear", delete_all)

    def get_stats(self) -> Dict[str, Any]:
        """Return basic stats about the store."""
        return {
            "total_chunks": len(self._chunks),
            "dimension": int(self._embeddings[0].shape[0]) if self._embeddings else 0,
            "model_name": self.model_name,
            "index_size": len(self._embeddings),
        }

    async def flush(self) -> None:
        """Wait until every scheduled mirror operation has finished."""
        while self._pending:
            await asyncio.wait(list(self._pending))

    async def close(self) -> None:
        """Finish pending mirror work and close the durable store."""
        if self._connect_task is not None:
            await asyncio.wait([self._connect_task])
        await self.flush()
        if self._durable is not None and self._connected:
            try:
                await self._durable.close()
            except Exception:
                logger.exception("Failed to close durable store")
            self._connected = False
