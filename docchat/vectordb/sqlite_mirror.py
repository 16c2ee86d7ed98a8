"""SQLite mirror for the vector store (local-first, zero extra services).

Storage:
  - One row per chunk: id, text, created_at
  - Embeddings as float32 blobs in the same row

All sqlite3 calls run in a worker thread via `asyncio.to_thread`, serialized
by a lock around a single connection.
"""

from __future__ import annotations

import asyncio
import sqlite3
import threading
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Union

import numpy as np

from .base import ChunkRecord, DurableStore


def _ensure_db(conn: sqlite3.Connection) -> None:
    cur = conn.cursor()
    cur.execute(
        """
        CREATE TABLE IF NOT EXISTS chunks (
            id INTEGER PRIMARY KEY,
            text TEXT NOT NULL,
            embedding BLOB NOT NULL,
            dim INTEGER NOT NULL,
            created_at TEXT NOT NULL
        );
        """
    )
    conn.commit()


def encode_embedding(vec: List[float]) -> bytes:
    return np.asarray(vec, dtype=np.float32).tobytes()


def decode_embedding(blob: bytes) -> List[float]:
    return np.frombuffer(blob, dtype=np.float32).tolist()


class SQLiteMirror(DurableStore):
    """Durable mirror backed by a single SQLite file."""

    def __init__(self, db_path: Union[str, Path], timeout: float = 5.0) -> None:
        self.db_path = Path(db_path)
        self.timeout = timeout
        self._conn: Optional[sqlite3.Connection] = None
        self._lock = threading.Lock()

    def _require_conn(self) -> sqlite3.Connection:
        if self._conn is None:
            raise RuntimeError(f"SQLite mirror {self.db_path} is not connected")
        return self._conn

    def _connect_sync(self) -> None:
        if str(self.db_path) != ":memory:":
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path), timeout=self.timeout, check_same_thread=False)
        try:
            _ensure_db(conn)
        except sqlite3.Error:
            conn.close()
            raise
        with self._lock:
            self._conn = conn

    def _insert_sync(self, records: List[ChunkRecord]) -> None:
        rows = [
            (r.id, r.text, encode_embedding(r.embedding), len(r.embedding), r.created_at.isoformat())
            for r in records
        ]
        with self._lock:
            conn = self._require_conn()
            conn.executemany(
                """
                INSERT INTO chunks(id, text, embedding, dim, created_at)
                VALUES(?,?,?,?,?)
                ON CONFLICT(id) DO UPDATE SET
                    text=excluded.text,
                    embedding=excluded.embedding,
                    dim=excluded.dim,
                    created_at=excluded.created_at
                """,
                rows,
            )
            conn.commit()

    def _delete_all_sync(self) -> int:
        with self._lock:
            conn = self._require_conn()
            cur = conn.execute("DELETE FROM chunks")
            conn.commit()
            return int(cur.rowcount)

    def _find_all_sync(self) -> List[ChunkRecord]:
        with self._lock:
            conn = self._require_conn()
            rows = conn.execute("SELECT id, text, embedding, created_at FROM chunks ORDER BY id ASC").fetchall()
        return [
            ChunkRecord(
                id=int(chunk_id),
                text=text,
                embedding=decode_embedding(blob),
                created_at=datetime.fromisoformat(created_at),
            )
            for (chunk_id, text, blob, created_at) in rows
        ]

    def _close_sync(self) -> None:
        with self._lock:
            conn, self._conn = self._conn, None
        if conn is not None:
            conn.close()

    async def connect(self) -> None:
        await asyncio.to_thread(self._connect_sync)

    async def insert_many(self, records: List[ChunkRecord]) -> None:
        if not records:
            return
        await asyncio.to_thread(self._insert_sync, records)

    async def delete_all(self) -> int:
        return await asyncio.to_thread(self._delete_all_sync)

    async def find_all_ordered_by_id(self) -> List[ChunkRecord]:
        return await asyncio.to_thread(self._find_all_sync)

    async def close(self) -> None:
        await asyncio.to_thread(self._close_sync)
