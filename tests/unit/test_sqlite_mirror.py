"""
Tests for the SQLite mirror, alone and behind a VectorStore.
"""

import asyncio
from datetime import datetime, timezone

import numpy as np
import pytest

from conftest import make_chunks
from docchat.embeddings.hashing import HashingEmbedder
from docchat.vectordb.base import ChunkRecord
from docchat.vectordb.sqlite_mirror import SQLiteMirror, decode_embedding, encode_embedding
from docchat.vectordb.store import VectorStore

WHEN = datetime(2024, 5, 1, 12, 30, tzinfo=timezone.utc)


def _rec(i, text, vec):
    return ChunkRecord(id=i, text=text, embedding=vec, created_at=WHEN)


def test_embedding_blob_preserves_float32_values():
    vec = np.asarray([0.1, -0.25, 3.0], dtype=np.float32).tolist()
    assert decode_embedding(encode_embedding(vec)) == vec


def test_connect_creates_parent_directories(tmp_path):
    db = tmp_path / "nested" / "data" / "index.sqlite"

    async def run():
        mirror = SQLiteMirror(db)
        await mirror.connect()
        await mirror.close()

    asyncio.run(run())
    assert db.exists()


def test_insert_find_delete(tmp_path):
    async def run():
        mirror = SQLiteMirror(tmp_path / "index.sqlite")
        await mirror.connect()
        await mirror.insert_many([_rec(5, "five", [0.0, 1.0]), _rec(2, "two", [1.0, 0.0])])
        await mirror.insert_many([])
        found = await mirror.find_all_ordered_by_id()
        deleted = await mirror.delete_all()
        after = await mirror.find_all_ordered_by_id()
        await mirror.close()
        return found, deleted, after

    found, deleted, after = asyncio.run(run())
    assert [r.id for r in found] == [2, 5]
    assert found[0].text == "two"
    assert found[0].embedding == [1.0, 0.0]
    assert found[0].created_at == WHEN
    assert deleted == 2
    assert after == []


def test_insert_same_id_overwrites(tmp_path):
    async def run():
        mirror = SQLiteMirror(tmp_path / "index.sqlite")
        await mirror.connect()
        await mirror.insert_many([_rec(0, "old", [1.0])])
        await mirror.insert_many([_rec(0, "new", [0.5])])
        found = await mirror.find_all_ordered_by_id()
        await mirror.close()
        return found

    found = asyncio.run(run())
    assert [(r.id, r.text, r.embedding) for r in found] == [(0, "new", [0.5])]


def test_operations_require_connection(tmp_path):
    mirror = SQLiteMirror(tmp_path / "index.sqlite")

    with pytest.raises(RuntimeError, match="not connected"):
        asyncio.run(mirror.find_all_ordered_by_id())


def test_unwritable_path_degrades_store_to_memory(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")

    async def run():
        store = await VectorStore.open(lambda: HashingEmbedder(dim=4), durable=SQLiteMirror(blocker / "index.sqlite"))
        await store.ready()
        await store.add_documents(make_chunks("still works"))
        await store.close()
        return store

    store = asyncio.run(run())
    assert not store.connected
    assert store.get_stats()["total_chunks"] == 1


def test_store_survives_restart(tmp_path):
    db = tmp_path / "index.sqlite"

    async def first_process():
        store = await VectorStore.open(lambda: HashingEmbedder(dim=4), model_name="hashing", durable=SQLiteMirror(db))
        await store.ready()
        await store.add_documents(make_chunks("red apples", "green pears"))
        await store.add_documents(make_chunks("yellow bananas"))
        hits = await store.search("green pears", 3)
        await store.close()
        return hits

    async def second_process():
        store = await VectorStore.open(lambda: HashingEmbedder(dim=4), model_name="hashing", durable=SQLiteMirror(db))
        await store.ready()
        hits = await store.search("green pears", 3)
        stats = store.get_stats()
        await store.clear()
        await store.close()
        return hits, stats

    async def third_process():
        store = await VectorStore.open(lambda: HashingEmbedder(dim=4), durable=SQLiteMirror(db))
        await store.ready()
        stats = store.get_stats()
        await store.close()
        return stats

    before = asyncio.run(first_process())
    after, stats = asyncio.run(second_process())
    cleared = asyncio.run(third_process())

    assert stats == {"total_chunks": 3, "dimension": 4, "model_name": "hashing", "index_size": 3}
    assert [(h.chunk.id, h.chunk.text) for h in after] == [(h.chunk.id, h.chunk.text) for h in before]
    assert [h.score for h in after] == pytest.approx([h.score for h in before])
    assert after[0].chunk.text == "green pears"
    assert cleared["total_chunks"] == 0
