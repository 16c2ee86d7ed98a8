"""Vector storage: in-memory store plus optional durable mirror."""

from .base import ChunkRecord, DurableStore, SearchHit
from .sqlite_mirror import SQLiteMirror
from .store import VectorStore, cosine_similarity

__all__ = ["ChunkRecord", "DurableStore", "SearchHit", "SQLiteMirror", "VectorStore", "cosine_similarity"]
