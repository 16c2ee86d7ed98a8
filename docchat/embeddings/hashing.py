"""Deterministic pseudo-embeddings for offline use and tests."""

from __future__ import annotations

import hashlib
from typing import List, Sequence

import numpy as np

from .base import Embedder


def hash_embedding(text: str, dim: int = 16) -> np.ndarray:
    """Return a unit vector seeded from the SHA-256 of `text`."""
    digest = hashlib.sha256(text.encode("utf-8")).digest()
    seed = int.from_bytes(digest[:8], "big", signed=False)
    rng = np.random.default_rng(seed)
    vec = rng.normal(size=dim)
    norm = np.linalg.norm(vec) or 1.0
    return (vec / norm).astype(np.float32)


class HashingEmbedder(Embedder):
    """Identical text always maps to the identical vector; similarity is otherwise arbitrary."""

    def __init__(self, dim: int = 16, model_name: str = "hashing") -> None:
        self.dim = int(dim)
        self.model_name = model_name

    def embed(self, texts: List[str]) -> List[Sequence[float]]:
        return [hash_embedding(t, self.dim).tolist() for t in texts]
