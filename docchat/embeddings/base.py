# docchat/embeddings/base.py
"""Embedding interfaces."""

from __future__ import annotations

from typing import List, Sequence

import numpy as np


def l2_normalize(vectors: Sequence[Sequence[float]]) -> List[List[float]]:
    """
    Scale each vector to unit length. Zero vectors are returned unchanged.

    Args:
        vectors: Row vectors.

    Returns:
        Normalized vectors as plain lists.
    """
    if len(vectors) == 0:
        return []
    arr = np.asarray(vectors, dtype=np.float32)
    norms = np.linalg.norm(arr, axis=1, keepdims=True)
    norms[norms == 0] = 1.0
    return (arr / norms).tolist()


class Embedder:
    """
    Embedder interface for turning text into unit-length vectors.

    Attributes:
        model_name: Name reported in vector store stats.
    """

    model_name: str = ""

    def embed(self, texts: List[str]) -> List[Sequence[float]]:
        """
        Return embeddings for each input text.

        Args:
            texts: List of input strings.

        Returns:
            L2-normalized vectors aligned to `texts`.

        Raises:
            NotImplementedError: If not implemented.
        """
        raise NotImplementedError

    def embed_one(self, text: str) -> Sequence[float]:
        """Embed a single query string."""
        return self.embed([text])[0]
