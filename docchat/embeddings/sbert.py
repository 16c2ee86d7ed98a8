# docchat/embeddings/sbert.py
"""SentenceTransformers embedding backend."""

from __future__ import annotations

from typing import List, Sequence

from .base import Embedder


def resolve_model_id(model_name: str) -> str:
    """Bare names like `all-MiniLM-L6-v2` resolve to the sentence-transformers org."""
    return model_name if "/" in model_name else f"sentence-transformers/{model_name}"


class SentenceTransformersEmbedder(Embedder):
    """
    Embeddings via `sentence-transformers` (mean pooling, normalized).
    """

    def __init__(self, model_name: str = "all-MiniLM-L6-v2") -> None:
        """
        Load the model.

        Args:
            model_name: HuggingFace model id or bare sentence-transformers name.

        Raises:
            RuntimeError: If sentence-transformers is not installed.
        """
        try:
            from sentence_transformers import SentenceTransformer  # type: ignore
        except ImportError as e:
            raise RuntimeError("sentence-transformers is not installed. Install with `pip install docchat[st]`.") from e
        self.model_name = model_name
        self._model = SentenceTransformer(resolve_model_id(model_name))

    def embed(self, texts: List[str]) -> List[Sequence[float]]:
        """
        Embed texts into vectors.

        Args:
            texts: Input strings.

        Returns:
            Normalized embeddings aligned to input.
        """
        if not texts:
            return []
        return self._model.encode(list(texts), normalize_embeddings=True).tolist()
