"""Embedding backends."""

from .base import Embedder, l2_normalize

__all__ = ["Embedder", "l2_normalize", "make_embedder"]


def make_embedder(backend: str, model: str, ollama_host: str = "http://localhost:11434") -> Embedder:
    """
    Create an embedding backend by name.

    Args:
        backend: "sbert", "ollama" or "hashing".
        model: Model name for the backend.
        ollama_host: Ollama base URL (ollama backend only).

    Returns:
        Embedder instance.

    Raises:
        ValueError: If the backend is unknown.
    """
    if backend == "sbert":
        from .sbert import SentenceTransformersEmbedder

        return SentenceTransformersEmbedder(model)
    if backend == "ollama":
        from .ollama import OllamaEmbedder

        return OllamaEmbedder(host=ollama_host, model=model)
    if backend == "hashing":
        from .hashing import HashingEmbedder

        return HashingEmbedder(model_name=model)
    raise ValueError(f"Unknown embedder: {backend}")
