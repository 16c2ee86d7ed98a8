"""Text chunking."""

from .base import Chunk, Chunker
from .sentences import SentenceChunker

__all__ = ["Chunk", "Chunker", "SentenceChunker"]
