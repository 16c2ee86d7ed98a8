"""Docchat package.

Docchat is the retrieval engine behind a document chat service:
  1) Sentence-aligned text chunking
  2) Embedding storage with cosine-similarity search
  3) An optional SQLite mirror that survives restarts (rehydration)

Entry points:
  - Library: `docchat.chunking`, `docchat.vectordb`
  - CLI: `docchat`
"""

__all__ = ["__version__"]
__version__ = "0.1.0"
