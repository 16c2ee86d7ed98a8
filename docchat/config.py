"""Configuration models and loaders.

This module centralizes:
  - Chunking options (size limit, overlap)
  - Vector store options (embedding model, SQLite mirror path, soft cap)
  - Runtime/backend options (top-k, upload size limit, embedder backend)

Values come from (in increasing priority):
  1) dataclass defaults
  2) environment variables
  3) an optional JSON settings file (`.docchat/settings.json` by default)

Terminology:
  - Chunk: a sentence-aligned fragment of an uploaded document.
  - Mirror: the optional SQLite copy of the in-memory vector store.
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = Path(".docchat") / "settings.json"
DEFAULT_SQLITE_PATH = Path("data") / "index.sqlite"


@dataclass
class ChunkOptions:
    """Options for sentence chunking.

    Attributes:
        chunk_size: Maximum chunk size in whitespace-delimited tokens.
        chunk_overlap: When > 0, the last sentence of a closed chunk seeds the next one.
    """

    chunk_size: int = 1000
    chunk_overlap: int = 200


@dataclass
class StoreOptions:
    """Options for the vector store and its durable mirror."""

    embedding_model: str = "all-MiniLM-L6-v2"
    sqlite_path: str = str(DEFAULT_SQLITE_PATH)
    persist: bool = True
    max_chunks: int = 0  # soft cap, 0 = unbounded


@dataclass
class RuntimeOptions:
    """Runtime options for retrieval and uploads."""

    top_k: int = 5
    max_file_mb: float = 50.0
    history_turns: int = 5


@dataclass
class BackendOptions:
    """Backend selection for embeddings."""

    embedder: str = "sbert"  # "sbert" | "ollama" | "hashing"
    ollama_host: str = "http://localhost:11434"


@dataclass
class Settings:
    """All option groups bundled together."""

    chunking: ChunkOptions = field(default_factory=ChunkOptions)
    store: StoreOptions = field(default_factory=StoreOptions)
    runtime: RuntimeOptions = field(default_factory=RuntimeOptions)
    backend: BackendOptions = field(default_factory=BackendOptions)


# env var -> (group, attribute, type)
_ENV_KEYS = {
    "MAX_CHUNK_SIZE": ("chunking", "chunk_size", int),
    "CHUNK_OVERLAP": ("chunking", "chunk_overlap", int),
    "EMBEDDING_MODEL": ("store", "embedding_model", str),
    "SQLITE_PATH": ("store", "sqlite_path", str),
    "DOCCHAT_PERSIST": ("store", "persist", bool),
    "DOCCHAT_MAX_CHUNKS": ("store", "max_chunks", int),
    "DOCCHAT_TOP_K": ("runtime", "top_k", int),
    "MAX_FILE_SIZE_MB": ("runtime", "max_file_mb", float),
    "DOCCHAT_EMBEDDER": ("backend", "embedder", str),
    "OLLAMA_HOST": ("backend", "ollama_host", str),
}


def _coerce(raw: str, kind: type) -> Any:
    """Convert an environment string to `kind`.

    Raises:
        ValueError: If the value cannot be converted.
    """
    if kind is bool:
        lowered = raw.strip().lower()
        if lowered in ("1", "true", "yes", "on"):
            return True
        if lowered in ("0", "false", "no", "off"):
            return False
        raise ValueError(f"not a boolean: {raw!r}")
    return kind(raw)


def _apply_env(settings: Settings, environ: Dict[str, str]) -> None:
    for key, (group, attr, kind) in _ENV_KEYS.items():
        raw = environ.get(key)
        if raw is None or raw == "":
            continue
        try:
            value = _coerce(raw, kind)
        except ValueError:
            logger.warning("Ignoring invalid value for %s: %r", key, raw)
            continue
        setattr(getattr(settings, group), attr, value)


def _apply_file(settings: Settings, payload: Dict[str, Any]) -> None:
    """Override settings from a parsed settings.json payload.

    The file mirrors the option groups, e.g.
    `{"chunking": {"chunk_size": 400}, "runtime": {"top_k": 3}}`.
    Values whose type does not match the default are ignored.
    """
    for group_name in ("chunking", "store", "runtime", "backend"):
        section = payload.get(group_name)
        if not isinstance(section, dict):
            continue
        group = getattr(settings, group_name)
        for attr, value in section.items():
            if not hasattr(group, attr):
                continue
            current = getattr(group, attr)
            if isinstance(current, bool):
                ok = isinstance(value, bool)
            elif isinstance(current, float):
                ok = isinstance(value, (int, float)) and not isinstance(value, bool)
                value = float(value) if ok else value
            elif isinstance(current, int):
                ok = isinstance(value, int) and not isinstance(value, bool)
            else:
                ok = isinstance(value, type(current))
            if ok:
                setattr(group, attr, value)


def load_settings(
    settings_file: Optional[Path] = None,
    environ: Optional[Dict[str, str]] = None,
) -> Settings:
    """Load settings from the environment and an optional settings file.

    Args:
        settings_file: JSON settings path. Defaults to `.docchat/settings.json`
            in the current directory; a missing file is not an error.
        environ: Environment mapping (defaults to `os.environ`).

    Returns:
        Settings with defaults overridden by env vars, then by the file.
    """
    settings = Settings()
    _apply_env(settings, dict(os.environ) if environ is None else environ)

    path = settings_file if settings_file is not None else DEFAULT_SETTINGS_FILE
    if not path.exists():
        return settings

    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError):
        logger.warning("Could not read settings file %s; using defaults", path)
        return settings

    if isinstance(payload, dict):
        _apply_file(settings, payload)
    return settings
