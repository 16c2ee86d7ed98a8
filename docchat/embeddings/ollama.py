# docchat/embeddings/ollama.py
"""
Ollama embedding backend.

Calls the Ollama HTTP API and L2-normalizes what comes back, since not every
Ollama embedding model returns unit vectors.

Behavior:
  - strips NULs and normalizes newlines before sending
  - truncates inputs longer than DOCCHAT_EMBED_MAX_CHARS
  - prefers the batch endpoint, falls back to the legacy per-text endpoint
  - halves an input and retries when the legacy endpoint answers 5xx

Env vars:
  - DOCCHAT_EMBED_MAX_CHARS (default 4000)
  - DOCCHAT_EMBED_MIN_CHARS (default 800)
  - DOCCHAT_EMBED_TIMEOUT   (default 180)
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, List, Optional, Sequence

import requests

from .base import Embedder, l2_normalize

logger = logging.getLogger(__name__)

_MAX_SHRINK_ATTEMPTS = 4


def clean_text(s: str) -> str:
    """
    Remove characters known to upset Ollama tokenizers.

    Args:
        s: Any object convertible to str.

    Returns:
        Cleaned string.
    """
    if not isinstance(s, str):
        s = str(s)
    return s.replace("\x00", "").replace("\r\n", "\n").replace("\r", "\n")


def parse_embeddings(data: Any) -> Optional[List[List[float]]]:
    """
    Pull vectors out of either Ollama response shape.

    `/api/embed` answers `{"embeddings": [[...], ...]}`, the legacy
    `/api/embeddings` answers `{"embedding": [...]}`.

    Args:
        data: Parsed JSON.

    Returns:
        List of vectors, or None when the payload has none.
    """
    if not isinstance(data, dict):
        return None

    many = data.get("embeddings")
    if isinstance(many, list) and many and all(isinstance(v, list) and v for v in many):
        return many

    one = data.get("embedding")
    if isinstance(one, list) and one:
        return [one]

    return None


class OllamaEmbedder(Embedder):
    """
    Compute embeddings via Ollama's HTTP API.

    Attributes:
        host: Ollama base URL.
        model_name: Embedding model name.
        max_chars: Max characters per input (truncate).
        min_chars: Floor when shrinking inputs on retries.
        timeout: HTTP timeout seconds.
    """

    def __init__(self, host: str, model: str) -> None:
        self.host = host.rstrip("/")
        self.model_name = model
        self.max_chars = int(os.getenv("DOCCHAT_EMBED_MAX_CHARS", "4000"))
        self.min_chars = int(os.getenv("DOCCHAT_EMBED_MIN_CHARS", "800"))
        self.timeout = int(os.getenv("DOCCHAT_EMBED_TIMEOUT", "180"))

    def _prepare(self, text: str) -> str:
        t = clean_text(text)
        if self.max_chars > 0 and len(t) > self.max_chars:
            t = t[: self.max_chars]
        return t

    def _embed_batch(self, inputs: List[str]) -> Optional[List[List[float]]]:
        """
        Try `/api/embed` for the whole batch.

        Returns:
            Vectors aligned to `inputs`, or None if the endpoint is missing or
            the answer is unusable.
        """
        try:
            r = requests.post(
                f"{self.host}/api/embed",
                json={"model": self.model_name, "input": inputs},
                timeout=self.timeout,
            )
            if r.status_code == 404:
                return None
            r.raise_for_status()
            vectors = parse_embeddings(r.json())
        except (requests.RequestException, ValueError) as e:
            logger.debug("Batch embed via /api/embed failed (%s); using legacy endpoint", e)
            return None

        if vectors is None or len(vectors) != len(inputs):
            logger.debug("Batch embed returned a malformed payload; using legacy endpoint")
            return None
        return vectors

    def _post_legacy(self, text: str) -> requests.Response:
        url = f"{self.host}/api/embeddings"
        r = requests.post(url, json={"model": self.model_name, "input": text}, timeout=self.timeout)
        if r.status_code == 404:
            # older servers only know "prompt"
            r = requests.post(url, json={"model": self.model_name, "prompt": text}, timeout=self.timeout)
        return r

    def _embed_single(self, text: str) -> List[float]:
        """
        Embed one text via `/api/embeddings`, shrinking it on server errors.

        Raises:
            requests.HTTPError: On persistent non-2xx answers.
            ValueError: If the vector is empty.
        """
        current = text
        for attempt in range(1, _MAX_SHRINK_ATTEMPTS + 2):
            r = self._post_legacy(current)
            if 200 <= r.status_code < 300:
                vectors = parse_embeddings(r.json())
                if not vectors:
                    raise ValueError("Ollama returned an empty embedding vector.")
                return vectors[0]

            if r.status_code >= 500 and len(current) > self.min_chars and attempt <= _MAX_SHRINK_ATTEMPTS:
                logger.warning(
                    "Ollama embeddings answered %s; retrying with %d chars",
                    r.status_code,
                    max(self.min_chars, len(current) // 2),
                )
                time.sleep(0.5 * attempt)
                current = current[: max(self.min_chars, len(current) // 2)]
                continue
            break

        raise requests.HTTPError(
            f"Ollama embeddings failed (status={r.status_code}).\n"
            f"Model: {self.model_name}\n"
            f"Host: {self.host}\n"
            f"Response: {r.text[:800]}",
            response=r,
        )

    def embed(self, texts: List[str]) -> List[Sequence[float]]:
        """
        Generate normalized embeddings for each input string.

        Args:
            texts: Input strings.

        Returns:
            Unit vectors aligned to `texts`.

        Raises:
            requests.HTTPError: If Ollama returns persistent non-2xx errors.
            requests.RequestException: On connection/timeout errors.
            ValueError: If embeddings are empty/malformed.
        """
        if not texts:
            return []

        prepared = [self._prepare(t) for t in texts]
        vectors = self._embed_batch(prepared)
        if vectors is None:
            vectors = [self._embed_single(t) for t in prepared]
        return l2_normalize(vectors)
