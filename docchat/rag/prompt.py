# docchat/rag/prompt.py
"""Prompt building for document Q&A."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from ..vectordb.base import SearchHit

SYSTEM_PROMPT = (
    "You are a helpful assistant that answers questions based on the provided document context "
    "and any images provided.\n"
    "When answering:\n"
    "1. Use the document context provided to answer the question as accurately as possible\n"
    "2. If images are provided, analyze them carefully and describe what you see\n"
    "3. If the information is partially available in the context, provide what you can find "
    "and mention what might be missing\n"
    "4. If the answer cannot be found in the provided context or images, clearly state that "
    "the specific information is not available\n"
    "5. Be helpful and provide relevant information even if it's not an exact match to the question\n"
    "6. Always cite which part of the document or image you're referencing when possible"
)


def format_context(hits: Sequence[SearchHit]) -> str:
    """
    Number retrieved chunks as `[Context i]` blocks.

    Args:
        hits: Retrieved results, best first.

    Returns:
        Context string (empty when there are no hits).
    """
    return "\n".join(f"[Context {i}]:\n{h.chunk.text}\n" for i, h in enumerate(hits, start=1))


def format_history(history: Optional[Sequence[Dict[str, str]]], turns: int) -> str:
    """Render the last `turns` messages as `Role: content` lines."""
    if not history or turns <= 0:
        return ""
    lines = []
    for m in list(history)[-turns:]:
        role = m.get("role", "")
        lines.append(f"{role[:1].upper() + role[1:]}: {m.get('content', '')}")
    return "\n".join(lines)


def build_rag_prompt(
    query: str,
    hits: Sequence[SearchHit],
    history: Optional[Sequence[Dict[str, str]]] = None,
    history_turns: int = 5,
) -> str:
    """
    Build a single-string prompt for the answer generator.

    Args:
        query: User question.
        hits: Retrieved context hits.
        history: Prior `{"role", "content"}` messages, oldest first.
        history_turns: How many trailing messages to include.

    Returns:
        Prompt text ending in `ANSWER:`.
    """
    parts: List[str] = [SYSTEM_PROMPT, "", "DOCUMENT CONTEXT:", format_context(hits), ""]
    hist = format_history(history, history_turns)
    if hist:
        parts += ["CONVERSATION HISTORY:", hist, ""]
    parts += ["USER QUESTION:", query, "", "ANSWER:"]
    return "\n".join(parts)
