"""
Tests for RAG prompt building.
"""

from docchat.chunking.base import Chunk
from docchat.rag.prompt import SYSTEM_PROMPT, build_rag_prompt, format_context, format_history
from docchat.vectordb.base import SearchHit


def _hit(i, text, score=0.5):
    return SearchHit(chunk=Chunk(id=i, text=text, sentence_count=1, token_count=len(text.split())), score=score)


def test_context_blocks_are_numbered_in_rank_order():
    ctx = format_context([_hit(9, "Second best."), _hit(2, "Third.")])

    assert ctx == "[Context 1]:\nSecond best.\n\n[Context 2]:\nThird.\n"


def test_prompt_layout_without_history():
    prompt = build_rag_prompt("What is it?", [_hit(0, "It is a cat.")])

    assert prompt.startswith(SYSTEM_PROMPT)
    assert "DOCUMENT CONTEXT:\n[Context 1]:\nIt is a cat.\n" in prompt
    assert "CONVERSATION HISTORY" not in prompt
    assert prompt.endswith("USER QUESTION:\nWhat is it?\n\nANSWER:")


def test_history_keeps_last_turns_only():
    history = [{"role": "user", "content": f"q{i}"} for i in range(7)]
    history.append({"role": "assistant", "content": "a7"})

    prompt = build_rag_prompt("next?", [], history=history, history_turns=3)

    assert "CONVERSATION HISTORY:\nUser: q5\nUser: q6\nAssistant: a7\n\nUSER QUESTION:" in prompt
    assert "q4" not in prompt


def test_history_disabled():
    assert format_history([{"role": "user", "content": "hi"}], 0) == ""
    assert format_history(None, 5) == ""
