"""
Tests for embedding backends that do not need a model download.
"""

import numpy as np
import pytest

from docchat.embeddings import make_embedder
from docchat.embeddings.base import l2_normalize
from docchat.embeddings.hashing import HashingEmbedder, hash_embedding
from docchat.embeddings.sbert import resolve_model_id


def test_l2_normalize():
    out = l2_normalize([[3.0, 4.0], [0.0, 0.0]])

    assert out[0] == pytest.approx([0.6, 0.8])
    assert out[1] == [0.0, 0.0]
    assert l2_normalize([]) == []


def test_hashing_is_deterministic_and_unit_length():
    emb = HashingEmbedder(dim=12)
    a, b, a2 = emb.embed(["alpha", "beta", "alpha"])

    assert a == a2
    assert a != b
    assert len(a) == 12
    assert float(np.linalg.norm(a)) == pytest.approx(1.0, abs=1e-6)
    assert emb.embed_one("alpha") == a
    assert hash_embedding("alpha", 12).dtype == np.float32


def test_make_embedder():
    emb = make_embedder("hashing", "hash-model")

    assert isinstance(emb, HashingEmbedder)
    assert emb.model_name == "hash-model"
    with pytest.raises(ValueError, match="Unknown embedder"):
        make_embedder("word2vec", "x")


def test_resolve_model_id():
    assert resolve_model_id("all-MiniLM-L6-v2") == "sentence-transformers/all-MiniLM-L6-v2"
    assert resolve_model_id("BAAI/bge-small-en-v1.5") == "BAAI/bge-small-en-v1.5"
