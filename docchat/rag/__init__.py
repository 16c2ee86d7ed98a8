"""Prompt building on top of retrieval results."""
