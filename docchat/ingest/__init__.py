"""Document loading."""
