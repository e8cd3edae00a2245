"""Infrastructure adapters for the draft layer."""
