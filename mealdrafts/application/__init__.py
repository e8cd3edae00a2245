"""Application layer: use cases over the draft domain."""
