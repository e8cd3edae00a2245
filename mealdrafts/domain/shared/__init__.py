"""Shared domain contracts used across bounded contexts."""
