"""Persistence adapters (blob stores) and backend selection."""
