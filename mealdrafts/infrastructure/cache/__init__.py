"""In-process caches."""

from mealdrafts.infrastructure.cache.in_memory_dirty_tracker import InMemoryDirtyTracker

__all__ = ["InMemoryDirtyTracker"]
