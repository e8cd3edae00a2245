"""Dirty tracker port.

Tracks "has unsaved changes" flags for logical entities (screens, editors).
Keys are chosen by the caller and are unrelated to draft ids.
"""

from typing import List, Protocol


class IDirtyTracker(Protocol):
    """Port for unsaved-changes tracking."""

    def set_unsaved_changes(self, key: str, has_changes: bool) -> None:
        """Set the dirty bit for a key."""
        ...

    def has_unsaved_changes(self, key: str) -> bool:
        """Return the dirty bit for a key (False for unknown keys)."""
        ...

    def keys_with_unsaved_changes(self) -> List[str]:
        """Return every key currently flagged as dirty."""
        ...

    def clear_all(self) -> None:
        """Forget every flag."""
        ...
