"""
In-memory dirty tracker implementation.

Holds "has unsaved changes" flags for logical entities. Flags live only in
process memory and are gone after a restart.
"""

import logging
from typing import Dict, List

logger = logging.getLogger(__name__)


class InMemoryDirtyTracker:
    """In-memory implementation of IDirtyTracker port.

    Shared mutable state with no lock: each key is expected to be written by
    a single owner (one screen owns one key). Construct one instance per
    owner scope and inject it; tests build independent instances.
    """

    def __init__(self) -> None:
        """Initialize with no flags."""
        self._flags: Dict[str, bool] = {}

    def set_unsaved_changes(self, key: str, has_changes: bool) -> None:
        """Set the dirty bit for a key.

        Args:
            key: Caller-chosen entity key (e.g., "mealPlan_current")
            has_changes: True if unpersisted edits exist
        """
        self._flags[key] = bool(has_changes)
        logger.debug(f"Unsaved changes for {key}: {bool(has_changes)}")

    def has_unsaved_changes(self, key: str) -> bool:
        """Return the dirty bit for a key (False for keys never set)."""
        return self._flags.get(key, False)

    def keys_with_unsaved_changes(self) -> List[str]:
        """Keys currently flagged dirty, in first-set order."""
        return [key for key, dirty in self._flags.items() if dirty]

    def clear_all(self) -> None:
        """Forget every flag."""
        self._flags.clear()
        logger.debug("Unsaved changes cleared")
