"""DraftId value object.

Identifier for drafts that needs no central counter: a millisecond timestamp
followed by a cryptographically random suffix, so two drafts created in the
same millisecond still get distinct ids.
"""

import secrets
import time
from dataclasses import dataclass
from typing import Optional

# 8 random bytes -> 16 hex chars
SUFFIX_BYTES = 8


@dataclass(frozen=True)
class DraftId:
    """Value object for Draft ID.

    Examples:
        >>> draft_id = DraftId.generate(now_ms=1728396000000)
        >>> str(draft_id)[:14]
        '1728396000000-'

        >>> DraftId("1728396000000-a1b2c3d4e5f60718") == DraftId("1728396000000-a1b2c3d4e5f60718")
        True
    """

    value: str

    def __post_init__(self) -> None:
        """Validate id is a non-empty key-safe string."""
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("Draft id must be a non-empty string")
        if ":" in self.value:
            raise ValueError(f"Draft id must not contain ':': {self.value!r}")

    @classmethod
    def generate(cls, now_ms: Optional[int] = None) -> "DraftId":
        """Generate a new draft id.

        Args:
            now_ms: Millisecond epoch timestamp (defaults to current time)

        Returns:
            New DraftId of the form "<ms>-<16 hex chars>".
        """
        if now_ms is None:
            now_ms = time.time_ns() // 1_000_000
        return cls(f"{now_ms}-{secrets.token_hex(SUFFIX_BYTES)}")

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return f"DraftId({self.value})"
