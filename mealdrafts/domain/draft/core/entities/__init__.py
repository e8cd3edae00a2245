"""Draft entities."""

from mealdrafts.domain.draft.core.entities.draft import (
    AUTO_SAVE,
    MANUAL_SAVE,
    Draft,
    DraftKind,
    DraftMetadata,
    DraftPayload,
)

__all__ = [
    "AUTO_SAVE",
    "MANUAL_SAVE",
    "Draft",
    "DraftKind",
    "DraftMetadata",
    "DraftPayload",
]
