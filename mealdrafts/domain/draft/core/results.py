"""Tagged results returned by draft operations.

Repository operations never raise for expected conditions. Each result says
whether it succeeded and, if not, carries a machine-readable error kind.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Generic, List, Optional, TypeVar

from mealdrafts.domain.draft.core.entities.draft import DraftKind, DraftMetadata
from mealdrafts.domain.draft.core.value_objects.grocery_list import GroceryListPayload

TData = TypeVar("TData")


class DraftErrorKind(str, Enum):
    """Machine-readable failure kinds."""

    STORAGE_FAILURE = "STORAGE_FAILURE"
    NOT_FOUND = "NOT_FOUND"
    CORRUPT_DRAFT = "CORRUPT_DRAFT"
    ID_GENERATION_FAILURE = "ID_GENERATION_FAILURE"


@dataclass(frozen=True)
class SaveDraftResult:
    """Outcome of a save."""

    success: bool
    draft_id: Optional[str] = None
    error_kind: Optional[DraftErrorKind] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, draft_id: str) -> "SaveDraftResult":
        return cls(success=True, draft_id=draft_id)

    @classmethod
    def failed(cls, error_kind: DraftErrorKind, error: str) -> "SaveDraftResult":
        return cls(success=False, error_kind=error_kind, error=error)


@dataclass(frozen=True)
class LoadDraftResult(Generic[TData]):
    """Outcome of a load. `data` is the payload, `meta` the envelope summary."""

    success: bool
    data: Optional[TData] = None
    meta: Optional[DraftMetadata] = None
    error_kind: Optional[DraftErrorKind] = None
    error: Optional[str] = None

    @property
    def not_found(self) -> bool:
        return self.error_kind is DraftErrorKind.NOT_FOUND

    @classmethod
    def failed(cls, error_kind: DraftErrorKind, error: str) -> "LoadDraftResult[TData]":
        return cls(success=False, error_kind=error_kind, error=error)


@dataclass(frozen=True)
class DeleteDraftResult:
    """Outcome of a delete. Deleting an unknown id is a success."""

    success: bool
    error_kind: Optional[DraftErrorKind] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class GroceryListGenerationResult:
    """Grocery list derived from a meal plan, plus recipes that were skipped."""

    payload: GroceryListPayload
    skipped_recipe_ids: List[str] = field(default_factory=list)

    @property
    def is_partial(self) -> bool:
        return bool(self.skipped_recipe_ids)


@dataclass(frozen=True)
class StorageStats:
    """Aggregate storage statistics across draft kinds."""

    draft_counts: Dict[DraftKind, int]
    approximate_total_bytes: int
    unreadable_drafts: int = 0

    @property
    def total_drafts(self) -> int:
        return sum(self.draft_counts.values())
