"""Draft envelope - a persisted, user-editable, not-yet-finalized document."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, Optional, Type, TypeVar, Union

from mealdrafts.domain.draft.core.value_objects.grocery_list import GroceryListPayload
from mealdrafts.domain.draft.core.value_objects.meal_plan import MealPlanPayload

DraftPayload = Union[MealPlanPayload, GroceryListPayload]
TPayload = TypeVar("TPayload", MealPlanPayload, GroceryListPayload)

MANUAL_SAVE = "manual_save"
AUTO_SAVE = "auto_save"


class DraftKind(str, Enum):
    """Closed set of draft kinds."""

    MEAL_PLAN = "meal_plan"
    GROCERY_LIST = "grocery_list"

    @property
    def payload_type(self) -> Type[DraftPayload]:
        """Payload class serialized under this kind."""
        if self is DraftKind.MEAL_PLAN:
            return MealPlanPayload
        return GroceryListPayload

    @property
    def label(self) -> str:
        """Human label used for default draft names."""
        if self is DraftKind.MEAL_PLAN:
            return "Meal Plan"
        return "Grocery List"

    def default_name(self, at: datetime) -> str:
        """Timestamp-derived name for drafts saved without one."""
        return f"{self.label} {at.strftime('%Y-%m-%d %H:%M')}"


@dataclass
class Draft(Generic[TPayload]):
    """
    Draft envelope around a kind-specific payload.

    Invariants:
    - id is immutable once assigned
    - kind never changes after creation
    - payload type matches kind
    - timestamps are timezone-aware (UTC)

    Identity: Defined by (kind, id)
    Mutability: Replaced as a whole on every save
    """

    id: str
    kind: DraftKind
    name: str
    payload: TPayload
    source: str = MANUAL_SAVE
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        """Validate invariants after initialization."""
        if not isinstance(self.payload, self.kind.payload_type):
            raise ValueError(
                f"{self.kind.value} draft requires {self.kind.payload_type.__name__}, "
                f"got {type(self.payload).__name__}"
            )

        if self.created_at.tzinfo is None:
            raise ValueError("created_at must be timezone-aware (use UTC)")

        if self.updated_at.tzinfo is None:
            raise ValueError("updated_at must be timezone-aware (use UTC)")

    def metadata(self, size_bytes: Optional[int] = None) -> "DraftMetadata":
        """Listing view of this draft."""
        return DraftMetadata(
            id=self.id,
            kind=self.kind,
            name=self.name,
            created_at=self.created_at,
            updated_at=self.updated_at,
            source=self.source,
            size_bytes=size_bytes,
        )


@dataclass(frozen=True)
class DraftMetadata:
    """Draft summary returned by listings (no payload)."""

    id: str
    kind: DraftKind
    name: str
    created_at: datetime
    updated_at: datetime
    source: str = MANUAL_SAVE
    size_bytes: Optional[int] = None
