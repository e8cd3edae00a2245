"""Grocery list payload value objects."""

from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, List, Optional


@dataclass(frozen=True)
class GroceryItem:
    """Single line of a grocery list.

    Attributes:
        id: Unique within one list
        name: Display name
        is_completed: Checked off by the user
        quantity: Free-form quantity annotation ("2 cups + 1 cup")
        source_recipe_ids: Recipes that contributed this item (provenance)
    """

    id: str
    name: str
    is_completed: bool = False
    quantity: Optional[str] = None
    source_recipe_ids: FrozenSet[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        if not isinstance(self.id, str) or not self.id:
            raise ValueError("GroceryItem.id must be a non-empty string")
        if not isinstance(self.is_completed, bool):
            raise TypeError("GroceryItem.is_completed must be a bool")
        # Accept any iterable of ids, store as frozenset
        if not isinstance(self.source_recipe_ids, frozenset):
            object.__setattr__(self, "source_recipe_ids", frozenset(self.source_recipe_ids))

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "is_completed": self.is_completed,
            "quantity": self.quantity,
            "source_recipe_ids": sorted(self.source_recipe_ids),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GroceryItem":
        return cls(
            id=data["id"],
            name=data["name"],
            is_completed=data.get("is_completed", False),
            quantity=data.get("quantity"),
            source_recipe_ids=frozenset(str(r) for r in data.get("source_recipe_ids", [])),
        )


@dataclass(frozen=True)
class GroceryListPayload:
    """Content of a grocery-list draft.

    Invariants:
    - Item ids are unique within the list
    """

    title: str
    items: List[GroceryItem] = field(default_factory=list)

    def __post_init__(self) -> None:
        seen = set()
        for item in self.items:
            if item.id in seen:
                raise ValueError(f"Duplicate grocery item id: {item.id}")
            seen.add(item.id)

    def get_item(self, item_id: str) -> Optional[GroceryItem]:
        for item in self.items:
            if item.id == item_id:
                return item
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {"title": self.title, "items": [item.to_dict() for item in self.items]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "GroceryListPayload":
        """Build payload from its serialized form.

        Raises:
            KeyError, TypeError, ValueError: If the structure is invalid
        """
        if not isinstance(data, dict):
            raise TypeError(f"Grocery list payload must be an object, got {type(data).__name__}")
        return cls(
            title=data["title"],
            items=[GroceryItem.from_dict(i) for i in data["items"]],
        )
