"""Meal plan payload value objects.

A meal plan is an ordered sequence of days, each holding an ordered sequence
of recipe references. Order is meaningful to the caller and is preserved
exactly through serialization.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class RecipeRef:
    """Reference to a recipe placed on a day."""

    recipe_id: str
    title: str

    def __post_init__(self) -> None:
        if not isinstance(self.recipe_id, str) or not self.recipe_id:
            raise ValueError("RecipeRef.recipe_id must be a non-empty string")

    def to_dict(self) -> Dict[str, Any]:
        return {"recipe_id": self.recipe_id, "title": self.title}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "RecipeRef":
        return cls(recipe_id=str(data["recipe_id"]), title=data["title"])


@dataclass(frozen=True)
class Day:
    """One day of a meal plan.

    Labels need not be unique across a plan ("Day 1" twice is allowed).
    """

    name: str
    recipes: List[RecipeRef] = field(default_factory=list)
    id: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "recipes": [recipe.to_dict() for recipe in self.recipes],
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Day":
        return cls(
            name=data["name"],
            recipes=[RecipeRef.from_dict(r) for r in data["recipes"]],
            id=data.get("id"),
        )


@dataclass(frozen=True)
class MealPlanPayload:
    """Content of a meal-plan draft.

    Examples:
        >>> plan = MealPlanPayload(days=[
        ...     Day(name="Day 1", recipes=[RecipeRef("2577", "Pancakes")]),
        ... ])
        >>> MealPlanPayload.from_dict(plan.to_dict()) == plan
        True
    """

    days: List[Day] = field(default_factory=list)

    def recipe_refs(self) -> List[RecipeRef]:
        """All recipe references across all days, in plan order."""
        return [recipe for day in self.days for recipe in day.recipes]

    def to_dict(self) -> Dict[str, Any]:
        return {"days": [day.to_dict() for day in self.days]}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MealPlanPayload":
        """Build payload from its serialized form.

        Raises:
            KeyError, TypeError, ValueError: If the structure is invalid
        """
        if not isinstance(data, dict):
            raise TypeError(f"Meal plan payload must be an object, got {type(data).__name__}")
        return cls(days=[Day.from_dict(d) for d in data["days"]])
