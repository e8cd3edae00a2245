"""Value objects for the Draft bounded context."""

from mealdrafts.domain.draft.core.value_objects.draft_id import DraftId
from mealdrafts.domain.draft.core.value_objects.grocery_list import (
    GroceryItem,
    GroceryListPayload,
)
from mealdrafts.domain.draft.core.value_objects.ingredient import Ingredient
from mealdrafts.domain.draft.core.value_objects.meal_plan import (
    Day,
    MealPlanPayload,
    RecipeRef,
)

__all__ = [
    "DraftId",
    "Day",
    "RecipeRef",
    "MealPlanPayload",
    "GroceryItem",
    "GroceryListPayload",
    "Ingredient",
]
