"""Derivations between draft kinds."""

from mealdrafts.domain.draft.derivation.grocery_list_generator import (
    GroceryListGenerator,
    GroceryListOptions,
    generate_grocery_list_from_meal_plan,
)

__all__ = [
    "GroceryListGenerator",
    "GroceryListOptions",
    "generate_grocery_list_from_meal_plan",
]
