"""In-memory recipe lookup.

Serves ingredient lists from a local recipe catalog (a dict keyed by recipe
id). Used by tests and by callers that already hold their recipe collection
in memory.
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from mealdrafts.domain.draft.core.exceptions.domain_errors import RecipeUnavailable
from mealdrafts.domain.draft.core.value_objects.ingredient import Ingredient

IngredientLike = Union[Ingredient, Mapping[str, Any]]


class InMemoryRecipeLookup:
    """
    In-memory implementation of IRecipeLookup port.

    Example:
        >>> lookup = InMemoryRecipeLookup({
        ...     "2577": [{"name": "Flour", "quantity": 2, "unit": "cups"}],
        ... })
        >>> await lookup.get_ingredients("2577")
        [Ingredient(name='Flour', quantity=2, unit='cups')]
    """

    def __init__(self, recipes: Optional[Mapping[str, Iterable[IngredientLike]]] = None) -> None:
        self._recipes: Dict[str, List[Ingredient]] = {}
        for recipe_id, ingredients in (recipes or {}).items():
            self.add_recipe(recipe_id, ingredients)

    def add_recipe(self, recipe_id: str, ingredients: Iterable[IngredientLike]) -> None:
        """Register (or replace) a recipe's ingredients."""
        self._recipes[str(recipe_id)] = [_to_ingredient(i) for i in ingredients]

    def remove_recipe(self, recipe_id: str) -> None:
        self._recipes.pop(str(recipe_id), None)

    async def get_ingredients(self, recipe_id: str) -> List[Ingredient]:
        """
        Get the ingredients of a recipe.

        Raises:
            RecipeUnavailable: If the recipe is not in the catalog
        """
        ingredients = self._recipes.get(recipe_id)
        if ingredients is None:
            raise RecipeUnavailable(recipe_id, "not in local catalog")
        return list(ingredients)


def _to_ingredient(value: IngredientLike) -> Ingredient:
    if isinstance(value, Ingredient):
        return value
    return Ingredient(
        name=value["name"],
        quantity=value.get("quantity"),
        unit=value.get("unit"),
    )
