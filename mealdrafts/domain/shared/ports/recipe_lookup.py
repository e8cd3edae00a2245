"""Recipe lookup port.

Resolves a recipe reference to its ingredient list. Recipes live outside the
draft layer (remote API, local collection) so the derivation engine only
depends on this contract.
"""

from typing import List, Protocol

from mealdrafts.domain.draft.core.value_objects.ingredient import Ingredient


class IRecipeLookup(Protocol):
    """Port for resolving recipe ingredients."""

    async def get_ingredients(self, recipe_id: str) -> List[Ingredient]:
        """Get the ingredients of a recipe.

        Args:
            recipe_id: Recipe identifier as referenced by a meal plan

        Returns:
            Ingredients in recipe order

        Raises:
            RecipeUnavailable: If the recipe cannot be resolved
        """
        ...
