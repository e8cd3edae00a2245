"""Domain service deriving a grocery list from a meal plan.

Ingredients of every recipe on the plan are aggregated by normalized name.
Quantities are never summed: mismatched or missing units would produce
silently wrong totals, so each contribution is kept as a separate annotation.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Union
from uuid import uuid4

from mealdrafts.domain.draft.core.entities.draft import Draft
from mealdrafts.domain.draft.core.exceptions.domain_errors import RecipeUnavailable
from mealdrafts.domain.draft.core.results import GroceryListGenerationResult
from mealdrafts.domain.draft.core.value_objects.grocery_list import (
    GroceryItem,
    GroceryListPayload,
)
from mealdrafts.domain.draft.core.value_objects.ingredient import Ingredient
from mealdrafts.domain.draft.core.value_objects.meal_plan import MealPlanPayload
from mealdrafts.domain.shared.ports.recipe_lookup import IRecipeLookup

logger = logging.getLogger(__name__)

ANNOTATION_SEPARATOR = " + "
DEFAULT_TITLE = "Grocery List"


@dataclass(frozen=True)
class GroceryListOptions:
    """Caller overrides for generation.

    Attributes:
        title: Explicit list title (wins over the derived one)
        meal_plan_name: Name used for the derived title when the meal plan
            is passed as a bare payload
    """

    title: Optional[str] = None
    meal_plan_name: Optional[str] = None


@dataclass
class _Aggregate:
    name: str
    annotations: List[str] = field(default_factory=list)
    source_recipe_ids: List[str] = field(default_factory=list)

    def add(self, ingredient: Ingredient, recipe_id: str) -> None:
        annotation = ingredient.annotation()
        if annotation:
            self.annotations.append(annotation)
        if recipe_id not in self.source_recipe_ids:
            self.source_recipe_ids.append(recipe_id)

    def quantity(self) -> Optional[str]:
        if not self.annotations:
            return None
        return ANNOTATION_SEPARATOR.join(self.annotations)


class GroceryListGenerator:
    """
    Domain service turning a meal plan into a grocery list payload.

    Side-effect free with respect to draft storage: the result is returned
    to the caller, who decides whether to persist it.

    Example:
        >>> generator = GroceryListGenerator(recipe_lookup)
        >>> result = await generator.generate(meal_plan_draft)
        >>> result.payload.title
        'Grocery List for Week 42'
        >>> result.skipped_recipe_ids
        []
    """

    def __init__(
        self,
        recipe_lookup: IRecipeLookup,
        item_id_factory: Optional[Callable[[], str]] = None,
    ):
        """
        Initialize generator.

        Args:
            recipe_lookup: Port resolving recipe ingredients
            item_id_factory: Produces grocery item ids (defaults to uuid4)
        """
        self._recipe_lookup = recipe_lookup
        self._new_item_id = item_id_factory or (lambda: str(uuid4()))

    async def generate(
        self,
        meal_plan: Union[MealPlanPayload, Draft[MealPlanPayload]],
        options: Optional[GroceryListOptions] = None,
    ) -> GroceryListGenerationResult:
        """
        Generate a grocery list from a meal plan.

        Flow:
        1. Flatten recipe references across days (plan order)
        2. Resolve each distinct recipe once; unavailable recipes are skipped
        3. Aggregate ingredients by normalized name, first appearance wins
        4. Emit one item per aggregate with provenance and annotations

        Args:
            meal_plan: Meal plan payload, or a loaded meal-plan draft
            options: Optional title overrides

        Returns:
            GroceryListGenerationResult with payload and skipped recipe ids
        """
        options = options or GroceryListOptions()
        if isinstance(meal_plan, Draft):
            plan_name: Optional[str] = meal_plan.name
            payload = meal_plan.payload
        else:
            plan_name = options.meal_plan_name
            payload = meal_plan

        refs = payload.recipe_refs()
        ingredients_by_recipe: Dict[str, Optional[List[Ingredient]]] = {}
        skipped: List[str] = []
        aggregates: Dict[str, _Aggregate] = {}

        for ref in refs:
            if ref.recipe_id not in ingredients_by_recipe:
                ingredients_by_recipe[ref.recipe_id] = await self._lookup(ref.recipe_id)
                if ingredients_by_recipe[ref.recipe_id] is None:
                    skipped.append(ref.recipe_id)

            ingredients = ingredients_by_recipe[ref.recipe_id]
            if ingredients is None:
                continue

            for ingredient in ingredients:
                key = ingredient.normalized_name()
                aggregate = aggregates.get(key)
                if aggregate is None:
                    aggregate = _Aggregate(name=ingredient.display_name())
                    aggregates[key] = aggregate
                aggregate.add(ingredient, ref.recipe_id)

        items = [
            GroceryItem(
                id=self._new_item_id(),
                name=aggregate.name,
                is_completed=False,
                quantity=aggregate.quantity(),
                source_recipe_ids=frozenset(aggregate.source_recipe_ids),
            )
            for aggregate in aggregates.values()
        ]

        title = options.title or _default_title(plan_name)

        logger.info(
            "Grocery list generated",
            extra={
                "recipes": len(ingredients_by_recipe),
                "items": len(items),
                "skipped_recipes": len(skipped),
            },
        )

        return GroceryListGenerationResult(
            payload=GroceryListPayload(title=title, items=items),
            skipped_recipe_ids=skipped,
        )

    async def _lookup(self, recipe_id: str) -> Optional[List[Ingredient]]:
        try:
            return list(await self._recipe_lookup.get_ingredients(recipe_id))
        except RecipeUnavailable as e:
            logger.warning(
                "Recipe skipped during grocery list generation",
                extra={"recipe_id": recipe_id, "error": str(e)},
            )
            return None


def _default_title(meal_plan_name: Optional[str]) -> str:
    if meal_plan_name and meal_plan_name.strip():
        return f"{DEFAULT_TITLE} for {meal_plan_name.strip()}"
    return DEFAULT_TITLE


async def generate_grocery_list_from_meal_plan(
    meal_plan: Union[MealPlanPayload, Draft[MealPlanPayload]],
    recipe_lookup: IRecipeLookup,
    options: Optional[GroceryListOptions] = None,
) -> GroceryListGenerationResult:
    """Shortcut for GroceryListGenerator(recipe_lookup).generate(...)."""
    return await GroceryListGenerator(recipe_lookup).generate(meal_plan, options)
