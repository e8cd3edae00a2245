"""Recipe lookup adapters."""

from mealdrafts.infrastructure.recipes.in_memory_recipe_lookup import InMemoryRecipeLookup

__all__ = ["InMemoryRecipeLookup"]
