"""Shared fixtures for draft layer tests."""

from datetime import datetime, timedelta, timezone
from typing import Iterable, Optional, Set

import pytest

from mealdrafts.application.drafts.draft_repository import DraftRepository
from mealdrafts.application.drafts.local_data_manager import LocalDataManager
from mealdrafts.domain.draft.core.value_objects.grocery_list import (
    GroceryItem,
    GroceryListPayload,
)
from mealdrafts.domain.draft.core.value_objects.meal_plan import (
    Day,
    MealPlanPayload,
    RecipeRef,
)
from mealdrafts.domain.shared.ports.blob_store import BlobStoreError
from mealdrafts.infrastructure.cache.in_memory_dirty_tracker import InMemoryDirtyTracker
from mealdrafts.infrastructure.persistence.in_memory.blob_store import InMemoryBlobStore
from mealdrafts.infrastructure.recipes.in_memory_recipe_lookup import InMemoryRecipeLookup


class TickingClock:
    """Clock advancing one second per call (deterministic ordering)."""

    def __init__(self, start: Optional[datetime] = None, step: timedelta = timedelta(seconds=1)):
        self.current = start or datetime(2025, 10, 8, 14, 0, 0, tzinfo=timezone.utc)
        self.step = step

    def __call__(self) -> datetime:
        now = self.current
        self.current = self.current + self.step
        return now


class FlakyBlobStore(InMemoryBlobStore):
    """In-memory store failing on selected keys."""

    def __init__(self) -> None:
        super().__init__()
        self.fail_set_keys: Set[str] = set()
        self.fail_get_keys: Set[str] = set()
        self.fail_delete_keys: Set[str] = set()

    def fail_on_set(self, keys: Iterable[str]) -> None:
        self.fail_set_keys.update(keys)

    async def get(self, key: str) -> Optional[bytes]:
        if key in self.fail_get_keys:
            raise BlobStoreError(f"simulated read failure for {key}")
        return await super().get(key)

    async def set(self, key: str, value: bytes) -> None:
        if key in self.fail_set_keys:
            raise BlobStoreError(f"simulated write failure for {key}")
        await super().set(key, value)

    async def delete(self, key: str) -> None:
        if key in self.fail_delete_keys:
            raise BlobStoreError(f"simulated delete failure for {key}")
        await super().delete(key)


@pytest.fixture
def clock() -> TickingClock:
    return TickingClock()


@pytest.fixture
def store() -> FlakyBlobStore:
    return FlakyBlobStore()


@pytest.fixture
def repository(store: FlakyBlobStore, clock: TickingClock) -> DraftRepository:
    return DraftRepository(store, clock=clock)


@pytest.fixture
def recipe_lookup() -> InMemoryRecipeLookup:
    return InMemoryRecipeLookup(
        {
            "2577": [
                {"name": "Flour", "quantity": 2, "unit": "cups"},
                {"name": "Eggs", "quantity": 3},
                {"name": "Milk", "quantity": 1, "unit": "cup"},
            ],
            "2576": [
                {"name": "  flour ", "quantity": 1, "unit": "cup"},
                {"name": "Butter", "quantity": 50, "unit": "g"},
                {"name": "Salt"},
            ],
        }
    )


@pytest.fixture
def manager(
    store: FlakyBlobStore, recipe_lookup: InMemoryRecipeLookup, clock: TickingClock
) -> LocalDataManager:
    return LocalDataManager(
        store=store,
        recipe_lookup=recipe_lookup,
        dirty_tracker=InMemoryDirtyTracker(),
        clock=clock,
    )


@pytest.fixture
def meal_plan() -> MealPlanPayload:
    return MealPlanPayload(
        days=[
            Day(
                id="1",
                name="Day 1",
                recipes=[
                    RecipeRef(recipe_id="2577", title="Test Recipe 1"),
                    RecipeRef(recipe_id="2576", title="Test Recipe 2"),
                ],
            ),
            Day(id="2", name="Day 2", recipes=[]),
        ]
    )


@pytest.fixture
def grocery_list() -> GroceryListPayload:
    return GroceryListPayload(
        title="Test Grocery List",
        items=[
            GroceryItem(id="item1", name="Test Item 1", is_completed=False),
            GroceryItem(
                id="item2",
                name="Test Item 2",
                is_completed=True,
                quantity="2 cups",
                source_recipe_ids=frozenset({"2577"}),
            ),
        ],
    )
