"""Caller-facing facade over the draft layer.

Screens and business logic talk to one LocalDataManager instance that owns
the draft repository, the grocery list generator, the dirty tracker, the
storage statistics query and (optionally) the auto-save scheduler.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional, Union

from mealdrafts.application.drafts.draft_repository import DraftRepository
from mealdrafts.application.drafts.storage_stats import StorageStatsQueryHandler
from mealdrafts.domain.draft.core.entities.draft import (
    MANUAL_SAVE,
    Draft,
    DraftKind,
    DraftMetadata,
    DraftPayload,
)
from mealdrafts.domain.draft.core.results import (
    DeleteDraftResult,
    GroceryListGenerationResult,
    LoadDraftResult,
    SaveDraftResult,
    StorageStats,
)
from mealdrafts.domain.draft.core.value_objects.grocery_list import GroceryListPayload
from mealdrafts.domain.draft.core.value_objects.meal_plan import MealPlanPayload
from mealdrafts.domain.draft.derivation.grocery_list_generator import (
    GroceryListGenerator,
    GroceryListOptions,
)
from mealdrafts.domain.shared.ports.blob_store import IBlobStore
from mealdrafts.domain.shared.ports.dirty_tracker import IDirtyTracker
from mealdrafts.domain.shared.ports.recipe_lookup import IRecipeLookup
from mealdrafts.infrastructure.scheduler.auto_save import AutoSaveCallback, AutoSaveScheduler

logger = logging.getLogger(__name__)


class LocalDataManager:
    """
    Local draft and derivation data layer.

    Example:
        >>> manager = LocalDataManager(InMemoryBlobStore(), recipe_lookup, InMemoryDirtyTracker())
        >>> saved = await manager.save_meal_plan_draft(plan, "Week 42")
        >>> result = await manager.generate_grocery_list_from_meal_plan(plan)
        >>> await manager.save_grocery_list_draft(result.payload)
        >>> manager.set_unsaved_changes("mealPlan_current", False)
    """

    def __init__(
        self,
        store: IBlobStore,
        recipe_lookup: IRecipeLookup,
        dirty_tracker: IDirtyTracker,
        auto_save: Optional[AutoSaveScheduler] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """
        Initialize manager.

        Args:
            store: Blob store port
            recipe_lookup: Recipe lookup port used for grocery list generation
            dirty_tracker: Unsaved-changes tracker owned by this manager
            auto_save: Auto-save scheduler (created lazily if None)
            clock: Time source for draft timestamps (for testing)
        """
        self._repository = DraftRepository(store, clock=clock)
        self._generator = GroceryListGenerator(recipe_lookup)
        self._dirty_tracker = dirty_tracker
        self._stats = StorageStatsQueryHandler(self._repository)
        self._auto_save = auto_save

    @property
    def repository(self) -> DraftRepository:
        return self._repository

    # ============================================================
    # Meal plan drafts
    # ============================================================

    async def save_meal_plan_draft(
        self,
        meal_plan: MealPlanPayload,
        name: Optional[str] = None,
        draft_id: Optional[str] = None,
        source: str = MANUAL_SAVE,
    ) -> SaveDraftResult:
        return await self._repository.save(
            DraftKind.MEAL_PLAN, meal_plan, name=name, draft_id=draft_id, source=source
        )

    async def load_meal_plan_draft(self, draft_id: str) -> LoadDraftResult[MealPlanPayload]:
        return await self._repository.load(DraftKind.MEAL_PLAN, draft_id)

    async def get_meal_plan_drafts(self) -> List[DraftMetadata]:
        return await self._repository.list_drafts(DraftKind.MEAL_PLAN)

    async def delete_meal_plan_draft(self, draft_id: str) -> DeleteDraftResult:
        return await self._repository.delete(DraftKind.MEAL_PLAN, draft_id)

    # ============================================================
    # Grocery list drafts
    # ============================================================

    async def save_grocery_list_draft(
        self,
        grocery_list: GroceryListPayload,
        name: Optional[str] = None,
        draft_id: Optional[str] = None,
        source: str = MANUAL_SAVE,
    ) -> SaveDraftResult:
        return await self._repository.save(
            DraftKind.GROCERY_LIST, grocery_list, name=name, draft_id=draft_id, source=source
        )

    async def load_grocery_list_draft(self, draft_id: str) -> LoadDraftResult[GroceryListPayload]:
        return await self._repository.load(DraftKind.GROCERY_LIST, draft_id)

    async def get_grocery_list_drafts(self) -> List[DraftMetadata]:
        return await self._repository.list_drafts(DraftKind.GROCERY_LIST)

    async def delete_grocery_list_draft(self, draft_id: str) -> DeleteDraftResult:
        return await self._repository.delete(DraftKind.GROCERY_LIST, draft_id)

    # ============================================================
    # Derivation
    # ============================================================

    async def generate_grocery_list_from_meal_plan(
        self,
        meal_plan: Union[MealPlanPayload, Draft[MealPlanPayload]],
        options: Optional[GroceryListOptions] = None,
    ) -> GroceryListGenerationResult:
        """Derive a grocery list payload; nothing is persisted."""
        return await self._generator.generate(meal_plan, options)

    async def generate_grocery_list_from_meal_plan_draft(
        self,
        draft_id: str,
        options: Optional[GroceryListOptions] = None,
    ) -> Optional[GroceryListGenerationResult]:
        """
        Derive a grocery list from a stored meal-plan draft.

        The draft's name feeds the default title.

        Returns:
            Generation result, or None if the draft cannot be loaded
        """
        loaded = await self.load_meal_plan_draft(draft_id)
        if not loaded.success or loaded.data is None or loaded.meta is None:
            logger.warning(
                "Meal plan draft unavailable for grocery list generation",
                extra={"draft_id": draft_id, "error_kind": loaded.error_kind},
            )
            return None
        options = options or GroceryListOptions()
        if options.meal_plan_name is None:
            options = GroceryListOptions(title=options.title, meal_plan_name=loaded.meta.name)
        return await self._generator.generate(loaded.data, options)

    # ============================================================
    # Unsaved changes
    # ============================================================

    def set_unsaved_changes(self, key: str, has_changes: bool) -> None:
        self._dirty_tracker.set_unsaved_changes(key, has_changes)

    def has_unsaved_changes(self, key: str) -> bool:
        return self._dirty_tracker.has_unsaved_changes(key)

    def keys_with_unsaved_changes(self) -> List[str]:
        return self._dirty_tracker.keys_with_unsaved_changes()

    def clear_unsaved_changes(self) -> None:
        self._dirty_tracker.clear_all()

    # ============================================================
    # Statistics and maintenance
    # ============================================================

    async def get_storage_stats(self) -> StorageStats:
        return await self._stats.handle()

    async def repair_indexes(self) -> Dict[DraftKind, int]:
        """Reconcile every kind's index with stored blobs."""
        return {kind: await self._repository.repair_index(kind) for kind in DraftKind}

    # ============================================================
    # Temporary backups
    # ============================================================

    async def create_temp_backup(self, kind: DraftKind, payload: DraftPayload) -> SaveDraftResult:
        return await self._repository.create_temp_backup(kind, payload)

    async def load_temp_backup(self, kind: DraftKind) -> LoadDraftResult[DraftPayload]:
        return await self._repository.load_temp_backup(kind)

    async def clear_temp_backup(self, kind: DraftKind) -> DeleteDraftResult:
        return await self._repository.clear_temp_backup(kind)

    # ============================================================
    # Auto-save
    # ============================================================

    def start_auto_save(
        self,
        key: str,
        callback: AutoSaveCallback,
        interval_seconds: Optional[float] = None,
    ) -> None:
        """Run callback periodically until stop_auto_save(key)."""
        if self._auto_save is None:
            self._auto_save = AutoSaveScheduler()
        self._auto_save.start_auto_save(key, callback, interval_seconds)

    def stop_auto_save(self, key: str) -> None:
        if self._auto_save is not None:
            self._auto_save.stop_auto_save(key)

    async def run_auto_save_now(self, key: str) -> bool:
        if self._auto_save is None:
            return False
        return await self._auto_save.run_auto_save_now(key)

    def shutdown(self) -> None:
        """Stop background auto-save jobs."""
        if self._auto_save is not None:
            self._auto_save.shutdown()
