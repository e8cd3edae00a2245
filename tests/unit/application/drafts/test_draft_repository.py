"""Unit tests for DraftRepository."""

import asyncio
import json
from datetime import datetime, timezone
from typing import Optional

import pytest

from mealdrafts.application.drafts.draft_repository import (
    DraftRepository,
    backup_key,
    blob_key,
    index_key,
)
from mealdrafts.domain.draft.core.entities.draft import AUTO_SAVE, DraftKind
from mealdrafts.domain.draft.core.exceptions.domain_errors import (
    CorruptDraft,
    DraftNotFound,
    StorageFailure,
)
from mealdrafts.domain.draft.core.results import DraftErrorKind
from mealdrafts.domain.draft.core.value_objects.draft_id import DraftId
from mealdrafts.domain.draft.core.value_objects.grocery_list import GroceryListPayload
from mealdrafts.domain.draft.core.value_objects.meal_plan import (
    Day,
    MealPlanPayload,
    RecipeRef,
)
from mealdrafts.infrastructure.persistence.in_memory.blob_store import InMemoryBlobStore

FIXED_NOW = datetime(2025, 10, 8, 14, 3, tzinfo=timezone.utc)


class YieldingBlobStore(InMemoryBlobStore):
    """In-memory store that suspends on every call, like a network store."""

    async def get(self, key: str) -> Optional[bytes]:
        await asyncio.sleep(0)
        return await super().get(key)

    async def set(self, key: str, value: bytes) -> None:
        await asyncio.sleep(0)
        await super().set(key, value)

    async def delete(self, key: str) -> None:
        await asyncio.sleep(0)
        await super().delete(key)


class TestSaveAndLoad:
    """Test save/load round trips."""

    @pytest.mark.asyncio
    async def test_meal_plan_round_trip(
        self, repository: DraftRepository, meal_plan: MealPlanPayload
    ) -> None:
        saved = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="Test Meal Plan")

        assert saved.success
        assert saved.draft_id

        loaded = await repository.load(DraftKind.MEAL_PLAN, saved.draft_id)
        assert loaded.success
        assert loaded.data == meal_plan
        assert loaded.meta.name == "Test Meal Plan"
        assert loaded.meta.kind is DraftKind.MEAL_PLAN
        assert loaded.meta.created_at == loaded.meta.updated_at

    @pytest.mark.asyncio
    async def test_grocery_list_round_trip(
        self, repository: DraftRepository, grocery_list: GroceryListPayload
    ) -> None:
        saved = await repository.save(DraftKind.GROCERY_LIST, grocery_list, name="Test Grocery List")
        loaded = await repository.load(DraftKind.GROCERY_LIST, saved.draft_id)

        assert loaded.success
        assert loaded.data == grocery_list
        item = loaded.data.get_item("item2")
        assert item.is_completed is True
        assert item.source_recipe_ids == {"2577"}

    @pytest.mark.asyncio
    async def test_unicode_name_round_trip(
        self, repository: DraftRepository, meal_plan: MealPlanPayload
    ) -> None:
        saved = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="Settimana 🍝 crème")
        loaded = await repository.load(DraftKind.MEAL_PLAN, saved.draft_id)

        assert loaded.meta.name == "Settimana 🍝 crème"

    @pytest.mark.asyncio
    async def test_envelope_layout(
        self,
        repository: DraftRepository,
        store: InMemoryBlobStore,
        meal_plan: MealPlanPayload,
    ) -> None:
        saved = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="Week")

        document = json.loads(await store.get(blob_key(DraftKind.MEAL_PLAN, saved.draft_id)))
        assert document["id"] == saved.draft_id
        assert document["kind"] == "meal_plan"
        assert document["name"] == "Week"
        assert document["payload"] == meal_plan.to_dict()
        assert document["created_at"].startswith("2025-10-08T14:00:00")

        index = json.loads(await store.get(index_key(DraftKind.MEAL_PLAN)))
        assert index == [saved.draft_id]

    @pytest.mark.asyncio
    async def test_default_name_from_timestamp(
        self, repository: DraftRepository, meal_plan: MealPlanPayload
    ) -> None:
        saved = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        loaded = await repository.load(DraftKind.MEAL_PLAN, saved.draft_id)

        assert loaded.meta.name == "Meal Plan 2025-10-08 14:00"

    @pytest.mark.asyncio
    async def test_source_is_recorded(
        self, repository: DraftRepository, meal_plan: MealPlanPayload
    ) -> None:
        saved = await repository.save(DraftKind.MEAL_PLAN, meal_plan, source=AUTO_SAVE)
        loaded = await repository.load(DraftKind.MEAL_PLAN, saved.draft_id)

        assert loaded.meta.source == AUTO_SAVE

    @pytest.mark.asyncio
    async def test_get_returns_full_draft(
        self, repository: DraftRepository, meal_plan: MealPlanPayload
    ) -> None:
        saved = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="Week")
        draft = await repository.get(DraftKind.MEAL_PLAN, saved.draft_id)

        assert draft.id == saved.draft_id
        assert draft.payload == meal_plan

    @pytest.mark.asyncio
    async def test_payload_kind_mismatch_raises(
        self, repository: DraftRepository, grocery_list: GroceryListPayload
    ) -> None:
        with pytest.raises(ValueError, match="requires MealPlanPayload"):
            await repository.save(DraftKind.MEAL_PLAN, grocery_list)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("bad_id", ["index", "backup", "a:b", ""])
    async def test_invalid_explicit_id_raises(
        self, repository: DraftRepository, meal_plan: MealPlanPayload, bad_id: str
    ) -> None:
        with pytest.raises(ValueError, match="Invalid draft id"):
            await repository.save(DraftKind.MEAL_PLAN, meal_plan, draft_id=bad_id)


class TestIdGeneration:
    """Test draft id uniqueness."""

    @pytest.mark.asyncio
    async def test_same_millisecond_saves_get_distinct_ids(
        self, store: InMemoryBlobStore, meal_plan: MealPlanPayload
    ) -> None:
        repository = DraftRepository(store, clock=lambda: FIXED_NOW)

        first = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        second = await repository.save(DraftKind.MEAL_PLAN, meal_plan)

        assert first.draft_id != second.draft_id
        assert first.draft_id.split("-")[0] == second.draft_id.split("-")[0]
        assert len(await repository.list_drafts(DraftKind.MEAL_PLAN)) == 2

    @pytest.mark.asyncio
    async def test_exhausted_attempts_fail_without_writing(
        self,
        store: InMemoryBlobStore,
        meal_plan: MealPlanPayload,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        repository = DraftRepository(store, clock=lambda: FIXED_NOW, id_max_attempts=3)
        await repository.save(DraftKind.MEAL_PLAN, meal_plan, draft_id="1-taken")

        attempts = []

        def always_taken(cls, now_ms=None):  # type: ignore[no-untyped-def]
            attempts.append(now_ms)
            return cls("1-taken")

        monkeypatch.setattr(DraftId, "generate", classmethod(always_taken))

        result = await repository.save(DraftKind.MEAL_PLAN, meal_plan)

        assert not result.success
        assert result.error_kind is DraftErrorKind.ID_GENERATION_FAILURE
        assert len(attempts) == 3
        assert await repository.index_ids(DraftKind.MEAL_PLAN) == ["1-taken"]

    @pytest.mark.asyncio
    async def test_collision_retries_then_succeeds(
        self,
        store: InMemoryBlobStore,
        meal_plan: MealPlanPayload,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        repository = DraftRepository(store, clock=lambda: FIXED_NOW)
        await repository.save(DraftKind.MEAL_PLAN, meal_plan, draft_id="1-taken")

        candidates = iter(["1-taken", "1-free"])
        monkeypatch.setattr(
            DraftId, "generate", classmethod(lambda cls, now_ms=None: cls(next(candidates)))
        )

        result = await repository.save(DraftKind.MEAL_PLAN, meal_plan)

        assert result.success
        assert result.draft_id == "1-free"


class TestListing:
    """Test listing order and resilience."""

    @pytest.mark.asyncio
    async def test_most_recently_updated_first(
        self, repository: DraftRepository, meal_plan: MealPlanPayload
    ) -> None:
        a = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="A")
        b = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="B")
        c = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="C")

        listing = await repository.list_drafts(DraftKind.MEAL_PLAN)

        assert [m.id for m in listing] == [c.draft_id, b.draft_id, a.draft_id]
        assert all(m.size_bytes and m.size_bytes > 0 for m in listing)

    @pytest.mark.asyncio
    async def test_resave_moves_to_front_and_keeps_created_at(
        self, repository: DraftRepository, meal_plan: MealPlanPayload
    ) -> None:
        a = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="A")
        b = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="B")
        first = await repository.load(DraftKind.MEAL_PLAN, a.draft_id)

        updated_plan = MealPlanPayload(days=[Day(name="Day 1", recipes=[RecipeRef("9", "New")])])
        resaved = await repository.save(
            DraftKind.MEAL_PLAN, updated_plan, draft_id=a.draft_id
        )

        assert resaved.draft_id == a.draft_id
        listing = await repository.list_drafts(DraftKind.MEAL_PLAN)
        assert [m.id for m in listing] == [a.draft_id, b.draft_id]

        second = await repository.load(DraftKind.MEAL_PLAN, a.draft_id)
        assert second.data == updated_plan
        assert second.meta.name == "A"
        assert second.meta.created_at == first.meta.created_at
        assert second.meta.updated_at > first.meta.updated_at
        assert await repository.index_ids(DraftKind.MEAL_PLAN) == [b.draft_id, a.draft_id]

    @pytest.mark.asyncio
    async def test_resave_with_new_name_renames(
        self, repository: DraftRepository, meal_plan: MealPlanPayload
    ) -> None:
        a = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="A")
        await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="Renamed", draft_id=a.draft_id)

        listing = await repository.list_drafts(DraftKind.MEAL_PLAN)
        assert [m.name for m in listing] == ["Renamed"]

    @pytest.mark.asyncio
    async def test_equal_timestamps_order_by_save_order(
        self, store: InMemoryBlobStore, meal_plan: MealPlanPayload
    ) -> None:
        repository = DraftRepository(store, clock=lambda: FIXED_NOW)
        a = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="A")
        b = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="B")

        listing = await repository.list_drafts(DraftKind.MEAL_PLAN)
        assert [m.id for m in listing] == [b.draft_id, a.draft_id]

    @pytest.mark.asyncio
    async def test_kinds_are_isolated(
        self,
        repository: DraftRepository,
        meal_plan: MealPlanPayload,
        grocery_list: GroceryListPayload,
    ) -> None:
        await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        g = await repository.save(DraftKind.GROCERY_LIST, grocery_list)

        assert [m.id for m in await repository.list_drafts(DraftKind.GROCERY_LIST)] == [g.draft_id]
        assert len(await repository.list_drafts(DraftKind.MEAL_PLAN)) == 1

        loaded = await repository.load(DraftKind.MEAL_PLAN, g.draft_id)
        assert loaded.not_found

    @pytest.mark.asyncio
    async def test_empty_listing(self, repository: DraftRepository) -> None:
        assert await repository.list_drafts(DraftKind.MEAL_PLAN) == []

    @pytest.mark.asyncio
    async def test_corrupt_and_missing_blobs_are_skipped(
        self,
        repository: DraftRepository,
        store: InMemoryBlobStore,
        meal_plan: MealPlanPayload,
    ) -> None:
        good = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="Good")
        corrupt = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="Corrupt")
        missing = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="Missing")

        await store.set(blob_key(DraftKind.MEAL_PLAN, corrupt.draft_id), b"{not json")
        await store.delete(blob_key(DraftKind.MEAL_PLAN, missing.draft_id))

        listing = await repository.list_drafts(DraftKind.MEAL_PLAN)
        assert [m.id for m in listing] == [good.draft_id]

    @pytest.mark.asyncio
    async def test_unreadable_blob_is_skipped(
        self, repository: DraftRepository, store, meal_plan: MealPlanPayload
    ) -> None:
        a = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        b = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        store.fail_get_keys.add(blob_key(DraftKind.MEAL_PLAN, a.draft_id))

        listing = await repository.list_drafts(DraftKind.MEAL_PLAN)
        assert [m.id for m in listing] == [b.draft_id]

    @pytest.mark.asyncio
    async def test_unreadable_index_raises(self, repository: DraftRepository, store) -> None:
        store.fail_get_keys.add(index_key(DraftKind.MEAL_PLAN))

        with pytest.raises(StorageFailure):
            await repository.list_drafts(DraftKind.MEAL_PLAN)

    @pytest.mark.asyncio
    async def test_corrupt_index_is_rebuilt_from_keys(
        self,
        repository: DraftRepository,
        store: InMemoryBlobStore,
        meal_plan: MealPlanPayload,
    ) -> None:
        a = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        b = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        await repository.create_temp_backup(DraftKind.MEAL_PLAN, meal_plan)
        await store.set(index_key(DraftKind.MEAL_PLAN), b'{"oops"')

        listing = await repository.list_drafts(DraftKind.MEAL_PLAN)

        assert {m.id for m in listing} == {a.draft_id, b.draft_id}

    @pytest.mark.asyncio
    async def test_duplicate_index_entries_collapse(
        self,
        repository: DraftRepository,
        store: InMemoryBlobStore,
        meal_plan: MealPlanPayload,
    ) -> None:
        a = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        b = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        await store.set(
            index_key(DraftKind.MEAL_PLAN),
            json.dumps([a.draft_id, b.draft_id, a.draft_id]).encode(),
        )

        assert await repository.index_ids(DraftKind.MEAL_PLAN) == [b.draft_id, a.draft_id]
        assert len(await repository.list_drafts(DraftKind.MEAL_PLAN)) == 2


class TestLoadFailures:
    """Test load outcomes other than success."""

    @pytest.mark.asyncio
    async def test_unknown_id_is_not_found(self, repository: DraftRepository) -> None:
        result = await repository.load(DraftKind.MEAL_PLAN, "1-doesnotexist")

        assert not result.success
        assert result.not_found
        assert result.error_kind is DraftErrorKind.NOT_FOUND
        assert result.data is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reserved", ["index", "backup", "a:b"])
    async def test_reserved_ids_are_not_found(
        self, repository: DraftRepository, meal_plan: MealPlanPayload, reserved: str
    ) -> None:
        await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        await repository.create_temp_backup(DraftKind.MEAL_PLAN, meal_plan)

        result = await repository.load(DraftKind.MEAL_PLAN, reserved)

        assert result.not_found
        assert await repository.get(DraftKind.MEAL_PLAN, reserved) is None

    @pytest.mark.asyncio
    async def test_invalid_json_is_corrupt(
        self, repository: DraftRepository, store: InMemoryBlobStore
    ) -> None:
        await store.set(blob_key(DraftKind.MEAL_PLAN, "1-bad"), b"\xff\xfe garbage")

        result = await repository.load(DraftKind.MEAL_PLAN, "1-bad")

        assert result.error_kind is DraftErrorKind.CORRUPT_DRAFT
        with pytest.raises(CorruptDraft):
            await repository.get(DraftKind.MEAL_PLAN, "1-bad")

    @pytest.mark.asyncio
    async def test_missing_envelope_field_is_corrupt(
        self, repository: DraftRepository, store: InMemoryBlobStore
    ) -> None:
        await store.set(
            blob_key(DraftKind.MEAL_PLAN, "1-bad"),
            json.dumps({"id": "1-bad", "kind": "meal_plan"}).encode(),
        )

        result = await repository.load(DraftKind.MEAL_PLAN, "1-bad")
        assert result.error_kind is DraftErrorKind.CORRUPT_DRAFT

    @pytest.mark.asyncio
    async def test_payload_of_other_kind_is_corrupt(
        self,
        repository: DraftRepository,
        store: InMemoryBlobStore,
        meal_plan: MealPlanPayload,
    ) -> None:
        saved = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        raw = await store.get(blob_key(DraftKind.MEAL_PLAN, saved.draft_id))
        await store.set(blob_key(DraftKind.GROCERY_LIST, saved.draft_id), raw)

        result = await repository.load(DraftKind.GROCERY_LIST, saved.draft_id)
        assert result.error_kind is DraftErrorKind.CORRUPT_DRAFT

    @pytest.mark.asyncio
    async def test_malformed_payload_is_corrupt(
        self,
        repository: DraftRepository,
        store: InMemoryBlobStore,
        meal_plan: MealPlanPayload,
    ) -> None:
        saved = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        key = blob_key(DraftKind.MEAL_PLAN, saved.draft_id)
        document = json.loads(await store.get(key))
        document["payload"] = {"days": [{"recipes": []}]}
        await store.set(key, json.dumps(document).encode())

        result = await repository.load(DraftKind.MEAL_PLAN, saved.draft_id)
        assert result.error_kind is DraftErrorKind.CORRUPT_DRAFT

    @pytest.mark.asyncio
    async def test_read_failure_is_storage_failure(
        self, repository: DraftRepository, store, meal_plan: MealPlanPayload
    ) -> None:
        saved = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        store.fail_get_keys.add(blob_key(DraftKind.MEAL_PLAN, saved.draft_id))

        result = await repository.load(DraftKind.MEAL_PLAN, saved.draft_id)
        assert result.error_kind is DraftErrorKind.STORAGE_FAILURE


class TestSaveFailures:
    """Test writes that cannot complete."""

    @pytest.mark.asyncio
    async def test_quota_exceeded_is_storage_failure(self, meal_plan: MealPlanPayload) -> None:
        store = InMemoryBlobStore(quota_bytes=64)
        repository = DraftRepository(store)

        result = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="Too big")

        assert not result.success
        assert result.error_kind is DraftErrorKind.STORAGE_FAILURE
        assert await store.list_keys() == []

    @pytest.mark.asyncio
    async def test_unserializable_payload_is_storage_failure(
        self, repository: DraftRepository, store: InMemoryBlobStore
    ) -> None:
        plan = MealPlanPayload(
            days=[Day(name="Day 1", recipes=[RecipeRef("1", object())])]  # type: ignore[arg-type]
        )

        result = await repository.save(DraftKind.MEAL_PLAN, plan)

        assert result.error_kind is DraftErrorKind.STORAGE_FAILURE
        assert await store.list_keys() == []

    @pytest.mark.asyncio
    async def test_index_write_failure_removes_new_blob(
        self, repository: DraftRepository, store, meal_plan: MealPlanPayload
    ) -> None:
        store.fail_on_set([index_key(DraftKind.MEAL_PLAN)])

        result = await repository.save(DraftKind.MEAL_PLAN, meal_plan)

        assert result.error_kind is DraftErrorKind.STORAGE_FAILURE
        assert await store.list_keys("drafts:meal_plan:") == []

    @pytest.mark.asyncio
    async def test_index_write_failure_restores_previous_blob(
        self, repository: DraftRepository, store, meal_plan: MealPlanPayload
    ) -> None:
        saved = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="Original")
        key = blob_key(DraftKind.MEAL_PLAN, saved.draft_id)
        original = await store.get(key)

        store.fail_on_set([index_key(DraftKind.MEAL_PLAN)])
        result = await repository.save(
            DraftKind.MEAL_PLAN, MealPlanPayload(), name="Changed", draft_id=saved.draft_id
        )

        assert result.error_kind is DraftErrorKind.STORAGE_FAILURE
        assert await store.get(key) == original

    @pytest.mark.asyncio
    async def test_blob_write_failure_leaves_index_untouched(
        self, repository: DraftRepository, store, meal_plan: MealPlanPayload
    ) -> None:
        saved = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        store.fail_on_set([blob_key(DraftKind.MEAL_PLAN, "1-new")])

        result = await repository.save(DraftKind.MEAL_PLAN, meal_plan, draft_id="1-new")

        assert result.error_kind is DraftErrorKind.STORAGE_FAILURE
        assert await repository.index_ids(DraftKind.MEAL_PLAN) == [saved.draft_id]

    @pytest.mark.asyncio
    async def test_unreadable_index_fails_save(
        self, repository: DraftRepository, store, meal_plan: MealPlanPayload
    ) -> None:
        store.fail_get_keys.add(index_key(DraftKind.MEAL_PLAN))

        result = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        assert result.error_kind is DraftErrorKind.STORAGE_FAILURE

    @pytest.mark.asyncio
    async def test_resave_over_corrupt_blob_replaces_it(
        self,
        repository: DraftRepository,
        store: InMemoryBlobStore,
        meal_plan: MealPlanPayload,
    ) -> None:
        await store.set(blob_key(DraftKind.MEAL_PLAN, "1-bad"), b"garbage")

        result = await repository.save(DraftKind.MEAL_PLAN, meal_plan, draft_id="1-bad")

        assert result.success
        loaded = await repository.load(DraftKind.MEAL_PLAN, "1-bad")
        assert loaded.data == meal_plan


class TestDelete:
    """Test draft deletion."""

    @pytest.mark.asyncio
    async def test_delete_removes_blob_and_index_entry(
        self,
        repository: DraftRepository,
        store: InMemoryBlobStore,
        meal_plan: MealPlanPayload,
    ) -> None:
        a = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        b = await repository.save(DraftKind.MEAL_PLAN, meal_plan)

        result = await repository.delete(DraftKind.MEAL_PLAN, a.draft_id)

        assert result.success
        assert await repository.index_ids(DraftKind.MEAL_PLAN) == [b.draft_id]
        assert await store.get(blob_key(DraftKind.MEAL_PLAN, a.draft_id)) is None
        assert (await repository.load(DraftKind.MEAL_PLAN, a.draft_id)).not_found

    @pytest.mark.asyncio
    async def test_delete_is_idempotent(
        self, repository: DraftRepository, meal_plan: MealPlanPayload
    ) -> None:
        saved = await repository.save(DraftKind.MEAL_PLAN, meal_plan)

        first = await repository.delete(DraftKind.MEAL_PLAN, saved.draft_id)
        second = await repository.delete(DraftKind.MEAL_PLAN, saved.draft_id)

        assert first.success
        assert second.success

    @pytest.mark.asyncio
    async def test_delete_unknown_or_reserved_id_is_noop(
        self, repository: DraftRepository, meal_plan: MealPlanPayload
    ) -> None:
        saved = await repository.save(DraftKind.MEAL_PLAN, meal_plan)

        assert (await repository.delete(DraftKind.MEAL_PLAN, "1-unknown")).success
        assert (await repository.delete(DraftKind.MEAL_PLAN, "index")).success
        assert await repository.index_ids(DraftKind.MEAL_PLAN) == [saved.draft_id]

    @pytest.mark.asyncio
    async def test_blob_delete_failure_leaves_orphan_not_dangling_entry(
        self, repository: DraftRepository, store, meal_plan: MealPlanPayload
    ) -> None:
        saved = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        store.fail_delete_keys.add(blob_key(DraftKind.MEAL_PLAN, saved.draft_id))

        result = await repository.delete(DraftKind.MEAL_PLAN, saved.draft_id)

        assert not result.success
        assert result.error_kind is DraftErrorKind.STORAGE_FAILURE
        assert await repository.index_ids(DraftKind.MEAL_PLAN) == []

        store.fail_delete_keys.clear()
        assert await repository.repair_index(DraftKind.MEAL_PLAN) == 1
        assert await repository.index_ids(DraftKind.MEAL_PLAN) == [saved.draft_id]


class TestRepairIndex:
    """Test index reconciliation."""

    @pytest.mark.asyncio
    async def test_recovers_orphans_and_drops_dangling(
        self,
        repository: DraftRepository,
        store: InMemoryBlobStore,
        meal_plan: MealPlanPayload,
    ) -> None:
        kept = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        orphan = await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        dangling = await repository.save(DraftKind.MEAL_PLAN, meal_plan)

        await store.set(
            index_key(DraftKind.MEAL_PLAN),
            json.dumps([kept.draft_id, dangling.draft_id]).encode(),
        )
        await store.delete(blob_key(DraftKind.MEAL_PLAN, dangling.draft_id))

        changes = await repository.repair_index(DraftKind.MEAL_PLAN)

        assert changes == 2
        assert await repository.index_ids(DraftKind.MEAL_PLAN) == [
            kept.draft_id,
            orphan.draft_id,
        ]

    @pytest.mark.asyncio
    async def test_consistent_index_is_untouched(
        self, repository: DraftRepository, meal_plan: MealPlanPayload
    ) -> None:
        await repository.save(DraftKind.MEAL_PLAN, meal_plan)
        await repository.create_temp_backup(DraftKind.MEAL_PLAN, meal_plan)

        assert await repository.repair_index(DraftKind.MEAL_PLAN) == 0


class TestTempBackup:
    """Test the per-kind temporary backup slot."""

    @pytest.mark.asyncio
    async def test_create_load_clear(
        self,
        repository: DraftRepository,
        store: InMemoryBlobStore,
        grocery_list: GroceryListPayload,
    ) -> None:
        created = await repository.create_temp_backup(DraftKind.GROCERY_LIST, grocery_list)
        assert created.success
        assert await store.get(backup_key(DraftKind.GROCERY_LIST)) is not None

        loaded = await repository.load_temp_backup(DraftKind.GROCERY_LIST)
        assert loaded.success
        assert loaded.data == grocery_list

        cleared = await repository.clear_temp_backup(DraftKind.GROCERY_LIST)
        assert cleared.success
        assert (await repository.load_temp_backup(DraftKind.GROCERY_LIST)).not_found

    @pytest.mark.asyncio
    async def test_backup_is_not_listed(
        self, repository: DraftRepository, meal_plan: MealPlanPayload
    ) -> None:
        await repository.create_temp_backup(DraftKind.MEAL_PLAN, meal_plan)

        assert await repository.list_drafts(DraftKind.MEAL_PLAN) == []
        assert await repository.index_ids(DraftKind.MEAL_PLAN) == []

    @pytest.mark.asyncio
    async def test_backup_overwrites_previous(
        self, repository: DraftRepository, meal_plan: MealPlanPayload
    ) -> None:
        await repository.create_temp_backup(DraftKind.MEAL_PLAN, meal_plan)
        await repository.create_temp_backup(DraftKind.MEAL_PLAN, MealPlanPayload())

        loaded = await repository.load_temp_backup(DraftKind.MEAL_PLAN)
        assert loaded.data == MealPlanPayload()

    @pytest.mark.asyncio
    async def test_backup_write_failure(
        self, repository: DraftRepository, store, meal_plan: MealPlanPayload
    ) -> None:
        store.fail_on_set([backup_key(DraftKind.MEAL_PLAN)])

        result = await repository.create_temp_backup(DraftKind.MEAL_PLAN, meal_plan)
        assert result.error_kind is DraftErrorKind.STORAGE_FAILURE


class TestConcurrentWrites:
    """Test overlapping writes of different drafts on a suspending store."""

    @pytest.mark.asyncio
    async def test_concurrent_saves_keep_every_id_indexed(
        self, meal_plan: MealPlanPayload
    ) -> None:
        repository = DraftRepository(YieldingBlobStore())

        results = await asyncio.gather(
            *(repository.save(DraftKind.MEAL_PLAN, meal_plan, name=n) for n in "ABCDE")
        )

        assert all(r.success for r in results)
        listed = {m.id for m in await repository.list_drafts(DraftKind.MEAL_PLAN)}
        assert listed == {r.draft_id for r in results}

    @pytest.mark.asyncio
    async def test_delete_racing_save_keeps_new_entry(self, meal_plan: MealPlanPayload) -> None:
        repository = DraftRepository(YieldingBlobStore())
        old = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="Old")

        saved, deleted = await asyncio.gather(
            repository.save(DraftKind.MEAL_PLAN, meal_plan, name="New"),
            repository.delete(DraftKind.MEAL_PLAN, old.draft_id),
        )

        assert saved.success
        assert deleted.success
        assert await repository.index_ids(DraftKind.MEAL_PLAN) == [saved.draft_id]

    @pytest.mark.asyncio
    async def test_repair_racing_save_does_not_drop_entry(
        self, meal_plan: MealPlanPayload
    ) -> None:
        repository = DraftRepository(YieldingBlobStore())
        first = await repository.save(DraftKind.MEAL_PLAN, meal_plan)

        saved, _ = await asyncio.gather(
            repository.save(DraftKind.MEAL_PLAN, meal_plan),
            repository.repair_index(DraftKind.MEAL_PLAN),
        )

        assert set(await repository.index_ids(DraftKind.MEAL_PLAN)) == {
            first.draft_id,
            saved.draft_id,
        }

    @pytest.mark.asyncio
    async def test_kinds_do_not_block_each_other(
        self, meal_plan: MealPlanPayload, grocery_list: GroceryListPayload
    ) -> None:
        repository = DraftRepository(YieldingBlobStore())

        m, g = await asyncio.gather(
            repository.save(DraftKind.MEAL_PLAN, meal_plan),
            repository.save(DraftKind.GROCERY_LIST, grocery_list),
        )

        assert await repository.index_ids(DraftKind.MEAL_PLAN) == [m.draft_id]
        assert await repository.index_ids(DraftKind.GROCERY_LIST) == [g.draft_id]


class TestRequire:
    """Test reads of drafts that must exist."""

    @pytest.mark.asyncio
    async def test_missing_draft_raises_not_found(self, repository: DraftRepository) -> None:
        with pytest.raises(DraftNotFound) as exc_info:
            await repository.require(DraftKind.MEAL_PLAN, "1-missing")

        assert exc_info.value.draft_id == "1-missing"

    @pytest.mark.asyncio
    async def test_existing_draft_is_returned(
        self, repository: DraftRepository, meal_plan: MealPlanPayload
    ) -> None:
        saved = await repository.save(DraftKind.MEAL_PLAN, meal_plan, name="Week")

        draft = await repository.require(DraftKind.MEAL_PLAN, saved.draft_id)
        assert draft.name == "Week"

    @pytest.mark.asyncio
    async def test_load_reports_not_found_message(self, repository: DraftRepository) -> None:
        result = await repository.load(DraftKind.MEAL_PLAN, "1-missing")

        assert result.error_kind is DraftErrorKind.NOT_FOUND
        assert result.error == "Draft 1-missing not found"
