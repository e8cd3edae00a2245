"""Draft repository on top of the blob store.

Storage layout (one namespace per kind):
    drafts:<kind>:<draft_id>   JSON envelope {id, kind, name, source, payload,
                               created_at, updated_at}
    drafts:<kind>:index        JSON list of known ids, least recently saved first
    drafts:<kind>:backup       Temporary backup slot (not indexed)

Writes are sequential, blob first and index second: a crash in between leaves
an orphaned blob (recovered by repair_index) rather than an index entry that
points at nothing.

Concurrency: each kind's index read-modify-write is serialized with an
asyncio.Lock, so saves and deletes of different drafts may overlap. Overlapping
saves of the same id are last-write-wins; callers must not issue them.
"""

import asyncio
import json
import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Tuple

from mealdrafts.domain.draft.core.entities.draft import (
    MANUAL_SAVE,
    Draft,
    DraftKind,
    DraftMetadata,
    DraftPayload,
)
from mealdrafts.domain.draft.core.exceptions.domain_errors import (
    CorruptDraft,
    DraftNotFound,
    IdGenerationFailure,
    StorageFailure,
)
from mealdrafts.domain.draft.core.results import (
    DeleteDraftResult,
    DraftErrorKind,
    LoadDraftResult,
    SaveDraftResult,
)
from mealdrafts.domain.draft.core.value_objects.draft_id import DraftId
from mealdrafts.domain.shared.ports.blob_store import BlobStoreError, IBlobStore
from mealdrafts.infrastructure.config import get_draft_id_max_attempts

logger = logging.getLogger(__name__)

KEY_PREFIX = "drafts"
INDEX_SUFFIX = "index"
BACKUP_SUFFIX = "backup"
RESERVED_IDS = frozenset({INDEX_SUFFIX, BACKUP_SUFFIX})

ENVELOPE_FIELDS = ("id", "kind", "name", "payload", "created_at", "updated_at")


def namespace(kind: DraftKind) -> str:
    """Key prefix shared by every key of a kind."""
    return f"{KEY_PREFIX}:{kind.value}:"


def blob_key(kind: DraftKind, draft_id: str) -> str:
    return f"{namespace(kind)}{draft_id}"


def index_key(kind: DraftKind) -> str:
    return f"{namespace(kind)}{INDEX_SUFFIX}"


def backup_key(kind: DraftKind) -> str:
    return f"{namespace(kind)}{BACKUP_SUFFIX}"


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _is_valid_id(draft_id: Any) -> bool:
    if not isinstance(draft_id, str) or draft_id in RESERVED_IDS:
        return False
    try:
        DraftId(draft_id)
    except ValueError:
        return False
    return True


class DraftRepository:
    """
    CRUD and enumeration over meal-plan and grocery-list drafts.

    The repository never inspects payload structure beyond the kind's
    to_dict/from_dict codec. Expected conditions (missing draft, corrupt
    blob, store failure) come back as tagged results instead of exceptions.

    Example:
        >>> repository = DraftRepository(InMemoryBlobStore())
        >>> saved = await repository.save(DraftKind.MEAL_PLAN, plan, name="Week 42")
        >>> loaded = await repository.load(DraftKind.MEAL_PLAN, saved.draft_id)
        >>> loaded.data == plan
        True
    """

    def __init__(
        self,
        store: IBlobStore,
        clock: Optional[Callable[[], datetime]] = None,
        id_max_attempts: Optional[int] = None,
    ):
        """
        Initialize repository.

        Args:
            store: Blob store port
            clock: Returns the current timezone-aware time (defaults to UTC now)
            id_max_attempts: Bounded retries for id generation
                (defaults to DRAFT_ID_MAX_ATTEMPTS)
        """
        self._store = store
        self._clock = clock or _utc_now
        self._id_max_attempts = id_max_attempts or get_draft_id_max_attempts()
        # Guards each kind's index read-modify-write
        self._index_locks: Dict[DraftKind, asyncio.Lock] = {
            kind: asyncio.Lock() for kind in DraftKind
        }

    @property
    def store(self) -> IBlobStore:
        return self._store

    # ============================================================
    # Save
    # ============================================================

    async def save(
        self,
        kind: DraftKind,
        payload: DraftPayload,
        name: Optional[str] = None,
        draft_id: Optional[str] = None,
        source: str = MANUAL_SAVE,
    ) -> SaveDraftResult:
        """
        Create or replace a draft.

        Flow:
        1. Read the kind's index
        2. Generate a unique id if none given
        3. Stamp timestamps (created_at kept on re-save)
        4. Write the blob, then the index (rolled back on index failure)

        Args:
            kind: Draft kind
            payload: Payload matching the kind
            name: Display name (defaults to existing name or a timestamp name)
            draft_id: Existing id to replace, or None for a new draft
            source: Origin tag ("manual_save", "auto_save")

        Returns:
            SaveDraftResult with the draft id on success

        Raises:
            ValueError: If payload does not match kind or draft_id is malformed
        """
        if not isinstance(payload, kind.payload_type):
            raise ValueError(
                f"{kind.value} draft requires {kind.payload_type.__name__}, "
                f"got {type(payload).__name__}"
            )
        if draft_id is not None and not _is_valid_id(draft_id):
            raise ValueError(f"Invalid draft id: {draft_id!r}")

        async with self._index_locks[kind]:
            return await self._save_locked(kind, payload, name, draft_id, source)

    async def _save_locked(
        self,
        kind: DraftKind,
        payload: DraftPayload,
        name: Optional[str],
        draft_id: Optional[str],
        source: str,
    ) -> SaveDraftResult:
        now = self._clock()

        try:
            index = await self._read_index(kind)
        except StorageFailure as e:
            return SaveDraftResult.failed(DraftErrorKind.STORAGE_FAILURE, str(e))

        previous_blob: Optional[bytes] = None
        previous: Optional[Draft[Any]] = None
        if draft_id is None:
            try:
                draft_id = self._generate_unique_id(index, now)
            except IdGenerationFailure as e:
                logger.error("Draft id generation exhausted", extra={"kind": kind.value})
                return SaveDraftResult.failed(DraftErrorKind.ID_GENERATION_FAILURE, str(e))
        else:
            try:
                previous_blob = await self._store.get(blob_key(kind, draft_id))
            except BlobStoreError as e:
                return SaveDraftResult.failed(DraftErrorKind.STORAGE_FAILURE, str(e))
            if previous_blob is not None:
                try:
                    previous = self._decode(kind, draft_id, previous_blob)
                except CorruptDraft:
                    logger.warning(
                        "Replacing corrupt draft",
                        extra={"kind": kind.value, "draft_id": draft_id},
                    )

        if name is None:
            name = previous.name if previous is not None else kind.default_name(now)

        draft: Draft[Any] = Draft(
            id=draft_id,
            kind=kind,
            name=name,
            payload=payload,
            source=source,
            created_at=previous.created_at if previous is not None else now,
            updated_at=now,
        )

        try:
            blob = self._encode(draft)
        except (TypeError, ValueError) as e:
            logger.error(
                "Draft serialization failed",
                extra={"kind": kind.value, "draft_id": draft_id, "error": str(e)},
            )
            return SaveDraftResult.failed(
                DraftErrorKind.STORAGE_FAILURE, f"Serialization failed: {e}"
            )

        try:
            await self._store.set(blob_key(kind, draft_id), blob)
        except BlobStoreError as e:
            logger.error(
                "Draft blob write failed",
                extra={"kind": kind.value, "draft_id": draft_id, "error": str(e)},
            )
            return SaveDraftResult.failed(DraftErrorKind.STORAGE_FAILURE, str(e))

        # Most recently saved id goes last
        new_index = [i for i in index if i != draft_id] + [draft_id]
        try:
            await self._write_index(kind, new_index)
        except StorageFailure as e:
            await self._rollback_blob(kind, draft_id, previous_blob)
            return SaveDraftResult.failed(DraftErrorKind.STORAGE_FAILURE, str(e))

        logger.info(
            "Draft saved",
            extra={
                "kind": kind.value,
                "draft_id": draft_id,
                "source": source,
                "size_bytes": len(blob),
            },
        )
        return SaveDraftResult.ok(draft_id)

    def _generate_unique_id(self, index: List[str], now: datetime) -> str:
        known = set(index)
        now_ms = int(now.timestamp() * 1000)
        for _ in range(self._id_max_attempts):
            candidate = DraftId.generate(now_ms=now_ms).value
            if candidate not in known:
                return candidate
            logger.warning("Draft id collision, retrying", extra={"draft_id": candidate})
        raise IdGenerationFailure(
            f"Could not generate a unique draft id after {self._id_max_attempts} attempts"
        )

    async def _rollback_blob(
        self, kind: DraftKind, draft_id: str, previous_blob: Optional[bytes]
    ) -> None:
        key = blob_key(kind, draft_id)
        try:
            if previous_blob is None:
                await self._store.delete(key)
            else:
                await self._store.set(key, previous_blob)
        except BlobStoreError as e:
            # Orphaned or stale blob left behind; repair_index reconciles it
            logger.error(
                "Draft blob rollback failed",
                extra={"kind": kind.value, "draft_id": draft_id, "error": str(e)},
            )

    # ============================================================
    # Load / list
    # ============================================================

    async def get(self, kind: DraftKind, draft_id: str) -> Optional[Draft[Any]]:
        """
        Read a full draft.

        Returns:
            Draft, or None if absent

        Raises:
            StorageFailure: If the store cannot be read
            CorruptDraft: If the blob cannot be deserialized
        """
        if not _is_valid_id(draft_id):
            return None
        try:
            raw = await self._store.get(blob_key(kind, draft_id))
        except BlobStoreError as e:
            raise StorageFailure(f"Failed to read draft {draft_id}: {e}") from e
        if raw is None:
            return None
        return self._decode(kind, draft_id, raw)

    async def require(self, kind: DraftKind, draft_id: str) -> Draft[Any]:
        """
        Read a full draft that must exist.

        Raises:
            DraftNotFound: If no draft is stored under the id
            StorageFailure: If the store cannot be read
            CorruptDraft: If the blob cannot be deserialized
        """
        draft = await self.get(kind, draft_id)
        if draft is None:
            raise DraftNotFound(draft_id)
        return draft

    async def load(self, kind: DraftKind, draft_id: str) -> LoadDraftResult[Any]:
        """
        Load a draft's payload.

        Returns:
            LoadDraftResult with data (payload) and meta, or a
            NOT_FOUND / CORRUPT_DRAFT / STORAGE_FAILURE outcome
        """
        try:
            draft = await self.require(kind, draft_id)
        except DraftNotFound as e:
            return LoadDraftResult.failed(DraftErrorKind.NOT_FOUND, str(e))
        except StorageFailure as e:
            logger.error(
                "Draft read failed",
                extra={"kind": kind.value, "draft_id": draft_id, "error": str(e)},
            )
            return LoadDraftResult.failed(DraftErrorKind.STORAGE_FAILURE, str(e))
        except CorruptDraft as e:
            logger.error(
                "Corrupt draft",
                extra={"kind": kind.value, "draft_id": draft_id, "reason": e.reason},
            )
            return LoadDraftResult.failed(DraftErrorKind.CORRUPT_DRAFT, str(e))

        return LoadDraftResult(success=True, data=draft.payload, meta=draft.metadata())

    async def list_drafts(self, kind: DraftKind) -> List[DraftMetadata]:
        """
        List drafts of a kind, most recently updated first.

        Index entries whose blob is missing, unreadable or corrupt are
        skipped and logged.

        Raises:
            StorageFailure: If the index itself cannot be read
        """
        index = await self._read_index(kind)
        entries: List[Tuple[DraftMetadata, int]] = []
        for position, draft_id in enumerate(index):
            try:
                raw = await self._store.get(blob_key(kind, draft_id))
            except BlobStoreError as e:
                logger.error(
                    "Draft read failed during listing",
                    extra={"kind": kind.value, "draft_id": draft_id, "error": str(e)},
                )
                continue
            if raw is None:
                logger.warning(
                    "Index entry without blob",
                    extra={"kind": kind.value, "draft_id": draft_id},
                )
                continue
            try:
                draft = self._decode(kind, draft_id, raw)
            except CorruptDraft as e:
                logger.warning(
                    "Skipping corrupt draft in listing",
                    extra={"kind": kind.value, "draft_id": draft_id, "reason": e.reason},
                )
                continue
            entries.append((draft.metadata(size_bytes=len(raw)), position))

        # Ties on updated_at resolve to the later index position (saved later)
        entries.sort(key=lambda entry: (entry[0].updated_at, entry[1]), reverse=True)
        return [meta for meta, _ in entries]

    async def index_ids(self, kind: DraftKind) -> List[str]:
        """Ids currently in the kind's index, least recently saved first."""
        return list(await self._read_index(kind))

    # ============================================================
    # Delete / repair
    # ============================================================

    async def delete(self, kind: DraftKind, draft_id: str) -> DeleteDraftResult:
        """
        Delete a draft. Idempotent: unknown ids succeed without side effects.

        The index entry is removed before the blob so a crash in between
        leaves an orphaned blob, never a dangling index entry.
        """
        if not _is_valid_id(draft_id):
            return DeleteDraftResult(success=True)

        try:
            async with self._index_locks[kind]:
                index = await self._read_index(kind)
                if draft_id in index:
                    await self._write_index(kind, [i for i in index if i != draft_id])
                await self._store.delete(blob_key(kind, draft_id))
        except (StorageFailure, BlobStoreError) as e:
            logger.error(
                "Draft delete failed",
                extra={"kind": kind.value, "draft_id": draft_id, "error": str(e)},
            )
            return DeleteDraftResult(
                success=False, error_kind=DraftErrorKind.STORAGE_FAILURE, error=str(e)
            )

        logger.info("Draft deleted", extra={"kind": kind.value, "draft_id": draft_id})
        return DeleteDraftResult(success=True)

    async def repair_index(self, kind: DraftKind) -> int:
        """
        Reconcile the index with the blobs actually stored.

        Orphaned blobs are appended to the index; entries whose blob is gone
        are dropped. Requires a store that supports prefix listing.

        Returns:
            Number of index entries added or removed

        Raises:
            StorageFailure: If the store cannot be read or written
        """
        async with self._index_locks[kind]:
            return await self._repair_index_locked(kind)

    async def _repair_index_locked(self, kind: DraftKind) -> int:
        try:
            keys = await self._store.list_keys(namespace(kind))
        except BlobStoreError as e:
            raise StorageFailure(f"Failed to scan {kind.value} drafts: {e}") from e

        prefix_len = len(namespace(kind))
        stored = [k[prefix_len:] for k in keys]
        stored_ids = {i for i in stored if _is_valid_id(i)}

        index = await self._read_index(kind)
        kept = [i for i in index if i in stored_ids]
        orphans = sorted(stored_ids - set(index))
        changes = (len(index) - len(kept)) + len(orphans)

        if changes:
            await self._write_index(kind, kept + orphans)
            logger.info(
                "Draft index repaired",
                extra={
                    "kind": kind.value,
                    "dropped": len(index) - len(kept),
                    "recovered": len(orphans),
                },
            )
        return changes

    # ============================================================
    # Temporary backup slot
    # ============================================================

    async def create_temp_backup(self, kind: DraftKind, payload: DraftPayload) -> SaveDraftResult:
        """
        Store a payload in the kind's single backup slot (overwrites).

        The backup is not indexed and never listed or counted.
        """
        if not isinstance(payload, kind.payload_type):
            raise ValueError(
                f"{kind.value} backup requires {kind.payload_type.__name__}, "
                f"got {type(payload).__name__}"
            )
        now = self._clock()
        draft: Draft[Any] = Draft(
            id=BACKUP_SUFFIX,
            kind=kind,
            name=f"{kind.label} backup",
            payload=payload,
            source="temp_backup",
            created_at=now,
            updated_at=now,
        )
        try:
            await self._store.set(backup_key(kind), self._encode(draft))
        except (TypeError, ValueError, BlobStoreError) as e:
            logger.error(
                "Temp backup failed", extra={"kind": kind.value, "error": str(e)}
            )
            return SaveDraftResult.failed(DraftErrorKind.STORAGE_FAILURE, str(e))
        logger.info("Temp backup created", extra={"kind": kind.value})
        return SaveDraftResult.ok(BACKUP_SUFFIX)

    async def load_temp_backup(self, kind: DraftKind) -> LoadDraftResult[Any]:
        """Load the kind's backup slot (NOT_FOUND when empty)."""
        try:
            raw = await self._store.get(backup_key(kind))
        except BlobStoreError as e:
            return LoadDraftResult.failed(DraftErrorKind.STORAGE_FAILURE, str(e))
        if raw is None:
            return LoadDraftResult.failed(
                DraftErrorKind.NOT_FOUND, f"No {kind.value} backup"
            )
        try:
            draft = self._decode(kind, BACKUP_SUFFIX, raw)
        except CorruptDraft as e:
            return LoadDraftResult.failed(DraftErrorKind.CORRUPT_DRAFT, str(e))
        return LoadDraftResult(success=True, data=draft.payload, meta=draft.metadata())

    async def clear_temp_backup(self, kind: DraftKind) -> DeleteDraftResult:
        """Empty the kind's backup slot (idempotent)."""
        try:
            await self._store.delete(backup_key(kind))
        except BlobStoreError as e:
            return DeleteDraftResult(
                success=False, error_kind=DraftErrorKind.STORAGE_FAILURE, error=str(e)
            )
        return DeleteDraftResult(success=True)

    # ============================================================
    # Serialization
    # ============================================================

    @staticmethod
    def _encode(draft: Draft[Any]) -> bytes:
        document = {
            "id": draft.id,
            "kind": draft.kind.value,
            "name": draft.name,
            "source": draft.source,
            "payload": draft.payload.to_dict(),
            "created_at": draft.created_at.isoformat(),
            "updated_at": draft.updated_at.isoformat(),
        }
        return json.dumps(document, ensure_ascii=False, allow_nan=False).encode("utf-8")

    @staticmethod
    def _decode(kind: DraftKind, draft_id: str, raw: bytes) -> Draft[Any]:
        """
        Deserialize a stored envelope.

        Raises:
            CorruptDraft: On invalid JSON, missing fields, wrong kind or id,
                or a payload the kind's codec rejects
        """
        try:
            document = json.loads(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as e:
            raise CorruptDraft(draft_id, f"invalid JSON: {e}") from e

        if not isinstance(document, dict):
            raise CorruptDraft(draft_id, "envelope is not an object")
        missing = [f for f in ENVELOPE_FIELDS if f not in document]
        if missing:
            raise CorruptDraft(draft_id, f"missing fields {missing}")
        if document["kind"] != kind.value:
            raise CorruptDraft(
                draft_id, f"stored kind {document['kind']!r} != requested {kind.value!r}"
            )
        if document["id"] != draft_id:
            raise CorruptDraft(draft_id, f"stored id {document['id']!r} does not match key")

        try:
            payload = kind.payload_type.from_dict(document["payload"])
            return Draft(
                id=draft_id,
                kind=kind,
                name=document["name"],
                payload=payload,
                source=document.get("source", MANUAL_SAVE),
                created_at=_parse_timestamp(document["created_at"]),
                updated_at=_parse_timestamp(document["updated_at"]),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise CorruptDraft(draft_id, f"invalid payload: {e!r}") from e

    # ============================================================
    # Index
    # ============================================================

    async def _read_index(self, kind: DraftKind) -> List[str]:
        try:
            raw = await self._store.get(index_key(kind))
        except BlobStoreError as e:
            raise StorageFailure(f"Failed to read {kind.value} index: {e}") from e
        if raw is None:
            return []
        try:
            ids = json.loads(raw.decode("utf-8"))
            if not isinstance(ids, list) or not all(isinstance(i, str) for i in ids):
                raise ValueError("index is not a list of ids")
        except (UnicodeDecodeError, ValueError) as e:
            logger.error(
                "Corrupt draft index, rebuilding from stored keys",
                extra={"kind": kind.value, "error": str(e)},
            )
            return await self._scan_ids(kind)
        # Drop duplicates, keep last occurrence (most recent save)
        seen: Dict[str, int] = {i: pos for pos, i in enumerate(ids)}
        return [i for pos, i in enumerate(ids) if seen[i] == pos]

    async def _scan_ids(self, kind: DraftKind) -> List[str]:
        try:
            keys = await self._store.list_keys(namespace(kind))
        except BlobStoreError as e:
            raise StorageFailure(f"Failed to scan {kind.value} drafts: {e}") from e
        prefix_len = len(namespace(kind))
        return [k[prefix_len:] for k in keys if _is_valid_id(k[prefix_len:])]

    async def _write_index(self, kind: DraftKind, ids: List[str]) -> None:
        try:
            await self._store.set(index_key(kind), json.dumps(ids).encode("utf-8"))
        except BlobStoreError as e:
            logger.error(
                "Draft index write failed", extra={"kind": kind.value, "error": str(e)}
            )
            raise StorageFailure(f"Failed to write {kind.value} index: {e}") from e


def _parse_timestamp(value: str) -> datetime:
    dt = datetime.fromisoformat(value)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt
