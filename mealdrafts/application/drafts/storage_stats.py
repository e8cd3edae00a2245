"""Storage statistics query.

Aggregates draft counts and approximate byte usage across both draft kinds.
Best-effort: an unreadable draft is logged and left out of the totals.
"""

import logging
from typing import Dict

from mealdrafts.application.drafts.draft_repository import DraftRepository
from mealdrafts.domain.draft.core.entities.draft import DraftKind
from mealdrafts.domain.draft.core.exceptions.domain_errors import StorageFailure
from mealdrafts.domain.draft.core.results import StorageStats

logger = logging.getLogger(__name__)


class StorageStatsQueryHandler:
    """Handler computing StorageStats from the draft repository."""

    def __init__(self, repository: DraftRepository):
        self._repository = repository

    async def handle(self) -> StorageStats:
        """
        Compute storage statistics.

        Counts match the lengths of the per-kind draft listings: drafts that
        cannot be listed (missing, unreadable or corrupt blob) are reported
        in unreadable_drafts instead.

        Returns:
            StorageStats with per-kind counts and total bytes
        """
        counts: Dict[DraftKind, int] = {}
        total_bytes = 0
        unreadable = 0

        for kind in DraftKind:
            try:
                index = await self._repository.index_ids(kind)
                listing = await self._repository.list_drafts(kind)
            except StorageFailure as e:
                logger.error(
                    "Storage stats unavailable for kind",
                    extra={"kind": kind.value, "error": str(e)},
                )
                counts[kind] = 0
                continue

            counts[kind] = len(listing)
            total_bytes += sum(meta.size_bytes or 0 for meta in listing)
            unreadable += max(0, len(index) - len(listing))

        stats = StorageStats(
            draft_counts=counts,
            approximate_total_bytes=total_bytes,
            unreadable_drafts=unreadable,
        )
        logger.debug(
            "Storage stats computed",
            extra={"total_drafts": stats.total_drafts, "total_bytes": total_bytes},
        )
        return stats
