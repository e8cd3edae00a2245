"""Draft use cases: repository, statistics and the caller-facing manager."""

from mealdrafts.application.drafts.draft_repository import DraftRepository
from mealdrafts.application.drafts.local_data_manager import LocalDataManager
from mealdrafts.application.drafts.storage_stats import StorageStatsQueryHandler

__all__ = [
    "DraftRepository",
    "LocalDataManager",
    "StorageStatsQueryHandler",
]
