"""Composition root.

Builds a LocalDataManager from environment configuration:
- blob store from BLOB_STORE_BACKEND (see persistence.factory)
- a fresh in-memory dirty tracker
- auto-save scheduler with AUTO_SAVE_INTERVAL_SECONDS
"""

import logging
from typing import Optional

from mealdrafts.application.drafts.local_data_manager import LocalDataManager
from mealdrafts.domain.shared.ports.blob_store import IBlobStore
from mealdrafts.domain.shared.ports.recipe_lookup import IRecipeLookup
from mealdrafts.infrastructure.cache.in_memory_dirty_tracker import InMemoryDirtyTracker
from mealdrafts.infrastructure.config import load_environment
from mealdrafts.infrastructure.logging_config import configure_logging
from mealdrafts.infrastructure.persistence.factory import get_blob_store
from mealdrafts.infrastructure.recipes.in_memory_recipe_lookup import InMemoryRecipeLookup
from mealdrafts.infrastructure.scheduler.auto_save import AutoSaveScheduler

logger = logging.getLogger(__name__)


def create_local_data_manager(
    recipe_lookup: Optional[IRecipeLookup] = None,
    store: Optional[IBlobStore] = None,
    load_env: bool = True,
) -> LocalDataManager:
    """
    Wire a LocalDataManager.

    Args:
        recipe_lookup: Recipe lookup port (defaults to an empty local catalog)
        store: Blob store override (defaults to the configured singleton)
        load_env: Load .env and configure logging first

    Returns:
        Ready-to-use LocalDataManager
    """
    if load_env:
        load_environment()
        configure_logging()

    manager = LocalDataManager(
        store=store or get_blob_store(),
        recipe_lookup=recipe_lookup or InMemoryRecipeLookup(),
        dirty_tracker=InMemoryDirtyTracker(),
        auto_save=AutoSaveScheduler(),
    )
    logger.info("LocalDataManager created")
    return manager
