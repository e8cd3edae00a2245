"""Background scheduling (auto-save)."""

from mealdrafts.infrastructure.scheduler.auto_save import AutoSaveScheduler

__all__ = ["AutoSaveScheduler"]
