"""Activity logging package."""

from lesson_ledger.activity.logger import ActivityLogger, configure_logging

__all__ = ["ActivityLogger", "configure_logging"]
