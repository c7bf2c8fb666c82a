"""
Activity Logger

DESIGN DECISION: Every command and every load/save is logged as one
structured event. This provides:
1. Traceability of what changed and when
2. Debugging capability when disk and memory disagree
3. A single place where log formatting is decided

The activity logger:
- Is synchronous, like the rest of the engine
- Leaves sink failures to the stdlib handlers, which report them and carry on
- Writes to the log stream only; nothing is kept as history
"""

import logging
import sys
from typing import Optional

import structlog

from lesson_ledger.config import LedgerSettings, get_settings
from lesson_ledger.models.activity import EventSeverity, LedgerEvent


def configure_logging(settings: Optional[LedgerSettings] = None) -> None:
    """
    Configure structlog and the stdlib root handler.

    Safe to call more than once; the last call wins.
    """
    settings = settings or get_settings()

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, settings.log_level),
        force=True,
    )

    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_json
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


class ActivityLogger:
    """
    Central ledger event logger.

    Routes each LedgerEvent to the structlog method matching its severity.
    """

    def __init__(self, logger_name: str = "lesson_ledger"):
        self._logger = structlog.get_logger(logger_name)

    def log(self, event: LedgerEvent) -> None:
        """Log a ledger event at its own severity."""
        log_dict = event.to_log_dict()
        if event.severity == EventSeverity.ERROR:
            self._logger.error("ledger_event", **log_dict)
        elif event.severity == EventSeverity.WARNING:
            self._logger.warning("ledger_event", **log_dict)
        elif event.severity == EventSeverity.DEBUG:
            self._logger.debug("ledger_event", **log_dict)
        else:
            self._logger.info("ledger_event", **log_dict)
