"""
Activity Models for Lesson Ledger

Every command and every load/save produces one event for the structured
log. Events describe what happened to the ledger; they are written to the
log stream only and never kept as a history.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, Field

from lesson_ledger.models.lesson import LessonRecord


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LedgerEventType(str, Enum):
    """Types of events we log."""
    # Commands
    LESSON_ADDED = "lesson_added"
    LESSON_UPDATED = "lesson_updated"
    LESSON_DELETED = "lesson_deleted"
    VALIDATION_FAILED = "validation_failed"
    LESSON_NOT_FOUND = "lesson_not_found"
    LISTENER_FAILED = "listener_failed"

    # Persistence
    LEDGER_LOADED = "ledger_loaded"
    LEDGER_SAVED = "ledger_saved"
    LOAD_FAILED = "load_failed"
    SAVE_FAILED = "save_failed"


class EventSeverity(str, Enum):
    """Severity level for ledger events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LedgerEvent(BaseModel):
    """A single ledger event."""

    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )
    event_type: LedgerEventType
    severity: EventSeverity = EventSeverity.INFO

    # Position of the affected lesson in the store, if any
    index: Optional[int] = None

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(default_factory=dict)
    error_message: Optional[str] = None

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "index": self.index,
            "description": self.description,
            "details": self.details,
            "error_message": self.error_message,
        }


def _lesson_details(record: LessonRecord) -> dict[str, Any]:
    return {
        "date": record.date.isoformat(),
        "student_name": record.student_name,
        "hourly_rate": str(record.hourly_rate),
        "hours": str(record.hours),
        "total_cost": str(record.total_cost),
        "lifecycle_status": record.lifecycle_status.value,
        "payment_status": record.payment_status.value,
    }


class LedgerEventBuilder:
    """
    Helper class to build ledger events with common patterns.

    Usage:
        event = LedgerEventBuilder.lesson_added(index, record)
        event = LedgerEventBuilder.save_failed(path, error)
    """

    @staticmethod
    def lesson_added(index: int, record: LessonRecord) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.LESSON_ADDED,
            index=index,
            description=f"Lesson added for {record.student_name} on {record.date.isoformat()}",
            details=_lesson_details(record),
        )

    @staticmethod
    def lesson_updated(
        index: int,
        previous: LessonRecord,
        record: LessonRecord,
    ) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.LESSON_UPDATED,
            index=index,
            description=f"Lesson {index} replaced",
            details={
                "previous": _lesson_details(previous),
                "current": _lesson_details(record),
            },
        )

    @staticmethod
    def lesson_deleted(index: int, record: LessonRecord) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.LESSON_DELETED,
            index=index,
            description=f"Lesson deleted for {record.student_name} on {record.date.isoformat()}",
            details=_lesson_details(record),
        )

    @staticmethod
    def validation_failed(operation: str, issues: list[dict]) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.VALIDATION_FAILED,
            severity=EventSeverity.WARNING,
            description=f"Lesson rejected during {operation}",
            details={
                "operation": operation,
                "issues": issues,
            },
        )

    @staticmethod
    def lesson_not_found(operation: str, reference: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.LESSON_NOT_FOUND,
            severity=EventSeverity.WARNING,
            description=f"No lesson matched during {operation}",
            details={
                "operation": operation,
                "reference": reference,
            },
        )

    @staticmethod
    def listener_failed(change_kind: str, index: Optional[int], error: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.LISTENER_FAILED,
            severity=EventSeverity.ERROR,
            index=index,
            description=f"A subscriber failed while handling '{change_kind}'",
            details={"change_kind": change_kind},
            error_message=error,
        )

    @staticmethod
    def ledger_loaded(path: str, count: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.LEDGER_LOADED,
            description=f"Loaded {count} lessons",
            details={"path": path, "lesson_count": count},
        )

    @staticmethod
    def ledger_saved(path: str, count: int) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.LEDGER_SAVED,
            severity=EventSeverity.DEBUG,
            description=f"Saved {count} lessons",
            details={"path": path, "lesson_count": count},
        )

    @staticmethod
    def load_failed(path: str, error: str) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.LOAD_FAILED,
            severity=EventSeverity.ERROR,
            description="Could not load lessons; starting empty",
            details={"path": path},
            error_message=error,
        )

    @staticmethod
    def save_failed(path: str, error: str, rolled_back: bool) -> LedgerEvent:
        return LedgerEvent(
            event_type=LedgerEventType.SAVE_FAILED,
            severity=EventSeverity.ERROR,
            description="Could not save lessons",
            details={"path": path, "rolled_back": rolled_back},
            error_message=error,
        )
