"""
Data Models Package

This package contains all Pydantic models used in the Lesson Ledger.
All data flowing through the system must conform to these schemas.
"""

from lesson_ledger.models.lesson import (
    TOTAL_ROW_NAME,
    DayCategory,
    LessonColumn,
    LessonFilter,
    LessonRecord,
    LessonStatus,
    LessonSuggestions,
    PaymentClassification,
    PaymentStatus,
    ReportingPeriod,
    StudentSummary,
    SummaryColumn,
    ValidationIssue,
)
from lesson_ledger.models.activity import (
    EventSeverity,
    LedgerEvent,
    LedgerEventBuilder,
    LedgerEventType,
)

__all__ = [
    # Lesson models
    "TOTAL_ROW_NAME",
    "DayCategory",
    "LessonColumn",
    "LessonFilter",
    "LessonRecord",
    "LessonStatus",
    "LessonSuggestions",
    "PaymentClassification",
    "PaymentStatus",
    "ReportingPeriod",
    "StudentSummary",
    "SummaryColumn",
    "ValidationIssue",
    # Activity models
    "EventSeverity",
    "LedgerEvent",
    "LedgerEventBuilder",
    "LedgerEventType",
]
