"""
Core Data Models for Lesson Ledger

These models define the strict schemas for all data flowing through the system.
They are designed to:
1. Enforce type safety at runtime
2. Be immutable once constructed (edits build a new record)
3. Keep money exact (Decimal, never float)
4. Be serializable for storage and logging

DESIGN DECISION: total_cost is computed, never stored. A record cannot
disagree with itself about what it costs.
"""

import calendar
import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    computed_field,
)


TOTAL_ROW_NAME = "TOTAL"


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class LessonStatus(str, Enum):
    """
    Lesson lifecycle status.

    Values match the tags written to the data file.
    """
    PLANNED = "PLANNED"      # Scheduled, not yet given
    COMPLETED = "COMPLETED"  # Took place


class PaymentStatus(str, Enum):
    """Payment status for a single lesson."""
    PAID = "PAID"
    UNPAID = "UNPAID"


class PaymentClassification(str, Enum):
    """
    Payment status of a group of lessons.

    MIXED means the group holds both paid and unpaid lessons.
    It is never rounded to one side.
    """
    PAID = "PAID"
    UNPAID = "UNPAID"
    MIXED = "MIXED"


class DayCategory(str, Enum):
    """
    Display category of one calendar day.

    Declared in priority order, highest first.
    """
    BOTH_PAID = "both_paid"
    MIXED = "mixed"
    COMPLETED_PAID = "completed_paid"
    PLANNED_PAID = "planned_paid"
    COMPLETED_UNPAID = "completed_unpaid"
    PLANNED_UNPAID = "planned_unpaid"
    TODAY = "today"
    PLAIN = "plain"


class LessonColumn(str, Enum):
    """Sortable ledger columns, in display order."""
    DATE = "date"
    STUDENT_NAME = "student_name"
    HOURLY_RATE = "hourly_rate"
    HOURS = "hours"
    TOTAL_COST = "total_cost"
    LIFECYCLE_STATUS = "lifecycle_status"
    PAYMENT_STATUS = "payment_status"


class SummaryColumn(str, Enum):
    """Sortable summary columns, in display order."""
    STUDENT_NAME = "student_name"
    LESSON_HOURS = "lesson_hours"
    TOTAL_COST = "total_cost"
    PAYMENT_CLASSIFICATION = "payment_classification"


# =============================================================================
# CORE LESSON MODEL
# =============================================================================

class LessonRecord(BaseModel):
    """
    One tutoring session.

    CRITICAL: Records are frozen. Editing a lesson means building a new
    record and substituting it in the store.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    date: dt.date = Field(
        ...,
        description="Calendar date of the lesson"
    )
    student_name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Student name"
    )
    hourly_rate: Decimal = Field(
        ...,
        ge=0,
        description="Price of one hour"
    )
    hours: Decimal = Field(
        ...,
        ge=0,
        description="Lesson length in hours"
    )
    lifecycle_status: LessonStatus = Field(
        default=LessonStatus.PLANNED,
        description="Planned or completed"
    )
    payment_status: PaymentStatus = Field(
        default=PaymentStatus.UNPAID,
        description="Paid or unpaid"
    )

    @computed_field
    @property
    def total_cost(self) -> Decimal:
        """hourly_rate * hours, exact."""
        return self.hourly_rate * self.hours

    @property
    def is_completed(self) -> bool:
        return self.lifecycle_status == LessonStatus.COMPLETED

    @property
    def is_paid(self) -> bool:
        return self.payment_status == PaymentStatus.PAID

    def sort_value(self, column: LessonColumn):
        """Value used when the ledger is sorted by ``column``."""
        return getattr(self, LessonColumn(column).value)


class ValidationIssue(BaseModel):
    """A single problem found with submitted lesson values."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'invalid_format', 'negative')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )


# =============================================================================
# QUERY MODELS
# =============================================================================

class LessonFilter(BaseModel):
    """
    Ledger filter criteria.

    Every criterion is optional; None means "any" and always matches.
    Active criteria are combined with logical AND.
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    on_date: Optional[dt.date] = None
    lifecycle_status: Optional[LessonStatus] = None
    payment_status: Optional[PaymentStatus] = None
    student_name: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        """True when no criterion is active."""
        return all(
            value is None
            for value in (
                self.on_date,
                self.lifecycle_status,
                self.payment_status,
                self.student_name,
            )
        )

    def merge(self, other: "LessonFilter") -> "LessonFilter":
        """Combine two filters; active values of ``other`` win."""
        active = other.model_dump(exclude_none=True)
        return self.model_copy(update=active)

    def matches(self, record: LessonRecord) -> bool:
        if self.on_date is not None and record.date != self.on_date:
            return False
        if self.lifecycle_status is not None and record.lifecycle_status != self.lifecycle_status:
            return False
        if self.payment_status is not None and record.payment_status != self.payment_status:
            return False
        if self.student_name is not None and record.student_name != self.student_name:
            return False
        return True


class ReportingPeriod(BaseModel):
    """
    A calendar month, first day through last day inclusive.
    """
    model_config = ConfigDict(frozen=True)

    year: int = Field(..., ge=1, le=9999)
    month: int = Field(..., ge=1, le=12)

    @classmethod
    def of(cls, day: dt.date) -> "ReportingPeriod":
        """The month containing ``day``."""
        return cls(year=day.year, month=day.month)

    @classmethod
    def parse(cls, text: str, month_format: str = "%m.%Y") -> "ReportingPeriod":
        """
        Parse month text such as ``05.2025``.

        Raises ValueError on malformed input.
        """
        parsed = dt.datetime.strptime(text.strip(), month_format)
        return cls(year=parsed.year, month=parsed.month)

    @property
    def first_day(self) -> dt.date:
        return dt.date(self.year, self.month, 1)

    @property
    def last_day(self) -> dt.date:
        return dt.date(self.year, self.month, calendar.monthrange(self.year, self.month)[1])

    def contains(self, day: dt.date) -> bool:
        return self.first_day <= day <= self.last_day

    def days(self) -> list[dt.date]:
        """Every date of the month, in order."""
        return [
            dt.date(self.year, self.month, number)
            for number in range(1, self.last_day.day + 1)
        ]

    def label(self, month_format: str = "%m.%Y") -> str:
        return self.first_day.strftime(month_format)


# =============================================================================
# DERIVED MODELS
# =============================================================================

class StudentSummary(BaseModel):
    """
    One row of the monthly financial summary.

    The sentinel row carries TOTAL_ROW_NAME as its student name and
    is_total=True; a real student called "TOTAL" is still a student row.
    """
    model_config = ConfigDict(frozen=True)

    student_name: str
    lesson_hours: Decimal = Field(ge=0)
    total_cost: Decimal = Field(ge=0)
    payment_classification: PaymentClassification
    is_total: bool = False

    def sort_value(self, column: SummaryColumn):
        """Value used when the summary is sorted by ``column``."""
        return getattr(self, SummaryColumn(column).value)


class LessonSuggestions(BaseModel):
    """
    Distinct values already used in the ledger.

    Feeds autocompletion in entry forms and the student filter.
    """
    model_config = ConfigDict(frozen=True)

    dates: list[str] = Field(default_factory=list)
    student_names: list[str] = Field(default_factory=list)
    hourly_rates: list[str] = Field(default_factory=list)
    hours: list[str] = Field(default_factory=list)
    months: list[str] = Field(default_factory=list)
