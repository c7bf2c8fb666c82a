"""
Calendar Day Classification

Every calendar day gets exactly one DayCategory. The category is picked
by walking CLASSIFICATION_RULES top to bottom and taking the first rule
whose predicate holds. The order IS the policy:

1. paid planned AND paid completed lessons    -> BOTH_PAID
2. planned AND completed lessons              -> MIXED
3. a paid completed lesson                    -> COMPLETED_PAID
4. a paid planned lesson                      -> PLANNED_PAID
5. an unpaid completed lesson                 -> COMPLETED_UNPAID
6. an unpaid planned lesson                   -> PLANNED_UNPAID
7. no lessons, and the day is today           -> TODAY
8. anything else                              -> PLAIN

How many lessons of each kind exist does not matter, only whether any do.
"""

import datetime as dt
from typing import Callable, Iterable, Optional

from pydantic import BaseModel, ConfigDict

from lesson_ledger.models.lesson import (
    DayCategory,
    LessonRecord,
    LessonStatus,
    PaymentStatus,
    ReportingPeriod,
)


class DayFlags(BaseModel):
    """Which kinds of lessons fall on one day."""
    model_config = ConfigDict(frozen=True)

    planned_paid: bool = False
    planned_unpaid: bool = False
    completed_paid: bool = False
    completed_unpaid: bool = False
    is_today: bool = False

    @property
    def has_planned(self) -> bool:
        return self.planned_paid or self.planned_unpaid

    @property
    def has_completed(self) -> bool:
        return self.completed_paid or self.completed_unpaid

    @property
    def has_lessons(self) -> bool:
        return self.has_planned or self.has_completed

    @classmethod
    def from_records(cls, records: Iterable[LessonRecord], is_today: bool = False) -> "DayFlags":
        kinds = {(record.lifecycle_status, record.payment_status) for record in records}
        return cls(
            planned_paid=(LessonStatus.PLANNED, PaymentStatus.PAID) in kinds,
            planned_unpaid=(LessonStatus.PLANNED, PaymentStatus.UNPAID) in kinds,
            completed_paid=(LessonStatus.COMPLETED, PaymentStatus.PAID) in kinds,
            completed_unpaid=(LessonStatus.COMPLETED, PaymentStatus.UNPAID) in kinds,
            is_today=is_today,
        )


ClassificationRule = tuple[DayCategory, Callable[[DayFlags], bool]]

CLASSIFICATION_RULES: tuple[ClassificationRule, ...] = (
    (DayCategory.BOTH_PAID, lambda f: f.planned_paid and f.completed_paid),
    (DayCategory.MIXED, lambda f: f.has_completed and f.has_planned),
    (DayCategory.COMPLETED_PAID, lambda f: f.completed_paid),
    (DayCategory.PLANNED_PAID, lambda f: f.planned_paid),
    (DayCategory.COMPLETED_UNPAID, lambda f: f.completed_unpaid),
    (DayCategory.PLANNED_UNPAID, lambda f: f.planned_unpaid),
    (DayCategory.TODAY, lambda f: not f.has_lessons and f.is_today),
)


def classify_flags(flags: DayFlags) -> DayCategory:
    """First matching rule wins; PLAIN when none match."""
    for category, applies in CLASSIFICATION_RULES:
        if applies(flags):
            return category
    return DayCategory.PLAIN


def classify_day(
    day: dt.date,
    records: Iterable[LessonRecord],
    today: Optional[dt.date] = None,
) -> DayCategory:
    """
    Category of ``day``.

    ``records`` may be the whole collection; only lessons dated ``day``
    are considered. ``today`` defaults to the system date.
    """
    today = today or dt.date.today()
    on_day = [record for record in records if record.date == day]
    return classify_flags(DayFlags.from_records(on_day, is_today=(day == today)))


def classify_month(
    period: ReportingPeriod,
    records: Iterable[LessonRecord],
    today: Optional[dt.date] = None,
) -> dict[dt.date, DayCategory]:
    """Category of every day of ``period``, in date order."""
    today = today or dt.date.today()
    by_day: dict[dt.date, list[LessonRecord]] = {}
    for record in records:
        if period.contains(record.date):
            by_day.setdefault(record.date, []).append(record)
    return {
        day: classify_flags(DayFlags.from_records(by_day.get(day, []), is_today=(day == today)))
        for day in period.days()
    }
