"""
Autocomplete Suggestions

Distinct values already present in the ledger, offered back to entry
forms and to the student filter. SuggestionIndex keeps them current by
rebuilding after every store change.
"""

from decimal import Decimal
from typing import Iterable

from lesson_ledger.models.lesson import LessonRecord, LessonSuggestions, ReportingPeriod
from lesson_ledger.store import LessonStore, StoreChange


def _decimal_text(value: Decimal) -> str:
    # normalize() drops trailing zeros; "f" avoids exponent notation
    return format(value.normalize(), "f")


def build_suggestions(
    records: Iterable[LessonRecord],
    date_format: str = "%d.%m.%Y",
    month_format: str = "%m.%Y",
) -> LessonSuggestions:
    """Distinct, sorted values used across ``records``."""
    records = list(records)
    dates = sorted({record.date for record in records})
    months = sorted({(day.year, day.month) for day in dates})
    return LessonSuggestions(
        dates=[day.strftime(date_format) for day in dates],
        student_names=sorted({record.student_name for record in records}),
        hourly_rates=[_decimal_text(v) for v in sorted({r.hourly_rate for r in records})],
        hours=[_decimal_text(v) for v in sorted({r.hours for r in records})],
        months=[
            ReportingPeriod(year=year, month=month).label(month_format)
            for year, month in months
        ],
    )


class SuggestionIndex:
    """Suggestions that follow the store."""

    def __init__(
        self,
        store: LessonStore,
        date_format: str = "%d.%m.%Y",
        month_format: str = "%m.%Y",
    ):
        self._store = store
        self._date_format = date_format
        self._month_format = month_format
        self._current = build_suggestions(store.all(), date_format, month_format)
        self._unsubscribe = store.subscribe(self._on_change)

    @property
    def current(self) -> LessonSuggestions:
        return self._current

    def _on_change(self, change: StoreChange) -> None:
        self._current = build_suggestions(
            self._store.all(),
            self._date_format,
            self._month_format,
        )

    def close(self) -> None:
        """Stop following the store."""
        self._unsubscribe()
