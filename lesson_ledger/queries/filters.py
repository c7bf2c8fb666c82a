"""
Ledger Filtering

Pure functions over a record collection: same inputs, same output.
Filtering preserves the source order; sorting is a separate, stable step
applied afterwards for display.
"""

from typing import Iterable, Optional

from lesson_ledger.models.lesson import LessonColumn, LessonFilter, LessonRecord


def filter_lessons(
    records: Iterable[LessonRecord],
    criteria: Optional[LessonFilter] = None,
) -> list[LessonRecord]:
    """
    Records satisfying every active criterion, in source order.

    Criteria left as None match everything.
    """
    if criteria is None or criteria.is_empty:
        return list(records)
    return [record for record in records if criteria.matches(record)]


def sort_lessons(
    records: Iterable[LessonRecord],
    column: LessonColumn = LessonColumn.DATE,
    descending: bool = False,
) -> list[LessonRecord]:
    """Stable sort on one ledger column (date ascending by default)."""
    column = LessonColumn(column)
    return sorted(
        records,
        key=lambda record: record.sort_value(column),
        reverse=descending,
    )
